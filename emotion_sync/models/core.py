"""
Core data models for emotion records and transaction status.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

# Choices offered by the create form. The engine itself treats both as opaque strings.
CATEGORIES = ('happy', 'sad', 'neutral', 'excited', 'calm', 'anxious', 'focused', 'relaxed')
CONTEXTS = ('living_room', 'bedroom', 'kitchen', 'home_office', 'bathroom', 'outdoor')

MIN_INTENSITY = 1
MAX_INTENSITY = 10


@dataclass
class EmotionInput:
    """Caller-supplied fields of a new observation."""
    category: str = 'neutral'
    intensity: int = 5
    context: str = 'living_room'

    def to_dict(self) -> Dict[str, Any]:
        return {'category': self.category, 'intensity': self.intensity, 'context': self.context}


@dataclass
class EmotionRecord:
    """One persisted emotion observation.

    Records are written once by the sync engine and never mutated afterwards.
    """
    id: str
    category: str
    intensity: int
    created_at: int  # Unix seconds, set by the engine
    owner: str  # Opaque writer identity
    context: str
    encoded_payload: str = ''  # Obscured copy of the input fields


class TransactionState(Enum):
    """States of a reported write operation."""
    IDLE = 'idle'
    PENDING = 'pending'
    SUCCESS = 'success'
    ERROR = 'error'


@dataclass(frozen=True)
class ReporterEvent:
    """Snapshot of the reporter handed to the presentation layer."""
    state: TransactionState
    visible: bool
    status: str  # 'pending', 'success' or 'error'
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'visible': self.visible, 'status': self.status, 'message': self.message}


@dataclass
class CreateResult:
    """Outcome of SyncEngine.create_record."""
    success: bool
    message: str
    record: Optional[EmotionRecord] = None
