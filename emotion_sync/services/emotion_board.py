"""
Emotion board view-model: the presentation-side state over a SyncEngine.
"""

from collections import Counter
from dataclasses import replace
from typing import Dict, List, Optional

from ..models.core import (CATEGORIES, CONTEXTS, MAX_INTENSITY, MIN_INTENSITY, CreateResult, EmotionInput, EmotionRecord,
                           ReporterEvent, TransactionState)
from ..utils.logging_config import get_logger
from .sync_engine import SyncEngine

logger = get_logger(__name__)


def context_label(context: str) -> str:
    """Human-readable form of a context tag, e.g. 'living_room' -> 'living room'."""
    return context.replace('_', ' ')


def validate_input(emotion_input: EmotionInput) -> Optional[str]:
    """Check a draft against the choices the form offers.

    Returns:
        Error message, or None if the draft is acceptable
    """
    if emotion_input.category not in CATEGORIES:
        return f'Unknown emotion category: {emotion_input.category}'
    if emotion_input.context not in CONTEXTS:
        return f'Unknown context: {emotion_input.context}'
    intensity = emotion_input.intensity
    if isinstance(intensity, bool) or not isinstance(intensity, int):
        return 'Intensity must be a whole number'
    if not MIN_INTENSITY <= intensity <= MAX_INTENSITY:
        return f'Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}'
    return None


class EmotionBoard:
    """Holds the latest snapshot, search query and create form for one user session."""

    def __init__(self, engine: SyncEngine):
        self.engine = engine
        self.records: List[EmotionRecord] = []
        self.search_query = ''
        self.draft = EmotionInput()
        self.show_create = False
        self._clear_draft_on_idle = False

        engine.add_refresh_listener(self._on_refresh)
        engine.reporter.subscribe(self._on_status)

    @property
    def is_refreshing(self) -> bool:
        return self.engine.is_refreshing

    @property
    def status(self) -> ReporterEvent:
        return self.engine.reporter.event

    async def refresh(self) -> List[EmotionRecord]:
        return await self.engine.load_all()

    def filtered(self) -> List[EmotionRecord]:
        """Records whose category, context or owner contain the search query (case-insensitive)."""
        query = self.search_query.strip().lower()
        if not query:
            return list(self.records)
        return [
            record for record in self.records
            if query in record.category.lower() or query in record.context.lower() or query in record.owner.lower()
        ]

    def category_counts(self) -> Dict[str, int]:
        return dict(Counter(record.category for record in self.records))

    def context_counts(self) -> Dict[str, int]:
        return dict(Counter(record.context for record in self.records))

    def statistics(self) -> Dict[str, object]:
        return {
            'total': len(self.records),
            'categories': self.category_counts(),
            'contexts': self.context_counts(),
        }

    def open_create(self) -> None:
        self.show_create = True

    def close_create(self) -> None:
        self.show_create = False

    async def submit(self) -> CreateResult:
        """
        Validate the draft and hand it to the engine.

        On success the draft is cleared and the form closed once the status display
        returns to idle.

        Returns:
            CreateResult from the engine, or a failed result if validation rejects the draft
        """
        error = validate_input(self.draft)
        if error:
            logger.debug(f'Draft rejected: {error}')
            return CreateResult(success=False, message=error)

        result = await self.engine.create_record(replace(self.draft))
        if result.success:
            self._clear_draft_on_idle = True
        return result

    def _on_refresh(self, records: List[EmotionRecord]) -> None:
        self.records = records

    def _on_status(self, event: ReporterEvent) -> None:
        if event.state is TransactionState.IDLE and self._clear_draft_on_idle:
            self._clear_draft_on_idle = False
            self.draft = EmotionInput()
            self.show_create = False
