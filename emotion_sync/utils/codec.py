"""
Record and index codec with a pluggable obscuring transform.

The transform is a placeholder for a confidential-computation backend. It carries no
confidentiality guarantee and callers must not treat its output as secret.
"""

import base64
import binascii
import json
from typing import Any, Dict, List, Optional, Protocol

from ..models.core import EmotionInput, EmotionRecord
from .json_utils import from_json_bytes, to_json_bytes
from .logging_config import get_logger

logger = get_logger(__name__)

# Persisted field names, in the order they are serialized
PLAIN_FIELDS = ('category', 'intensity', 'createdAt', 'owner', 'context')
PAYLOAD_FIELD = 'encodedPayload'


class DecodeError(Exception):
    """Custom exception for malformed record or index bytes."""
    pass


class ObscuringTransform(Protocol):
    """Opaque transform applied to the input fields before storage."""

    def apply(self, fields: Dict[str, Any]) -> str:
        ...


class Base64Obscurer:
    """Reversible stand-in transform: a marker prefix plus base64 of the JSON fields."""

    prefix = 'FHE-EMOTION-'

    def apply(self, fields: Dict[str, Any]) -> str:
        encoded = base64.b64encode(to_json_bytes(fields)).decode('ascii')
        return f'{self.prefix}{encoded}'

    def reveal(self, payload: str) -> Dict[str, Any]:
        """Invert apply().

        Raises:
            DecodeError: If the payload was not produced by this transform
        """
        if not payload.startswith(self.prefix):
            raise DecodeError('Payload does not carry the expected prefix')
        try:
            return from_json_bytes(base64.b64decode(payload[len(self.prefix):], validate=True))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f'Invalid obscured payload: {e}')


def _integral(value: Any, field: str) -> int:
    # bool is an int subclass but never a valid count or timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f'Field {field} must be a number, got {type(value).__name__}')
    if isinstance(value, float):
        if not value.is_integer():
            raise DecodeError(f'Field {field} must be integral, got {value}')
        value = int(value)
    return value


def _text(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise DecodeError(f'Field {field} must be a string, got {type(value).__name__}')
    return value


class RecordCodec:
    """Encode and decode records and the index to and from stored bytes."""

    def __init__(self, transform: Optional[ObscuringTransform] = None):
        """
        Initialize the codec.

        Args:
            transform: Obscuring transform, Base64Obscurer if None
        """
        self.transform = transform or Base64Obscurer()

    def obscure(self, emotion_input: EmotionInput) -> str:
        """Apply the obscuring transform to the caller-supplied fields."""
        return self.transform.apply(emotion_input.to_dict())

    def encode(self, record: EmotionRecord) -> bytes:
        """Serialize a record's plain fields plus its obscured payload.

        Args:
            record: Record to serialize (the id lives in the key, not the value)

        Returns:
            Compact UTF-8 JSON bytes
        """
        return to_json_bytes({
            'category': record.category,
            'intensity': record.intensity,
            'createdAt': record.created_at,
            'owner': record.owner,
            'context': record.context,
            PAYLOAD_FIELD: record.encoded_payload,
        })

    def decode(self, record_id: str, data: bytes) -> EmotionRecord:
        """Parse stored bytes back into a record.

        Args:
            record_id: Identifier the bytes were stored under
            data: Raw bytes from the record key

        Returns:
            EmotionRecord with the given id

        Raises:
            DecodeError: If the bytes are not a well-formed record
        """
        try:
            doc = from_json_bytes(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f'Record {record_id} is not valid JSON: {e}')

        if not isinstance(doc, dict):
            raise DecodeError(f'Record {record_id} must be a JSON object')

        missing = [field for field in PLAIN_FIELDS if field not in doc]
        if missing:
            raise DecodeError(f'Record {record_id} is missing fields: {", ".join(missing)}')

        payload = doc.get(PAYLOAD_FIELD)
        return EmotionRecord(id=record_id,
                             category=_text(doc['category'], 'category'),
                             intensity=_integral(doc['intensity'], 'intensity'),
                             created_at=_integral(doc['createdAt'], 'createdAt'),
                             owner=_text(doc['owner'], 'owner'),
                             context=_text(doc['context'], 'context'),
                             encoded_payload=payload if isinstance(payload, str) else '')

    def encode_index(self, ids: List[str]) -> bytes:
        return to_json_bytes(list(ids))

    def decode_index(self, data: bytes) -> List[str]:
        """Parse the index value into an ordered list of ids.

        Empty bytes mean no index has been written yet. Entries that are not strings
        cannot name a record key and are dropped.

        Raises:
            DecodeError: If the bytes are not a JSON array
        """
        if not data:
            return []

        try:
            doc = from_json_bytes(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f'Index is not valid JSON: {e}')

        if not isinstance(doc, list):
            raise DecodeError(f'Index must be a JSON array, got {type(doc).__name__}')

        ids = [entry for entry in doc if isinstance(entry, str)]
        if len(ids) != len(doc):
            logger.warning(f'Dropped {len(doc) - len(ids)} non-string index entries')
        return ids
