"""
JSON utilities for the byte values kept in the key-value store.
"""

import json
from typing import Any


def to_json_bytes(value: Any) -> bytes:
    """Serialize a value to compact UTF-8 JSON.

    Args:
        value: JSON-serializable value

    Returns:
        Encoded bytes, identical for identical input
    """
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def from_json_bytes(data: bytes) -> Any:
    """Parse UTF-8 JSON bytes.

    Args:
        data: Raw bytes from the store

    Returns:
        Decoded value

    Raises:
        UnicodeDecodeError: If the bytes are not valid UTF-8
        json.JSONDecodeError: If the text is not valid JSON
    """
    return json.loads(data.decode('utf-8'))
