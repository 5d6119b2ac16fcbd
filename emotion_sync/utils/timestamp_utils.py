"""
Timestamp utilities for record creation times and time-based identifiers.
"""

import secrets
import string
import time
from typing import Optional

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_SUFFIX_LENGTH = 7


def to_seconds(timestamp: Optional[float] = None) -> int:
    """Convert timestamp to whole Unix seconds.

    Args:
        timestamp: Unix timestamp in seconds (optional, uses current time if None)

    Returns:
        Seconds timestamp as int
    """
    if timestamp is None:
        timestamp = time.time()
    return int(timestamp)


def new_record_id(timestamp: Optional[float] = None) -> str:
    """Build a record identifier from a millisecond time prefix and a random base36 suffix.

    Writers never coordinate, so the random suffix is what keeps two ids created in
    the same millisecond apart.

    Args:
        timestamp: Unix timestamp in seconds (optional, uses current time if None)

    Returns:
        Identifier such as '1700000000123-k3j9x0a'
    """
    if timestamp is None:
        timestamp = time.time()
    suffix = ''.join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f'{int(timestamp * 1000)}-{suffix}'
