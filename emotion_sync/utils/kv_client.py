"""
Key-value client contract and the in-memory backend.
"""

from typing import Dict, Optional, Protocol

from .config import KeyValueStoreConfig
from .logging_config import get_logger

logger = get_logger(__name__)


class KeyValueError(Exception):
    """Custom exception for key-value transport failures (distinct from an absent key)."""
    pass


class StoreUnavailableError(Exception):
    """Raised when the store reports itself unavailable."""
    pass


class KeyValueClient(Protocol):
    """Capability consumed by the sync engine.

    ``read`` returns empty bytes for an absent key. Any call may raise KeyValueError.
    """

    async def read(self, key: str) -> bytes:
        ...

    async def write(self, key: str, value: bytes) -> bool:
        ...

    async def probe_available(self) -> bool:
        ...


class InMemoryKeyValueClient:
    """Dict-backed key-value store for local development and tests."""

    def __init__(self, data: Optional[Dict[str, bytes]] = None, available: bool = True):
        self.data: Dict[str, bytes] = dict(data or {})
        self.available = available

    async def read(self, key: str) -> bytes:
        return self.data.get(key, b'')

    async def write(self, key: str, value: bytes) -> bool:
        self.data[key] = bytes(value)
        return True

    async def probe_available(self) -> bool:
        return self.available


def build_key_value_client(config: KeyValueStoreConfig) -> KeyValueClient:
    """
    Create the configured key-value backend.

    Args:
        config: KeyValueStoreConfig instance

    Returns:
        KeyValueClient implementation

    Raises:
        ValueError: If the backend name is unknown
    """
    if config.backend == 'memory':
        logger.info('Using in-memory key-value store')
        return InMemoryKeyValueClient()

    if config.backend == 's3':
        from .s3_kv_client import S3KeyValueClient
        return S3KeyValueClient(config)

    raise ValueError(f'Unknown key-value backend: {config.backend}')
