"""
Index and record stores layered over a key-value client.
"""

from typing import List

from ..models.core import EmotionRecord
from .codec import RecordCodec
from .kv_client import KeyValueClient, KeyValueError
from .logging_config import get_logger

logger = get_logger(__name__)


class RecordNotFoundError(Exception):
    """Raised when a record key holds no value."""
    pass


class IndexStore:
    """Owns the single key listing every record id in write order."""

    def __init__(self, client: KeyValueClient, codec: RecordCodec, key: str = 'index'):
        self.client = client
        self.codec = codec
        self.key = key

    async def read(self) -> List[str]:
        """
        Read the ordered list of record ids.

        Returns:
            Ids in write order, empty if no index exists yet

        Raises:
            KeyValueError: If the store cannot be reached
            DecodeError: If the stored index is malformed
        """
        data = await self.client.read(self.key)
        ids = self.codec.decode_index(data)
        logger.debug(f'Read index with {len(ids)} ids')
        return ids

    async def write(self, ids: List[str]) -> None:
        """
        Replace the stored index.

        Raises:
            KeyValueError: If the store rejects or fails the write
        """
        if not await self.client.write(self.key, self.codec.encode_index(ids)):
            raise KeyValueError(f'Store rejected write to {self.key}')
        logger.debug(f'Wrote index with {len(ids)} ids')


class RecordStore:
    """Owns the per-record keys, one encoded record each."""

    def __init__(self, client: KeyValueClient, codec: RecordCodec, prefix: str = 'record_'):
        self.client = client
        self.codec = codec
        self.prefix = prefix

    def key_for(self, record_id: str) -> str:
        return f'{self.prefix}{record_id}'

    async def read(self, record_id: str) -> EmotionRecord:
        """
        Read and decode one record.

        Raises:
            RecordNotFoundError: If the record key is empty
            KeyValueError: If the store cannot be reached
            DecodeError: If the stored bytes are malformed
        """
        data = await self.client.read(self.key_for(record_id))
        if not data:
            raise RecordNotFoundError(f'No record stored for {record_id}')
        return self.codec.decode(record_id, data)

    async def write(self, record: EmotionRecord) -> None:
        """
        Store one record under its own key.

        Raises:
            KeyValueError: If the store rejects or fails the write
        """
        key = self.key_for(record.id)
        if not await self.client.write(key, self.codec.encode(record)):
            raise KeyValueError(f'Store rejected write to {key}')
        logger.debug(f'Wrote record {record.id}')
