"""
Pytest fixtures and test doubles for emotion sync tests.
"""

import asyncio
import json
from typing import Dict, Iterable, List, Optional

import pytest

from emotion_sync.services.sync_engine import SyncEngine
from emotion_sync.services.transaction_status import TransactionStatusReporter
from emotion_sync.utils.config import SyncConfig
from emotion_sync.utils.identity import StaticIdentity
from emotion_sync.utils.kv_client import InMemoryKeyValueClient, KeyValueError


class FakeKeyValueClient(InMemoryKeyValueClient):
    """In-memory store that records calls and fails on request.

    Failure sets hold key prefixes, so 'record_' matches every record key.
    read_delays maps exact keys to seconds of simulated latency.
    """

    def __init__(self, data=None, available: bool = True):
        super().__init__(data, available)
        self.calls: List[tuple] = []
        self.failing_reads: set = set()
        self.failing_writes: set = set()
        self.rejected_writes: set = set()
        self.probe_error: Optional[Exception] = None
        self.read_delays: Dict[str, float] = {}

    @staticmethod
    def _matches(key: str, prefixes: Iterable[str]) -> bool:
        return any(key.startswith(prefix) for prefix in prefixes)

    async def read(self, key: str) -> bytes:
        self.calls.append(('read', key))
        await asyncio.sleep(self.read_delays.get(key, 0))
        if self._matches(key, self.failing_reads):
            raise KeyValueError(f'timeout reading {key}')
        return await super().read(key)

    async def write(self, key: str, value: bytes) -> bool:
        self.calls.append(('write', key))
        if self._matches(key, self.failing_writes):
            raise KeyValueError(f'timeout writing {key}')
        if self._matches(key, self.rejected_writes):
            return False
        return await super().write(key, value)

    async def probe_available(self) -> bool:
        self.calls.append(('probe_available', None))
        if self.probe_error is not None:
            raise self.probe_error
        return await super().probe_available()

    def reads(self) -> List[str]:
        return [key for op, key in self.calls if op == 'read']

    def writes(self) -> List[str]:
        return [key for op, key in self.calls if op == 'write']


def store_record(client: InMemoryKeyValueClient,
                 record_id: str,
                 category: str = 'happy',
                 intensity: int = 7,
                 created_at: int = 1000,
                 owner: str = '0xabc',
                 context: str = 'kitchen') -> None:
    client.data[f'record_{record_id}'] = json.dumps({
        'category': category,
        'intensity': intensity,
        'createdAt': created_at,
        'owner': owner,
        'context': context,
        'encodedPayload': 'FHE-EMOTION-e30='
    }).encode('utf-8')


def store_index(client: InMemoryKeyValueClient, ids: List[str]) -> None:
    client.data['index'] = json.dumps(ids).encode('utf-8')


def stored_index(client: InMemoryKeyValueClient) -> List[str]:
    return json.loads(client.data['index'].decode('utf-8'))


def sync_config(**overrides) -> SyncConfig:
    values = {
        'index_key': 'index',
        'record_key_prefix': 'record_',
        'load_concurrency': 4,
        'index_append_attempts': 1,
        'strict_index_reads': False
    }
    values.update(overrides)
    return SyncConfig(**values)


@pytest.fixture
def client():
    return FakeKeyValueClient()


@pytest.fixture
def reporter():
    return TransactionStatusReporter(success_delay=0.01, error_delay=0.02)


@pytest.fixture
def make_engine(client, reporter):
    """Build a SyncEngine over the fake client with a fast reporter."""

    def _make(owner: Optional[str] = '0xabc', approve: bool = True, clock=None, kv_client=None, **overrides):
        kwargs = {}
        if clock is not None:
            kwargs['clock'] = clock
        return SyncEngine(client=kv_client or client,
                          identity=StaticIdentity(owner, approve=approve),
                          reporter=reporter,
                          sync_config=sync_config(**overrides),
                          **kwargs)

    return _make
