"""
Sync Engine for reconciling the record index with per-record keys.
"""

import asyncio
import time
from typing import Callable, List, Optional

from ..models.core import CreateResult, EmotionInput, EmotionRecord, TransactionState
from ..utils.codec import DecodeError, RecordCodec
from ..utils.config import SyncConfig, config
from ..utils.identity import AuthorizationDeclined, IdentityProvider, StaticIdentity
from ..utils.kv_client import KeyValueClient, KeyValueError, StoreUnavailableError, build_key_value_client
from ..utils.logging_config import get_logger
from ..utils.stores import IndexStore, RecordNotFoundError, RecordStore
from ..utils.timestamp_utils import new_record_id, to_seconds
from .transaction_status import TransactionStatusReporter

logger = get_logger(__name__)

PENDING_MESSAGE = 'Encrypting emotion data...'
SUCCESS_MESSAGE = 'Emotion data encrypted and stored securely!'
NO_IDENTITY_MESSAGE = 'Please connect an identity first'

RefreshListener = Callable[[List[EmotionRecord]], None]


class WriteFailedError(Exception):
    """Custom exception for write failures other than a declined authorization."""
    pass


class SyncEngine:
    """Loads the time-ordered view of all records and appends new ones.

    The backing store offers no listing, transactions or conditional writes, so the
    engine keeps its own index key and tolerates records that are missing or corrupt.
    """

    def __init__(self,
                 client: Optional[KeyValueClient] = None,
                 identity: Optional[IdentityProvider] = None,
                 codec: Optional[RecordCodec] = None,
                 reporter: Optional[TransactionStatusReporter] = None,
                 sync_config: Optional[SyncConfig] = None,
                 clock: Callable[[], float] = time.time):
        """Initialize the sync engine.

        Args:
            client: Key-value client (built from config if None)
            identity: Writer identity (static identity from config if None)
            codec: Record codec (default Base64Obscurer transform if None)
            reporter: Transaction status reporter (new reporter if None)
            sync_config: Index and loading settings (config default if None)
            clock: Source of Unix time in seconds
        """
        self.config = sync_config or config.sync
        self.client = client or build_key_value_client(config.kv_store)
        self.identity = identity or StaticIdentity(config.identity.owner)
        self.codec = codec or RecordCodec()
        self.reporter = reporter or TransactionStatusReporter()
        self.clock = clock

        self.index = IndexStore(self.client, self.codec, key=self.config.index_key)
        self.records = RecordStore(self.client, self.codec, prefix=self.config.record_key_prefix)

        self._refreshing = 0
        self._refresh_listeners: List[RefreshListener] = []

        logger.info('Initialized SyncEngine')

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing > 0

    def add_refresh_listener(self, listener: RefreshListener) -> None:
        """Register a callable that receives every snapshot produced by load_all."""
        self._refresh_listeners.append(listener)

    async def load_all(self) -> List[EmotionRecord]:
        """Load every decodable record, newest first.

        Never raises: an unavailable store yields an empty list, and any id whose
        record is absent, corrupt or unreadable is left out of the result.

        Returns:
            Records sorted by created_at descending, index order among equal times
        """
        self._refreshing += 1
        try:
            try:
                await self._ensure_available()
            except StoreUnavailableError as e:
                logger.warning(f'{e}, nothing to load')
                return []

            ids = await self._read_index_for_load()
            semaphore = asyncio.Semaphore(max(1, self.config.load_concurrency))
            results = await asyncio.gather(*(self._load_one(record_id, semaphore) for record_id in ids))

            records = [record for record in results if record is not None]
            records.sort(key=lambda record: record.created_at, reverse=True)

            skipped = len(ids) - len(records)
            if skipped:
                logger.info(f'Loaded {len(records)} records, skipped {skipped}')
            else:
                logger.debug(f'Loaded {len(records)} records')

            self._notify_refresh(records)
            return records

        except Exception as e:
            logger.error(f'Unexpected error loading records: {e}')
            return []
        finally:
            self._refreshing -= 1

    async def create_record(self, emotion_input: EmotionInput) -> CreateResult:
        """Store a new record and append its id to the index.

        Progress is reported as pending -> success|error. After a success the view
        is refreshed before the display delay starts; the reporter then returns to
        idle on its own. Failures are returned, never raised.

        Args:
            emotion_input: Category, intensity and context chosen by the user

        Returns:
            CreateResult with the stored record on success
        """
        owner = self.identity.owner
        if not owner:
            logger.warning('Rejected record creation without an identity')
            return CreateResult(success=False, message=NO_IDENTITY_MESSAGE)

        if self.reporter.state is TransactionState.PENDING:
            logger.warning('Rejected record creation while another operation is pending')
            return CreateResult(success=False, message=f'Another operation is in progress: {self.reporter.message}')

        self.reporter.begin(PENDING_MESSAGE)
        try:
            await self.identity.authorize('create_record')

            encoded_payload = self.codec.obscure(emotion_input)
            now = self.clock()
            record = EmotionRecord(id=new_record_id(now),
                                   category=emotion_input.category,
                                   intensity=emotion_input.intensity,
                                   created_at=to_seconds(now),
                                   owner=owner,
                                   context=emotion_input.context,
                                   encoded_payload=encoded_payload)

            try:
                await self.records.write(record)
            except KeyValueError as e:
                raise WriteFailedError(f'record write failed: {e}')

            await self._append_to_index(record.id)

        except AuthorizationDeclined as e:
            message = str(e)
            logger.info(f'Record creation declined: {message}')
            self.reporter.fail(message)
            return CreateResult(success=False, message=message)
        except Exception as e:
            message = f'Submission failed: {str(e) or type(e).__name__}'
            logger.error(message)
            self.reporter.fail(message)
            return CreateResult(success=False, message=message)

        logger.info(f'Created record {record.id}')
        # The display delay starts once the refreshed view is in place
        self.reporter.succeed(SUCCESS_MESSAGE, auto_reset=False)
        await self.load_all()
        self.reporter.schedule_reset()
        return CreateResult(success=True, message=SUCCESS_MESSAGE, record=record)

    async def check_availability(self) -> bool:
        """Check the store and report the outcome through the reporter.

        Returns:
            True if the store reports itself available
        """
        if self.reporter.state is TransactionState.PENDING:
            logger.warning('Skipped availability check while another operation is pending')
            return False

        self.reporter.begin('Checking system availability...')
        try:
            available = await self.client.probe_available()
        except Exception as e:
            logger.error(f'Availability check failed: {e}')
            self.reporter.fail(f'Availability check failed: {str(e) or type(e).__name__}')
            return False

        self.reporter.succeed(f'System is {"available" if available else "unavailable"}')
        return bool(available)

    async def _ensure_available(self) -> None:
        """
        Raises:
            StoreUnavailableError: If the store reports unavailable or the check fails
        """
        try:
            available = await self.client.probe_available()
        except Exception as e:
            raise StoreUnavailableError(f'Availability check failed: {e}')
        if not available:
            raise StoreUnavailableError('Key-value store is not available')

    async def _read_index_for_load(self) -> List[str]:
        try:
            return await self.index.read()
        except DecodeError as e:
            logger.error(f'Error parsing index, treating it as empty: {e}')
        except KeyValueError as e:
            logger.error(f'Error reading index, treating it as empty: {e}')
        return []

    async def _read_index_for_append(self, strict: bool = False) -> List[str]:
        # A failed read becomes an empty index, so the following write can drop
        # previously indexed ids. Strict reads refuse to write instead.
        try:
            return await self.index.read()
        except DecodeError as e:
            if strict:
                raise WriteFailedError(f'index unreadable: {e}')
            logger.error(f'Error parsing index before append, starting from empty: {e}')
        except KeyValueError as e:
            if strict or self.config.strict_index_reads:
                raise WriteFailedError(f'index read failed: {e}')
            logger.error(f'Error reading index before append, starting from empty: {e}')
        return []

    async def _append_to_index(self, record_id: str) -> None:
        """Append one id to the index.

        The store has no compare-and-swap, so concurrent appends can overwrite each
        other. With index_append_attempts > 1 the index is read back after each
        write and the append is repeated while the id is missing.

        Raises:
            WriteFailedError: If the index cannot be written or the append is not confirmed
        """
        attempts = max(1, self.config.index_append_attempts)
        for attempt in range(attempts):
            # Retries already wrote the index once and must not start from empty
            ids = await self._read_index_for_append(strict=attempt > 0)
            if attempt > 0 and record_id in ids:
                return
            ids.append(record_id)

            try:
                await self.index.write(ids)
            except KeyValueError as e:
                raise WriteFailedError(f'index write failed: {e}')

            if attempts == 1:
                return

            try:
                confirmed = await self.index.read()
            except (DecodeError, KeyValueError) as e:
                logger.warning(f'Could not confirm index append for {record_id}: {e}')
                continue
            if record_id in confirmed:
                return
            logger.warning(f'Index append for {record_id} was lost, retrying ({attempt + 1}/{attempts})')

        raise WriteFailedError(f'index append for {record_id} not confirmed after {attempts} attempts')

    async def _load_one(self, record_id: str, semaphore: asyncio.Semaphore) -> Optional[EmotionRecord]:
        async with semaphore:
            try:
                return await self.records.read(record_id)
            except RecordNotFoundError:
                logger.debug(f'No record stored for indexed id {record_id}')
            except DecodeError as e:
                logger.warning(f'Error parsing record {record_id}: {e}')
            except KeyValueError as e:
                logger.warning(f'Error loading record {record_id}: {e}')
            except Exception as e:
                logger.error(f'Unexpected error loading record {record_id}: {e}')
        return None

    def _notify_refresh(self, records: List[EmotionRecord]) -> None:
        for listener in list(self._refresh_listeners):
            try:
                listener(list(records))
            except Exception as e:
                logger.error(f'Refresh listener failed: {e}')
