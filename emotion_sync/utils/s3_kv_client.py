"""
Amazon S3 key-value client with retry logic and error handling.
"""

import asyncio
import random
import time
from typing import Any, Callable, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import KeyValueStoreConfig
from .kv_client import KeyValueError
from .logging_config import get_logger

logger = get_logger(__name__)

MISSING_KEY_CODES = ('NoSuchKey', '404', 'NotFound')


def _error_code(error: ClientError) -> str:
    return str(error.response.get('Error', {}).get('Code', ''))


class S3KeyValueClient:
    """Key-value store on one S3 bucket, one object per key."""

    def __init__(self, config: KeyValueStoreConfig, s3_client: Optional[Any] = None):
        """
        Initialize S3 key-value client.

        Args:
            config: KeyValueStoreConfig instance with bucket and retry parameters
            s3_client: Preconfigured boto3 S3 client (created from config if None)
        """
        if not config.bucket:
            raise KeyValueError('KV_S3_BUCKET must be set for the s3 backend')

        self.config = config
        self.bucket = config.bucket
        self.s3 = s3_client or boto3.client(
            's3',
            region_name=config.region,
            config=BotoConfig(
                connect_timeout=config.connect_timeout,
                read_timeout=config.read_timeout,
                retries={'max_attempts': 0}  # We handle retries manually
            ))

        logger.info(f'Initialized S3 key-value client for bucket: {self.bucket}')

    def _object_key(self, key: str) -> str:
        return f'{self.config.prefix}{key}'

    def _call_with_retry(self, operation: Callable[..., Any], **kwargs) -> Any:
        """
        Make an S3 API call with retry logic.

        Missing-key errors are returned to the caller immediately, never retried.

        Args:
            operation: Callable issuing the S3 request
            **kwargs: Request parameters

        Returns:
            Result of the operation

        Raises:
            ClientError: If the key does not exist
            KeyValueError: If all retry attempts fail
        """
        name = getattr(operation, '__name__', 'request')
        for attempt in range(self.config.retry_attempts):
            try:
                logger.debug(f'S3 {name} attempt {attempt + 1}/{self.config.retry_attempts}')
                return operation(**kwargs)

            except ClientError as e:
                if _error_code(e) in MISSING_KEY_CODES:
                    raise
                last_error = e
            except BotoCoreError as e:
                last_error = e

            logger.warning(f'S3 {name} attempt {attempt + 1}/{self.config.retry_attempts} failed: {last_error}')
            if attempt < self.config.retry_attempts - 1:
                # Exponential backoff with jitter
                delay = self.config.retry_delay * (2**attempt) + random.uniform(0, 1)
                time.sleep(delay)
            else:
                raise KeyValueError(f'S3 {name} failed after {self.config.retry_attempts} attempts: {last_error}')

        raise KeyValueError(f'S3 {name} failed after {self.config.retry_attempts} attempts')

    def _get_object_body(self, **kwargs) -> bytes:
        # The body streams after the response arrives, so reading it is part of the retried call
        return self.s3.get_object(**kwargs)['Body'].read()

    def _get(self, key: str) -> bytes:
        try:
            return self._call_with_retry(self._get_object_body, Bucket=self.bucket, Key=self._object_key(key))
        except ClientError:
            logger.debug(f'Key not found in S3: {key}')
            return b''

    def _put(self, key: str, value: bytes) -> bool:
        self._call_with_retry(self.s3.put_object,
                              Bucket=self.bucket,
                              Key=self._object_key(key),
                              Body=value,
                              ContentType='application/json')
        logger.debug(f'Stored {len(value)} bytes at {key}')
        return True

    def _head_bucket(self) -> bool:
        try:
            self.s3.head_bucket(Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning(f'S3 bucket {self.bucket} is not reachable: {e}')
            return False

    async def read(self, key: str) -> bytes:
        """
        Read the value stored under a key.

        Returns:
            Stored bytes, empty if the key is absent

        Raises:
            KeyValueError: If the request keeps failing
        """
        return await asyncio.to_thread(self._get, key)

    async def write(self, key: str, value: bytes) -> bool:
        """
        Store a value under a key, replacing any previous value.

        Raises:
            KeyValueError: If the request keeps failing
        """
        return await asyncio.to_thread(self._put, key, value)

    async def probe_available(self) -> bool:
        return await asyncio.to_thread(self._head_bucket)
