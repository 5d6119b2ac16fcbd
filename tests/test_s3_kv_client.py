import asyncio
import io

import boto3
import pytest
from botocore.exceptions import ReadTimeoutError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from emotion_sync.utils.config import KeyValueStoreConfig
from emotion_sync.utils.kv_client import KeyValueError
from emotion_sync.utils.s3_kv_client import S3KeyValueClient


def _config(**overrides) -> KeyValueStoreConfig:
    values = dict(backend='s3',
                  bucket='emotions',
                  prefix='app/',
                  region='us-east-1',
                  retry_attempts=1,
                  retry_delay=0.0,
                  connect_timeout=1,
                  read_timeout=1)
    values.update(overrides)
    return KeyValueStoreConfig(**values)


@pytest.fixture
def s3():
    return boto3.client('s3',
                        region_name='us-east-1',
                        aws_access_key_id='testing',
                        aws_secret_access_key='testing')


def test_read_returns_object_body(s3) -> None:
    client = S3KeyValueClient(_config(), s3_client=s3)
    body = b'["a","b"]'

    with Stubber(s3) as stubber:
        stubber.add_response('get_object', {'Body': StreamingBody(io.BytesIO(body), len(body))}, {
            'Bucket': 'emotions',
            'Key': 'app/index'
        })
        assert asyncio.run(client.read('index')) == body
        stubber.assert_no_pending_responses()


class StalledBody:
    """Response body whose stream times out while being read."""

    def read(self, *args):
        raise ReadTimeoutError(endpoint_url='https://s3.us-east-1.amazonaws.com')


def test_body_read_timeout_is_retried(s3) -> None:
    client = S3KeyValueClient(_config(retry_attempts=2), s3_client=s3)
    body = b'["a"]'

    with Stubber(s3) as stubber:
        stubber.add_response('get_object', {'Body': StalledBody()})
        stubber.add_response('get_object', {'Body': StreamingBody(io.BytesIO(body), len(body))})
        assert asyncio.run(client.read('index')) == body
        stubber.assert_no_pending_responses()


def test_body_read_timeout_raises_key_value_error(s3) -> None:
    client = S3KeyValueClient(_config(), s3_client=s3)

    with Stubber(s3) as stubber:
        stubber.add_response('get_object', {'Body': StalledBody()})
        with pytest.raises(KeyValueError, match='Read timeout'):
            asyncio.run(client.read('index'))


def test_missing_key_reads_as_empty_without_retry(s3) -> None:
    client = S3KeyValueClient(_config(retry_attempts=3), s3_client=s3)

    with Stubber(s3) as stubber:
        stubber.add_client_error('get_object', service_error_code='NoSuchKey', http_status_code=404)
        assert asyncio.run(client.read('record_x1')) == b''
        stubber.assert_no_pending_responses()


def test_write_puts_json_object(s3) -> None:
    client = S3KeyValueClient(_config(), s3_client=s3)

    with Stubber(s3) as stubber:
        stubber.add_response('put_object', {}, {
            'Bucket': 'emotions',
            'Key': 'app/index',
            'Body': b'["a"]',
            'ContentType': 'application/json'
        })
        assert asyncio.run(client.write('index', b'["a"]')) is True
        stubber.assert_no_pending_responses()


def test_exhausted_retries_raise(s3) -> None:
    client = S3KeyValueClient(_config(retry_attempts=2), s3_client=s3)

    with Stubber(s3) as stubber:
        stubber.add_client_error('put_object', service_error_code='InternalError', http_status_code=500)
        stubber.add_client_error('put_object', service_error_code='InternalError', http_status_code=500)
        with pytest.raises(KeyValueError):
            asyncio.run(client.write('index', b'[]'))
        stubber.assert_no_pending_responses()


def test_availability_uses_head_bucket(s3) -> None:
    client = S3KeyValueClient(_config(), s3_client=s3)

    with Stubber(s3) as stubber:
        stubber.add_response('head_bucket', {}, {'Bucket': 'emotions'})
        stubber.add_client_error('head_bucket', service_error_code='403', http_status_code=403)
        assert asyncio.run(client.probe_available()) is True
        assert asyncio.run(client.probe_available()) is False


def test_bucket_is_required() -> None:
    with pytest.raises(KeyValueError):
        S3KeyValueClient(_config(bucket=''))
