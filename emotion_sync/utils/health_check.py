"""
Health check utilities for the application.
"""

from typing import Any, Dict, Optional

from .config import config
from .kv_client import KeyValueClient, build_key_value_client
from .logging_config import get_logger

logger = get_logger(__name__)


async def check_health(client: Optional[KeyValueClient] = None) -> bool:
    """Check the health of the key-value store.

    Args:
        client: Key-value client to check (built from config if None)

    Returns:
        True if the store is available, False otherwise
    """
    health_status = await get_health_status(client)
    healthy = health_status['kv_store'].get('healthy', False)

    if healthy:
        logger.info('Key-value store is healthy')
    else:
        logger.warning('Key-value store is unhealthy')

    return healthy


async def get_health_status(client: Optional[KeyValueClient] = None) -> Dict[str, Any]:
    """Get detailed health status of each component.

    Returns:
        Dictionary with health status of each component
    """
    health_status = {}

    try:
        kv_client = client or build_key_value_client(config.kv_store)
        health_status['kv_store'] = {
            'healthy': bool(await kv_client.probe_available()),
            'service': 'Key-value store',
            'backend': config.kv_store.backend
        }
    except Exception as e:
        health_status['kv_store'] = {'healthy': False, 'service': 'Key-value store', 'error': str(e)}

    return health_status


async def get_system_info(client: Optional[KeyValueClient] = None) -> Dict[str, Any]:
    """Get system information and configuration.

    Returns:
        Dictionary with system information
    """
    return {
        'service_name': 'EmotionSync',
        'version': '1.0.0',
        'configuration': {
            'kv_backend': config.kv_store.backend,
            'kv_bucket': config.kv_store.bucket,
            'index_key': config.sync.index_key,
            'record_key_prefix': config.sync.record_key_prefix,
            'index_append_attempts': config.sync.index_append_attempts
        },
        'health_status': await get_health_status(client)
    }
