"""
Configuration management for the key-value backend and engine settings.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class KeyValueStoreConfig:
    """Configuration for the backing key-value store."""
    backend: str  # 'memory' or 's3'
    bucket: str
    prefix: str
    region: str
    retry_attempts: int
    retry_delay: float
    connect_timeout: int
    read_timeout: int


@dataclass
class SyncConfig:
    """Configuration for index and record synchronization."""
    index_key: str
    record_key_prefix: str
    load_concurrency: int
    index_append_attempts: int  # 1 keeps the plain read-modify-write
    strict_index_reads: bool


@dataclass
class ReporterConfig:
    """Display delays (seconds) before a finished transaction returns to idle."""
    success_delay: float
    error_delay: float


@dataclass
class IdentityConfig:
    """Configuration for the writer identity."""
    owner: str


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    kv_store: KeyValueStoreConfig
    sync: SyncConfig
    reporter: ReporterConfig
    identity: IdentityConfig
    mcp: MCPConfig


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    # Key-value store configuration
    kv_store_config = KeyValueStoreConfig(backend=os.getenv('KV_BACKEND', 'memory').lower(),
                                          bucket=os.getenv('KV_S3_BUCKET', ''),
                                          prefix=os.getenv('KV_S3_PREFIX', 'emotions/'),
                                          region=os.getenv('KV_AWS_REGION', 'us-east-1'),
                                          retry_attempts=int(os.getenv('KV_RETRY_ATTEMPTS', '3')),
                                          retry_delay=float(os.getenv('KV_RETRY_DELAY', '1.0')),
                                          connect_timeout=int(os.getenv('KV_CONNECT_TIMEOUT', '10')),
                                          read_timeout=int(os.getenv('KV_READ_TIMEOUT', '30')))

    # Sync engine configuration
    sync_config = SyncConfig(index_key=os.getenv('SYNC_INDEX_KEY', 'index'),
                             record_key_prefix=os.getenv('SYNC_RECORD_KEY_PREFIX', 'record_'),
                             load_concurrency=int(os.getenv('SYNC_LOAD_CONCURRENCY', '8')),
                             index_append_attempts=int(os.getenv('SYNC_INDEX_APPEND_ATTEMPTS', '1')),
                             strict_index_reads=_env_bool('SYNC_STRICT_INDEX_READS', 'false'))

    # Transaction status configuration
    reporter_config = ReporterConfig(success_delay=float(os.getenv('REPORTER_SUCCESS_DELAY', '2.0')),
                                     error_delay=float(os.getenv('REPORTER_ERROR_DELAY', '3.0')))

    identity_config = IdentityConfig(owner=os.getenv('EMOTION_OWNER', ''))

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     kv_store=kv_store_config,
                     sync=sync_config,
                     reporter=reporter_config,
                     identity=identity_config,
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
