"""S3-compatible storage adapter and its configuration"""

from .errors import ContentIntegrityError, StorageError
from .s3_storage_adapter import S3StorageAdapter, create_storage_adapters
from .storage_config import StorageConfig, load_storage_config, validate_storage_config

__all__ = [
    "StorageError",
    "ContentIntegrityError",
    "S3StorageAdapter",
    "create_storage_adapters",
    "StorageConfig",
    "load_storage_config",
    "validate_storage_config",
]
