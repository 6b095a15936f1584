"""Storage configuration for S3-compatible object storage.

Built from application settings and validated before the adapter is created.
Supports both MinIO (development) and AWS S3 (production) with the same interface.
"""

from dataclasses import dataclass
from typing import Optional

from config import Settings, get_settings


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL (e.g., 'http://localhost:9000' for MinIO,
                      None for AWS S3 which uses default regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: Bucket for published and draft content
        region: AWS region (default: 'us-east-1')
        worm_bucket_name: Optional write-once bucket for declared records
        hash_algorithm: Label recorded next to every content hash
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"
    worm_bucket_name: Optional[str] = None
    hash_algorithm: str = "SHA256"


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    """Build storage configuration from settings.

    Args:
        settings: Settings instance (defaults to the cached application settings)

    Returns:
        StorageConfig: Validated storage configuration

    Raises:
        ValueError: If the configuration is invalid
    """
    settings = settings or get_settings()
    config = StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        worm_bucket_name=settings.WORM_BUCKET_NAME or None,
        hash_algorithm=settings.HASH_ALGORITHM,
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Args:
        config: Storage configuration to validate

    Raises:
        ValueError: If configuration is invalid
    """
    if not config.access_key:
        raise ValueError("Storage access_key is required")

    if not config.secret_key:
        raise ValueError("Storage secret_key is required")

    if not config.bucket_name:
        raise ValueError("Storage bucket_name is required")

    if config.worm_bucket_name and config.worm_bucket_name == config.bucket_name:
        raise ValueError("WORM bucket must differ from the content bucket")

    if config.endpoint_url:
        # MinIO configuration
        if not config.endpoint_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid endpoint_url: {config.endpoint_url}. "
                "Must start with http:// or https://"
            )
    else:
        # AWS S3 configuration
        if not config.region:
            raise ValueError("AWS region is required when using S3 (S3_ENDPOINT_URL not set)")
