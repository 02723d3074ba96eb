"""Storage configuration for the blob storage backends.

Built from the application Settings. Supports a local filesystem root
(development, single-host deployments) and S3-compatible object storage
(MinIO in development, AWS S3 in production) behind the same interface.
"""

from dataclasses import dataclass
from typing import Optional

from config import Settings


@dataclass
class StorageConfig:
    """Configuration for blob storage.

    Attributes:
        driver: "local" or "s3"
        root: Root directory for the local driver
        base_url: Public URL prefix for served files
        endpoint_url: S3 endpoint URL (None for AWS S3 default endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: S3 bucket name
        region: AWS region (default: 'us-east-1')
    """
    driver: str
    root: str
    base_url: str
    endpoint_url: Optional[str] = None
    access_key: str = ""
    secret_key: str = ""
    bucket_name: str = ""
    region: str = "us-east-1"


def load_storage_config(settings: Settings) -> StorageConfig:
    """Load storage configuration from application settings.

    Environment Variables:
        STORAGE_DRIVER: "local" (default) or "s3"
        STORAGE_ROOT: Directory for the local driver
        STORAGE_BASE_URL: URL prefix for files served by this API
        S3_ENDPOINT_URL: MinIO endpoint, unset for AWS S3
        S3_ACCESS_KEY_ID / S3_SECRET_ACCESS_KEY: Credentials
        S3_BUCKET_NAME: Bucket name
        S3_REGION: AWS region

    Example:
        # For MinIO (development):
        STORAGE_DRIVER=s3
        S3_ENDPOINT_URL=http://localhost:9000
        S3_BUCKET_NAME=publications
    """
    return StorageConfig(
        driver=settings.STORAGE_DRIVER,
        root=settings.STORAGE_ROOT,
        base_url=settings.STORAGE_BASE_URL,
        endpoint_url=settings.S3_ENDPOINT_URL,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
    )


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if config.driver == "local":
        if not config.root:
            raise ValueError("STORAGE_ROOT is required for the local storage driver")
        return

    if config.driver != "s3":
        raise ValueError(f"Unknown storage driver: {config.driver}")

    if not config.access_key:
        raise ValueError("Storage access_key is required")

    if not config.secret_key:
        raise ValueError("Storage secret_key is required")

    if not config.bucket_name:
        raise ValueError("Storage bucket_name is required")

    if config.endpoint_url:
        # MinIO configuration
        if not config.endpoint_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid endpoint_url: {config.endpoint_url}. "
                "Must start with http:// or https://"
            )
    elif not config.region:
        raise ValueError("AWS region is required when using S3 (S3_ENDPOINT_URL not set)")
