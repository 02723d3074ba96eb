"""Blob storage adapters and the factory used by the API."""

from functools import lru_cache

from config import get_settings
from domain.storage.ports.blob_storage_port import BlobStoragePort
from .local_storage_adapter import LocalStorageAdapter
from .s3_storage_adapter import S3StorageAdapter
from .storage_config import StorageConfig, load_storage_config, validate_storage_config


def build_storage(config: StorageConfig) -> BlobStoragePort:
    """Create the adapter selected by config.driver."""
    validate_storage_config(config)
    if config.driver == "s3":
        return S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )
    return LocalStorageAdapter(config.root, base_url=config.base_url)


@lru_cache()
def get_storage() -> BlobStoragePort:
    """FastAPI dependency returning the process-wide storage adapter.

    Tests override it through app.dependency_overrides.
    """
    return build_storage(load_storage_config(get_settings()))


__all__ = [
    "LocalStorageAdapter",
    "S3StorageAdapter",
    "StorageConfig",
    "build_storage",
    "get_storage",
    "load_storage_config",
    "validate_storage_config",
]
