"""
Object storage integration for device images.

Supports S3-compatible stores (S3, R2, MinIO) via boto3.
Includes mock mode for local development without credentials.
"""

from .client import (
    MockObjectStore,
    ObjectStore,
    S3ObjectStore,
    StorageConfig,
    StorageError,
    create_object_store,
)

__all__ = [
    "MockObjectStore",
    "ObjectStore",
    "S3ObjectStore",
    "StorageConfig",
    "StorageError",
    "create_object_store",
]
