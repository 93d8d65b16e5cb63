"""
Device image catalog logic.

Contains key derivation helpers, domain models and the catalog service.
"""

from .models import (
    ImageRole,
    OperationImages,
    SignedUrlWindow,
    classify_image_roles,
    device_id_from_key,
    operation_id_from_key,
)
from .service import CatalogService, KeyStore

__all__ = [
    "ImageRole",
    "OperationImages",
    "SignedUrlWindow",
    "classify_image_roles",
    "device_id_from_key",
    "operation_id_from_key",
    "CatalogService",
    "KeyStore",
]
