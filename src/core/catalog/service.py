"""
Catalog queries over an object store.

The service turns flat key listings into the device → operation → image
hierarchy. It is framework-agnostic: it doesn't know about HTTP, and it
only needs something that can list keys and sign URLs.
"""

import logging
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable, Protocol

from .models import (
    OperationImages,
    SignedUrlWindow,
    classify_image_roles,
    device_id_from_key,
    device_prefix,
    operation_id_from_key,
    operation_prefix,
    utc_now,
)

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_TTL = timedelta(hours=48)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class KeyStore(Protocol):
    """
    Interface for the object store backing the catalog.

    Using a Protocol here means the service doesn't care whether keys
    come from S3, R2 or an in-memory mock.
    """

    def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        """Lazily yield keys starting with prefix."""
        ...

    async def generate_signed_url(
        self,
        key: str,
        valid_from: datetime,
        valid_until: datetime,
    ) -> str:
        """Sign a read-only URL for key."""
        ...


# ---------------------------------------------------------------------------
# Catalog Service
# ---------------------------------------------------------------------------

class CatalogService:
    """
    Answers the three catalog queries.

    Stateless apart from the store handle, so one instance can serve
    concurrent requests. Store failures propagate to the caller untouched.
    """

    def __init__(
        self,
        store: KeyStore,
        signed_url_ttl: timedelta = DEFAULT_SIGNED_URL_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if signed_url_ttl <= timedelta(0):
            raise ValueError("signed_url_ttl must be positive")
        self._store = store
        self._signed_url_ttl = signed_url_ttl
        self._clock = clock

    async def list_devices(self) -> list[str]:
        """Distinct first key segments across the whole container."""
        devices: dict[str, None] = {}

        async for key in self._store.list_keys():
            device_id = device_id_from_key(key)
            if device_id:
                devices[device_id] = None

        return list(devices)

    async def list_operations(self, device_id: str) -> list[str]:
        """
        Distinct second key segments under ``device_id/``.

        An unknown device gives an empty list; existence is not checked.
        """
        operations: dict[str, None] = {}

        async for key in self._store.list_keys(device_prefix(device_id)):
            operation_id = operation_id_from_key(key)
            if operation_id:
                operations[operation_id] = None

        return list(operations)

    async def get_operation_images(
        self,
        device_id: str,
        operation_id: str,
    ) -> OperationImages:
        """
        Signed before/after URLs for one operation.

        Every matching key is signed; when several keys match a role, the
        last one in the store's listing order wins.
        """
        prefix = operation_prefix(device_id, operation_id)
        images = OperationImages()

        logger.debug("Checking prefix", extra={"prefix": prefix})

        async for key in self._store.list_keys(prefix):
            roles = classify_image_roles(key)
            if not roles:
                continue

            window = SignedUrlWindow.starting_at(self._clock(), self._signed_url_ttl)
            url = await self._store.generate_signed_url(
                key,
                valid_from=window.valid_from,
                valid_until=window.valid_until,
            )
            for role in roles:
                images.assign(role, url)

        return images
