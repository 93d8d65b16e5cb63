"""
FastAPI dependency injection.

Dependencies provide the object store, the catalog service and
configuration to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests via app.dependency_overrides
- The store handle is built once at startup, not per request

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings
from ..core.catalog.service import CatalogService
from ..infrastructure.storage.client import (
    ObjectStore,
    StorageConfig,
    create_object_store,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Object Store Handle
# ---------------------------------------------------------------------------

def build_object_store(settings: Settings) -> ObjectStore:
    """
    Construct the process-wide object store from configuration.

    Called once from the application lifespan. The returned handle is
    read-only from our side and safe to share between requests.
    """
    if settings.storage_mock_mode:
        store = create_object_store(
            mock_mode=True,
            seed_keys=settings.storage_mock_keys_list,
        )
        logger.info("Created mock object store")
        return store

    config = StorageConfig(
        access_key_id=settings.storage_access_key_id,
        secret_access_key=settings.storage_secret_access_key,
        container_name=settings.storage_container_name,
        endpoint_url=settings.storage_endpoint_url,
        region=settings.storage_region,
    )
    store = create_object_store(config=config)
    logger.info("Created S3 object store", extra={"container": config.container_name})
    return store


def get_app_settings(request: Request) -> Settings:
    """Provide the settings the application was created with."""
    return request.app.state.settings


def get_object_store(request: Request) -> ObjectStore:
    """Provide the object store built at startup."""
    return request.app.state.object_store


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_catalog_service(
    store: Annotated[ObjectStore, Depends(get_object_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CatalogService:
    """
    Provide a CatalogService bound to the shared store.

    The service is stateless, so a new instance per request costs nothing.
    """
    return CatalogService(
        store=store,
        signed_url_ttl=timedelta(hours=settings.signed_url_ttl_hours),
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
