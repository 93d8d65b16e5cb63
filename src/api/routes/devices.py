"""
Device catalog endpoints.

Browse the device → operation → image hierarchy stored in the object
container and fetch signed URLs for an operation's before/after images.

All three endpoints share one failure contract: any storage error becomes
a 500 with a fixed, endpoint-specific message. The underlying error is
logged here and never sent to the client.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..dependencies import CatalogServiceDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class OperationImagesResponse(BaseModel):
    """Signed URLs for an operation's before/after pair."""
    before: str | None = Field(None, description="Signed URL of the 'before' image, or null")
    after: str | None = Field(None, description="Signed URL of the 'after' image, or null")


class ErrorResponse(BaseModel):
    """Fixed error body returned when the object store fails."""
    error: str


def _failure(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=message).model_dump(),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=list[str],
    status_code=status.HTTP_200_OK,
    summary="List devices",
    description="Distinct device identifiers found in the container",
    responses={500: {"model": ErrorResponse}},
)
async def list_devices(catalog: CatalogServiceDep):
    try:
        return await catalog.list_devices()
    except Exception as e:
        logger.error(
            "Error fetching devices",
            extra={"error": str(e)},
            exc_info=e,
        )
        return _failure("Failed to fetch devices")


@router.get(
    "/{device_id}/operations",
    response_model=list[str],
    status_code=status.HTTP_200_OK,
    summary="List operations for a device",
    description="Distinct operation identifiers under a device. Unknown devices yield an empty list.",
    responses={500: {"model": ErrorResponse}},
)
async def list_operations(device_id: str, catalog: CatalogServiceDep):
    try:
        return await catalog.list_operations(device_id)
    except Exception as e:
        logger.error(
            "Error fetching operations",
            extra={"device_id": device_id, "error": str(e)},
            exc_info=e,
        )
        return _failure("Failed to fetch operations")


@router.get(
    "/{device_id}/{operation_id}/images",
    response_model=OperationImagesResponse,
    status_code=status.HTTP_200_OK,
    summary="Get before/after images",
    description="Signed, read-only URLs for the operation's before and after images",
    responses={500: {"model": ErrorResponse}},
)
async def get_operation_images(
    device_id: str,
    operation_id: str,
    catalog: CatalogServiceDep,
):
    """
    Sign the before/after images of one operation.

    A fresh URL is signed on every call; nothing is cached. Either field
    is null when no object under the operation matches that role.
    """
    try:
        images = await catalog.get_operation_images(device_id, operation_id)
    except Exception as e:
        logger.error(
            "Error fetching images",
            extra={
                "device_id": device_id,
                "operation_id": operation_id,
                "error": str(e),
            },
            exc_info=e,
        )
        return _failure("Failed to fetch images")

    logger.info(
        "Resolved operation images",
        extra={
            "device_id": device_id,
            "operation_id": operation_id,
            "has_before": images.before is not None,
            "has_after": images.after is not None,
        }
    )

    return OperationImagesResponse(before=images.before, after=images.after)
