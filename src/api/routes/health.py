"""
Liveness endpoint for load balancers and process supervisors.

Answers from process state only and never calls the object store, so a
slow container cannot make the probe fail.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel

from ..dependencies import SettingsDep

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    mock_mode: bool


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=settings.api_version,
        mock_mode=settings.storage_mock_mode,
    )
