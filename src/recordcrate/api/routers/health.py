"""Liveness endpoint for Docker healthchecks and the frontend's status badge."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from recordcrate.api.dependencies import get_settings_dep
from recordcrate.api.schemas import HealthResponse
from recordcrate.config import Settings

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings_dep)) -> HealthResponse:
    return HealthResponse(ok=True, service=settings.app_name, time=datetime.now(UTC))
