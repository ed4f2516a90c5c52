"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from shared.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    storage: str
    provider: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports the storage backend in use and whether Supabase is configured
    for it. The provider is always callable with a per-request key; a
    server-side key only matters for the CLI.
    """
    settings = get_settings()

    if settings.storage_backend == "memory":
        storage = "memory"
    elif settings.supabase_url and settings.supabase_service_role_key:
        storage = "supabase"
    else:
        storage = "unconfigured"

    return ReadinessResponse(
        status="ready" if storage != "unconfigured" else "not_ready",
        storage=storage,
        provider="configured" if settings.openrouter_api_key else "per-request",
    )
