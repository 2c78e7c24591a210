"""Liveness and dependency checks for the scheduler and its notification queue."""

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from app.config import settings
from app.core.redis_client import check_redis_connection
from app.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Scheduler health, with per-dependency results on the detailed check."""

    status: str
    version: str
    environment: str
    clinic_timezone: str
    message_channel: str
    checks: dict[str, str] = Field(default_factory=dict)


def _base_response(overall: str, checks: dict[str, str] | None = None) -> HealthResponse:
    return HealthResponse(
        status=overall,
        version=settings.app_version,
        environment=settings.environment,
        clinic_timezone=settings.clinic_timezone,
        message_channel="mock" if settings.whatsapp_mock else "whatsapp",
        checks=checks or {},
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Report that the API process is up, without touching dependencies."""
    return _base_response("healthy")


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> HealthResponse:
    """
    Check the appointment database and the notification queue broker.

    Bookings still succeed while the broker is down, so a failed queue check
    reports ``degraded`` rather than an error status.

    Returns:
        Overall status plus one entry per dependency
    """
    checks = {
        "database": "healthy" if await check_database_connection() else "unhealthy",
        "notification_queue": "healthy" if await check_redis_connection() else "unhealthy",
    }
    overall = "healthy" if all(value == "healthy" for value in checks.values()) else "degraded"

    return _base_response(overall, checks)
