"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from shared.config import get_settings
from shared.database import is_supabase_configured

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str
    n8n: str
    telegram: str
    billing: str


def _state(configured: bool) -> str:
    return "configured" if configured else "not_configured"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version="0.1.0")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports which integrations are configured. Without Supabase the API
    runs on in-memory storage and reports itself as degraded.
    """
    settings = get_settings()
    database = is_supabase_configured()
    return ReadinessResponse(
        status="ready" if database else "degraded",
        database="supabase" if database else "in_memory",
        n8n=_state(bool(settings.n8n_base_url and settings.n8n_api_key)),
        telegram=_state(bool(settings.telegram_bot_token)),
        billing=_state(bool(settings.stripe_secret_key)),
    )
