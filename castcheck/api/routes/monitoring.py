"""
Monitoring endpoints.

Liveness check plus the active verification configuration.
"""
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from castcheck import __version__
from castcheck.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str = __version__
    extraction_provider: str
    strict_invariants: bool


@router.get("/health", response_model=HealthResponse, tags=["Monitoring"])
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the server is running.
    """
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        extraction_provider=settings.extraction_provider,
        strict_invariants=settings.strict_invariants,
    )
