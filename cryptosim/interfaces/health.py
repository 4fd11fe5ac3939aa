"""
Health check router.

Liveness check for load balancers. Returns the application status and
version without touching the database.
"""

from fastapi import APIRouter

from cryptosim.core.config import settings
from cryptosim.interfaces.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.version)
