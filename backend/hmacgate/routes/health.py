"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import get_replay_cache
from ..models import HealthResponse
from ..replay import ReplayCache

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(cache: ReplayCache = Depends(get_replay_cache)) -> HealthResponse:
    """Return a signed health status response.

    The middleware signs health checks like any other route so unauthenticated
    callers learn nothing about the service.
    """

    return HealthResponse(status="ok", replay_cache_entries=cache.active_count())
