"""Reusable FastAPI dependency providers."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from .replay import ReplayCache


def get_authenticated_username(request: Request) -> str:
    """Return the username the signature middleware admitted the request for."""

    username = getattr(request.state, "username", None)
    if username is None:
        # Only reachable when a route is served without the middleware.
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized.")
    return username


def get_replay_cache(request: Request) -> ReplayCache:
    """Expose the application's replay cache (e.g. for health reporting)."""

    return request.app.state.replay_cache

