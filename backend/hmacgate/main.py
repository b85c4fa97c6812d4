"""Entry point for the FastAPI application."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator

import structlog
from fastapi import FastAPI

from .config import SECURITY_CONFIG
from .credentials import CredentialProvider
from .gate import AuthenticationGate
from .log import configure_logging
from .middleware import SignatureMiddleware
from .replay import InMemoryReplayCache, ReplayCache, ReplayGuard
from .repositories.accounts import AccountsRepository
from .routes import contacts
from .routes import health
from .routes import values
from .timestamps import Clock, TimestampValidator, utc_now

logger = structlog.get_logger(__name__)


async def _sweep_replay_cache(cache: InMemoryReplayCache, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = cache.purge_expired()
        if removed:
            logger.debug("replay_cache_swept", removed=removed)


def create_app(
    *,
    credential_provider: CredentialProvider | None = None,
    replay_cache: ReplayCache | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        credential_provider: Source of account secrets. Defaults to the SQLite
            accounts store.
        replay_cache: Replay cache to use instead of a fresh in-memory one.
        clock: Time source shared by the freshness check and the replay cache.
    """

    configure_logging()
    now = clock or utc_now

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        cache = replay_cache if replay_cache is not None else InMemoryReplayCache(clock=now)
        app.state.replay_cache = cache
        app.state.gate = AuthenticationGate(
            credentials=credential_provider or AccountsRepository(),
            replay_guard=ReplayGuard(cache),
            timestamp_validator=TimestampValidator(clock=now),
        )

        sweeper = None
        if isinstance(cache, InMemoryReplayCache):
            sweeper = asyncio.create_task(
                _sweep_replay_cache(cache, SECURITY_CONFIG.replay_sweep_interval_seconds)
            )
        logger.info("signing_gate_started")
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with suppress(asyncio.CancelledError):
                    await sweeper
            if replay_cache is None:
                cache.clear()
            logger.info("signing_gate_stopped")

    app = FastAPI(
        title="HMAC Signing Gate",
        version="0.1.0",
        description=(
            "Business endpoints behind HMAC request signing. Every request carries a "
            "Timestamp header and an Authentication header of the form username:signature; "
            "each signature is accepted once."
        ),
        lifespan=lifespan,
    )
    app.add_middleware(SignatureMiddleware, exempt_paths=SECURITY_CONFIG.exempt_paths)
    app.include_router(health.router)
    app.include_router(values.router)
    app.include_router(contacts.router)
    return app


app = create_app()
