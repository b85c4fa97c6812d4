"""Replay protection keyed by request signature.

A signature, once presented, is held for the replay TTL. Any request bearing
it again before it expires is a replay.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Protocol

import structlog

from .config import SECURITY_CONFIG, ConfigurationError
from .timestamps import Clock, utc_now

logger = structlog.get_logger(__name__)


class ReplayCache(Protocol):
    """Storage for seen signatures."""

    def insert_if_absent(self, signature: str, ttl: timedelta) -> bool:
        """Atomically store ``signature`` unless a live entry exists.

        Returns ``True`` when the signature was inserted (not a replay).
        """

    def contains(self, signature: str) -> bool:
        """Return whether a live entry exists for ``signature``."""

    def active_count(self) -> int:
        """Return the number of live entries."""


class InMemoryReplayCache:
    """Process-local replay cache guarded by a lock.

    Expired entries are ignored on read and removed by :meth:`purge_expired`,
    which the application runs on a timer.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, datetime] = {}

    def insert_if_absent(self, signature: str, ttl: timedelta) -> bool:
        with self._lock:
            now = self._clock()
            expires_at = self._entries.get(signature)
            if expires_at is not None and expires_at > now:
                return False
            self._entries[signature] = now + ttl
            return True

    def contains(self, signature: str) -> bool:
        with self._lock:
            expires_at = self._entries.get(signature)
            if expires_at is None:
                return False
            if expires_at <= self._clock():
                del self._entries[signature]
                return False
            return True

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""

        with self._lock:
            now = self._clock()
            expired = [signature for signature, expires_at in self._entries.items() if expires_at <= now]
            for signature in expired:
                del self._entries[signature]
        return len(expired)

    def active_count(self) -> int:
        """Return the number of unexpired entries."""

        with self._lock:
            now = self._clock()
            return sum(1 for expires_at in self._entries.values() if expires_at > now)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class ReplayGuard:
    """Signature-level replay checks on top of a :class:`ReplayCache`."""

    def __init__(
        self,
        cache: ReplayCache,
        *,
        ttl_seconds: int = SECURITY_CONFIG.replay_ttl_seconds,
    ) -> None:
        if ttl_seconds <= 0:
            raise ConfigurationError("Replay TTL must be positive.")
        self._cache = cache
        self._ttl = timedelta(seconds=ttl_seconds)

    @property
    def cache(self) -> ReplayCache:
        return self._cache

    def seen(self, signature: str) -> bool:
        return self._cache.contains(signature)

    def record(self, signature: str) -> None:
        """Remember ``signature``; an existing live entry is left untouched."""

        self._cache.insert_if_absent(signature, self._ttl)

    def check_and_record(self, signature: str) -> bool:
        """Record ``signature`` and return ``False`` if it was already live."""

        fresh = self._cache.insert_if_absent(signature, self._ttl)
        if not fresh:
            logger.info("replayed_signature_rejected")
        return fresh
