"""Freshness checks for client-declared request timestamps."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from .config import SECURITY_CONFIG

Clock = Callable[[], datetime]

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def parse_timestamp(value: str, *, fmt: str = SECURITY_CONFIG.timestamp_format) -> datetime | None:
    """Parse ``value`` as a UTC timestamp, returning ``None`` when malformed."""

    try:
        parsed = datetime.strptime(value, fmt)
    except (TypeError, ValueError):
        return None
    # strptime accepts unpadded fields; only the exact rendering is valid.
    if parsed.strftime(fmt) != value:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def format_timestamp(moment: datetime, *, fmt: str = SECURITY_CONFIG.timestamp_format) -> str:
    """Render ``moment`` in the header format, converting to UTC first."""

    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(fmt)


class TimestampValidator:
    """Accepts timestamps within a symmetric window around the server clock.

    The caller only learns pass/fail; which bound was crossed is logged.
    """

    def __init__(
        self,
        *,
        window_seconds: int = SECURITY_CONFIG.freshness_window_seconds,
        clock: Clock = utc_now,
        fmt: str = SECURITY_CONFIG.timestamp_format,
    ) -> None:
        self._window = timedelta(seconds=window_seconds)
        self._clock = clock
        self._fmt = fmt

    def validate(self, value: str) -> bool:
        return self.check(value) is None

    def check(self, value: str) -> str | None:
        """Return ``None`` for a fresh timestamp, otherwise a failure label."""

        timestamp = parse_timestamp(value, fmt=self._fmt)
        if timestamp is None:
            return "malformed"

        now = self._clock()
        if timestamp < now - self._window:
            logger.debug("timestamp_too_old", timestamp=value, now=now.isoformat())
            return "too_old"
        if timestamp > now + self._window:
            logger.debug("timestamp_in_future", timestamp=value, now=now.isoformat())
            return "in_future"
        return None
