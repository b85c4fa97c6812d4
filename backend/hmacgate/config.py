"""Configuration helpers for the signing gate.

This module centralises runtime configuration. Credential secrets never live
here; they are owned by the configured credential provider.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Final


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class SecurityConfig:
    """Request-signing configuration options.

    Attributes:
        timestamp_header: Header carrying the client-declared UTC timestamp.
        authentication_header: Header carrying ``username:signature``.
        timestamp_format: ``strptime`` pattern for the timestamp header. This is
            the universal sortable form, e.g. ``2024-01-01 12:00:00Z``.
        freshness_window_seconds: Allowed skew, in either direction, between the
            client timestamp and the server clock.
        replay_ttl_seconds: How long a seen signature stays in the replay cache.
            Matches the freshness window so a captured request can never be
            replayed while its timestamp is still acceptable.
        replay_sweep_interval_seconds: Period of the background purge of
            expired replay-cache entries.
        credential_lookup_timeout_seconds: Upper bound on a credential lookup;
            slower lookups are treated as an unknown user.
        exempt_paths: Paths served without a signature.
    """

    timestamp_header: str = "Timestamp"
    authentication_header: str = "Authentication"
    timestamp_format: str = "%Y-%m-%d %H:%M:%SZ"
    freshness_window_seconds: int = 5 * 60
    replay_ttl_seconds: int = 5 * 60
    replay_sweep_interval_seconds: float = 60.0
    credential_lookup_timeout_seconds: float = 2.0
    exempt_paths: frozenset[str] = frozenset({"/docs", "/redoc", "/openapi.json"})

    def __post_init__(self) -> None:
        if self.freshness_window_seconds <= 0:
            raise ConfigurationError("freshness_window_seconds must be positive.")
        if self.replay_ttl_seconds <= 0:
            raise ConfigurationError("replay_ttl_seconds must be positive.")
        if self.replay_sweep_interval_seconds <= 0:
            raise ConfigurationError("replay_sweep_interval_seconds must be positive.")


SECURITY_CONFIG: Final = SecurityConfig()


@dataclass(frozen=True)
class DataConfig:
    """Configuration for the credential store."""

    sqlite_path_env_var: str = "HMACGATE_DB_PATH"
    default_sqlite_path: Path = Path("var/sqlite/accounts.db")


DATA_CONFIG: Final = DataConfig()


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for structured logging."""

    level_env_var: str = "HMACGATE_LOG_LEVEL"
    default_level: str = "INFO"


LOGGING_CONFIG: Final = LoggingConfig()


def resolve_sqlite_path() -> Path:
    """Return the configured path to the SQLite database file.

    The path is resolved on demand so tests can override the environment
    variable before instantiating application components.
    """

    env_var = DATA_CONFIG.sqlite_path_env_var
    candidate = os.environ.get(env_var)
    if candidate:
        return Path(candidate).expanduser().resolve()
    return DATA_CONFIG.default_sqlite_path.expanduser().resolve()


def resolve_log_level() -> str:
    """Return the configured log level name.

    Raises:
        ConfigurationError: If the environment names an unknown level.
    """

    level = os.environ.get(LOGGING_CONFIG.level_env_var, LOGGING_CONFIG.default_level).upper()
    if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
        raise ConfigurationError(f"Unknown log level {level!r}.")
    return level
