"""Per-request authentication decision.

The gate runs the checks in a fixed order and stops at the first failure:

1. the ``Timestamp`` header must be present and fresh;
2. the ``Authentication`` header must be ``username:signature``;
3. the signature must not be live in the replay cache (it is recorded here,
   before the signature itself is verified);
4. the account secret is looked up;
5. the canonical message is rebuilt and its HMAC compared to the signature.

Every failure raises :class:`AuthenticationDenied`. The reason is for logs
only; callers must map all reasons to the same response.
"""

from __future__ import annotations

import asyncio
from enum import Enum

import structlog

from .canonical import SignedRequest, build_canonical_message
from .config import SECURITY_CONFIG
from .credentials import CredentialProvider
from .replay import ReplayGuard
from .security import verify_signature
from .timestamps import TimestampValidator

logger = structlog.get_logger(__name__)


class DenialReason(str, Enum):
    MISSING_OR_MALFORMED_TIMESTAMP = "missing_or_malformed_timestamp"
    TIMESTAMP_OUT_OF_WINDOW = "timestamp_out_of_window"
    MISSING_OR_MALFORMED_AUTHENTICATION_HEADER = "missing_or_malformed_authentication_header"
    REPLAYED_SIGNATURE = "replayed_signature"
    MALFORMED_PARAMETERS = "malformed_parameters"
    UNKNOWN_USER = "unknown_user"
    SIGNATURE_MISMATCH = "signature_mismatch"


class AuthenticationDenied(Exception):
    """Raised when a request fails any gate check."""

    def __init__(self, reason: DenialReason) -> None:
        super().__init__(reason.value)
        self.reason = reason


def parse_authentication_header(value: str | None) -> tuple[str, str] | None:
    """Split ``username:signature``; anything but two non-empty parts is rejected."""

    if not value:
        return None
    parts = value.split(":")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


class AuthenticationGate:
    """Admits or denies signed requests."""

    def __init__(
        self,
        *,
        credentials: CredentialProvider,
        replay_guard: ReplayGuard,
        timestamp_validator: TimestampValidator,
        lookup_timeout_seconds: float = SECURITY_CONFIG.credential_lookup_timeout_seconds,
    ) -> None:
        self._credentials = credentials
        self._replay_guard = replay_guard
        self._timestamps = timestamp_validator
        self._lookup_timeout = lookup_timeout_seconds

    async def authenticate(self, request: SignedRequest) -> str:
        """Return the authenticated username or raise :class:`AuthenticationDenied`."""

        username, signature = self.check_headers(request)
        return await self.verify(request, username, signature)

    def check_headers(self, request: SignedRequest) -> tuple[str, str]:
        """Run the header-only checks (steps 1-3) and return ``(username, signature)``.

        Only ``timestamp`` and ``authentication`` are read, so this can run
        before the request parameters are extracted.
        """

        if not request.timestamp:
            raise AuthenticationDenied(DenialReason.MISSING_OR_MALFORMED_TIMESTAMP)
        failure = self._timestamps.check(request.timestamp)
        if failure == "malformed":
            raise AuthenticationDenied(DenialReason.MISSING_OR_MALFORMED_TIMESTAMP)
        if failure is not None:
            raise AuthenticationDenied(DenialReason.TIMESTAMP_OUT_OF_WINDOW)

        credentials = parse_authentication_header(request.authentication)
        if credentials is None:
            raise AuthenticationDenied(DenialReason.MISSING_OR_MALFORMED_AUTHENTICATION_HEADER)
        username, signature = credentials

        if not self._replay_guard.check_and_record(signature):
            raise AuthenticationDenied(DenialReason.REPLAYED_SIGNATURE)
        return username, signature

    async def verify(self, request: SignedRequest, username: str, signature: str) -> str:
        """Look up the secret and compare the signature (steps 4-5)."""

        secret = await self._lookup_secret(username)
        message = build_canonical_message(request)
        if not verify_signature(secret, message, signature):
            logger.debug("canonical_message_rejected", username=username, message=message)
            reason = DenialReason.UNKNOWN_USER if not secret else DenialReason.SIGNATURE_MISMATCH
            raise AuthenticationDenied(reason)

        return username


    async def _lookup_secret(self, username: str) -> str:
        loop = asyncio.get_running_loop()
        try:
            secret = await asyncio.wait_for(
                loop.run_in_executor(None, self._credentials.get_secret, username),
                timeout=self._lookup_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("credential_lookup_timed_out", username=username, timeout=self._lookup_timeout)
            return ""
        except Exception:
            logger.exception("credential_lookup_failed", username=username)
            return ""
        return secret or ""
