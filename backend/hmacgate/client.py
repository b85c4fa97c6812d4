"""Client-side helpers for signing requests to a gated service.

Example::

    headers = signed_headers(
        "alice",
        "s3cr3t",
        "POST",
        "/api/values/postcity",
        form=[("IcaoCode", "ZPWS"), ("CityShortName", "Wenshan")],
    )
    httpx.post(url, data={...}, headers=headers)

The parameters passed here must be the ones actually sent, in any order.
"""

from __future__ import annotations

from typing import Iterable

from .canonical import ParameterEntry, SignedModel, SignedRequest, build_canonical_message
from .config import SECURITY_CONFIG
from .security import compute_signature
from .timestamps import Clock, format_timestamp, utc_now


def _entries(pairs: Iterable[tuple[str, str]]) -> list[ParameterEntry]:
    return [ParameterEntry(key, value) for key, value in pairs]


def signed_headers(
    username: str,
    secret: str,
    method: str,
    path: str,
    *,
    query: Iterable[tuple[str, str]] = (),
    form: Iterable[tuple[str, str]] = (),
    body: SignedModel | None = None,
    timestamp: str | None = None,
    clock: Clock = utc_now,
) -> dict[str, str]:
    """Return the ``Timestamp`` and ``Authentication`` headers for a request."""

    request = SignedRequest(
        method=method,
        path=path,
        timestamp=timestamp or format_timestamp(clock()),
        query=_entries(query),
        form=_entries(form),
        body=body.signing_entries() if body is not None else [],
    )
    signature = compute_signature(secret, build_canonical_message(request))
    return {
        SECURITY_CONFIG.timestamp_header: request.timestamp,
        SECURITY_CONFIG.authentication_header: f"{username}:{signature}",
    }
