from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from hmacgate.canonical import SignedModel
from hmacgate.client import signed_headers
from hmacgate.timestamps import Clock

SECRETS = {"alice": "s3cr3t", "bob": "hunter2"}


class FakeClock:
    """Settable clock shared by the app and the tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def sign(
    clock: Clock,
    method: str,
    path: str,
    *,
    username: str = "alice",
    secret: str | None = None,
    query: Iterable[tuple[str, str]] = (),
    form: Iterable[tuple[str, str]] = (),
    body: SignedModel | None = None,
    timestamp: str | None = None,
) -> dict[str, str]:
    """Generate Timestamp and Authentication headers as a client would."""

    return signed_headers(
        username,
        secret if secret is not None else SECRETS.get(username, ""),
        method,
        path,
        query=query,
        form=form,
        body=body,
        timestamp=timestamp,
        clock=clock,
    )
