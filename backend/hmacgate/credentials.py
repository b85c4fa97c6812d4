"""Credential providers consulted by the authentication gate."""

from __future__ import annotations

from typing import Mapping, Protocol


class CredentialProvider(Protocol):
    """Maps a username to its shared signing secret."""

    def get_secret(self, username: str) -> str:
        """Return the secret for ``username`` or ``""`` when the user is unknown.

        Implementations must not raise for unknown users.
        """


class StaticCredentialProvider:
    """Credential provider backed by an in-memory mapping."""

    def __init__(self, secrets: Mapping[str, str] | None = None) -> None:
        self._secrets = dict(secrets or {})

    def get_secret(self, username: str) -> str:
        return self._secrets.get(username, "")
