"""SQLite-backed credential store for signing accounts."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from ..db import sqlite_connection


class AccountsRepository:
    """Stores the shared secret of each API account.

    Implements the credential provider interface used by the gate: unknown
    users resolve to an empty secret.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    def get_secret(self, username: str) -> str:
        with sqlite_connection(self._path) as connection:
            row = connection.execute(
                "SELECT secret FROM accounts WHERE username = ?",
                (username,),
            ).fetchone()
        return row["secret"] if row is not None else ""

    def set_secret(self, username: str, secret: str) -> None:
        """Create the account or replace its secret."""

        if not username or ":" in username:
            raise ValueError("Usernames must be non-empty and must not contain ':'.")
        if not secret:
            raise ValueError("Secrets must be non-empty.")

        now = datetime.now(timezone.utc).isoformat()
        with sqlite_connection(self._path) as connection:
            connection.execute(
                """
                INSERT INTO accounts (username, secret, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(username) DO UPDATE SET
                    secret = excluded.secret,
                    updated_at = excluded.updated_at
                """,
                (username, secret, now, now),
            )

    def delete_account(self, username: str) -> bool:
        with sqlite_connection(self._path) as connection:
            cursor = connection.execute("DELETE FROM accounts WHERE username = ?", (username,))
            return cursor.rowcount > 0

    def list_usernames(self) -> list[str]:
        with sqlite_connection(self._path) as connection:
            rows = connection.execute("SELECT username FROM accounts ORDER BY username").fetchall()
        return [row["username"] for row in rows]
