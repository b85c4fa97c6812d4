"""Database utilities for the SQLite credential store."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import resolve_sqlite_path

ACCOUNTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    username TEXT PRIMARY KEY,
    secret TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


@contextmanager
def sqlite_connection(path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Yield a connection to the credential store with the schema in place.

    Commits when the block exits cleanly and rolls back otherwise.
    """

    db_path = path or resolve_sqlite_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(db_path, check_same_thread=False)
    connection.row_factory = sqlite3.Row
    try:
        connection.execute(ACCOUNTS_SCHEMA)
        yield connection
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()
