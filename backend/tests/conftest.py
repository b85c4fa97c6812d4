from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from hmacgate.config import DATA_CONFIG
from hmacgate.credentials import StaticCredentialProvider
from hmacgate.main import create_app
from hmacgate.replay import InMemoryReplayCache

from helpers import SECRETS, FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture()
def credentials() -> StaticCredentialProvider:
    return StaticCredentialProvider(SECRETS)


@pytest.fixture()
def replay_cache(clock: FakeClock) -> InMemoryReplayCache:
    return InMemoryReplayCache(clock=clock)


@pytest.fixture()
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the credential store at an isolated SQLite file for each test."""

    path = tmp_path / "accounts.db"
    monkeypatch.setenv(DATA_CONFIG.sqlite_path_env_var, str(path))
    return path


@pytest.fixture()
def client(
    credentials: StaticCredentialProvider,
    replay_cache: InMemoryReplayCache,
    clock: FakeClock,
) -> Generator[TestClient, None, None]:
    """Provide a test client with in-memory credentials and a frozen clock."""

    app = create_app(credential_provider=credentials, replay_cache=replay_cache, clock=clock)
    with TestClient(app) as test_client:
        yield test_client
