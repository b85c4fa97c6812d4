from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hmacgate.main import create_app
from hmacgate.repositories.accounts import AccountsRepository

from helpers import FakeClock, sign


def test_unknown_user_has_empty_secret(db_path: Path) -> None:
    assert AccountsRepository().get_secret("nobody") == ""


def test_set_secret_creates_and_rotates(db_path: Path) -> None:
    repository = AccountsRepository()
    repository.set_secret("alice", "first")
    assert repository.get_secret("alice") == "first"

    repository.set_secret("alice", "second")
    assert repository.get_secret("alice") == "second"
    assert repository.list_usernames() == ["alice"]


def test_delete_account(db_path: Path) -> None:
    repository = AccountsRepository()
    repository.set_secret("alice", "s3cr3t")
    assert repository.delete_account("alice")
    assert not repository.delete_account("alice")
    assert repository.get_secret("alice") == ""


@pytest.mark.parametrize(("username", "secret"), [("", "x"), ("a:b", "x"), ("alice", "")])
def test_set_secret_rejects_invalid_input(db_path: Path, username: str, secret: str) -> None:
    with pytest.raises(ValueError):
        AccountsRepository().set_secret(username, secret)


def test_explicit_path_overrides_environment(db_path: Path, tmp_path: Path) -> None:
    other = AccountsRepository(tmp_path / "other.db")
    other.set_secret("carol", "pw")
    assert AccountsRepository().get_secret("carol") == ""
    assert (tmp_path / "other.db").exists()


def test_app_defaults_to_sqlite_accounts(db_path: Path, clock: FakeClock) -> None:
    AccountsRepository().set_secret("alice", "from-sqlite")
    app = create_app(clock=clock)

    with TestClient(app) as client:
        accepted = client.get("/health", headers=sign(clock, "GET", "/health", secret="from-sqlite"))
        assert accepted.status_code == 200

        clock.advance(1)
        rejected = client.get("/health", headers=sign(clock, "GET", "/health", secret="s3cr3t"))
        assert rejected.status_code == 401
