from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from hmacgate.config import ConfigurationError
from hmacgate.replay import InMemoryReplayCache, ReplayGuard

from helpers import FakeClock

TTL = timedelta(minutes=5)


def test_insert_if_absent_rejects_live_duplicate(replay_cache: InMemoryReplayCache) -> None:
    assert replay_cache.insert_if_absent("sig", TTL)
    assert not replay_cache.insert_if_absent("sig", TTL)
    assert replay_cache.insert_if_absent("other", TTL)
    assert replay_cache.active_count() == 2


def test_entry_expires_after_ttl(replay_cache: InMemoryReplayCache, clock: FakeClock) -> None:
    assert replay_cache.insert_if_absent("sig", TTL)
    clock.advance(299)
    assert replay_cache.contains("sig")
    clock.advance(1)
    assert not replay_cache.contains("sig")
    assert replay_cache.insert_if_absent("sig", TTL)


def test_duplicate_does_not_extend_expiry(replay_cache: InMemoryReplayCache, clock: FakeClock) -> None:
    replay_cache.insert_if_absent("sig", TTL)
    clock.advance(200)
    assert not replay_cache.insert_if_absent("sig", TTL)
    clock.advance(100)
    assert not replay_cache.contains("sig")


def test_purge_expired_removes_only_stale_entries(
    replay_cache: InMemoryReplayCache, clock: FakeClock
) -> None:
    replay_cache.insert_if_absent("old", TTL)
    clock.advance(200)
    replay_cache.insert_if_absent("new", TTL)
    clock.advance(150)

    assert replay_cache.purge_expired() == 1
    assert replay_cache.contains("new")
    assert replay_cache.active_count() == 1


def test_concurrent_duplicates_admit_exactly_one(replay_cache: InMemoryReplayCache) -> None:
    workers = 32
    barrier = threading.Barrier(workers)

    def attempt(_: int) -> bool:
        barrier.wait()
        return replay_cache.insert_if_absent("same-signature", TTL)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(attempt, range(workers)))

    assert results.count(True) == 1


def test_guard_seen_and_record(replay_cache: InMemoryReplayCache) -> None:
    guard = ReplayGuard(replay_cache)
    assert not guard.seen("sig")
    guard.record("sig")
    assert guard.seen("sig")
    guard.record("sig")
    assert replay_cache.active_count() == 1


def test_guard_check_and_record(replay_cache: InMemoryReplayCache) -> None:
    guard = ReplayGuard(replay_cache)
    assert guard.check_and_record("sig")
    assert not guard.check_and_record("sig")


def test_guard_rejects_non_positive_ttl(replay_cache: InMemoryReplayCache) -> None:
    with pytest.raises(ConfigurationError):
        ReplayGuard(replay_cache, ttl_seconds=0)
