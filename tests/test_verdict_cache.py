"""Unit tests for the in-memory VerdictCache."""

import threading

import pytest

from app.adapters.rate_limit.base import Verdict
from app.utils.verdict_cache import VerdictCache


def _verdict(allowed: bool = True, remaining: int = 5) -> Verdict:
    return Verdict(
        allowed=allowed,
        limit=10,
        remaining=remaining,
        reset_at=1010,
        retry_after_seconds=None if allowed else 10,
    )


def test_set_and_get_updates_hit_miss_counters(clock) -> None:
    cache = VerdictCache(capacity=4, clock=clock)

    assert cache.get("missing", max_age_seconds=10) is None

    verdict = _verdict()
    cache.set("1.2.3.4", verdict)

    entry = cache.get("1.2.3.4", max_age_seconds=10)
    assert entry is not None
    assert entry.verdict == verdict
    assert entry.computed_at == 1000.0

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_stale_entry_is_evicted(clock) -> None:
    cache = VerdictCache(capacity=4, clock=clock)
    cache.set("k", _verdict())

    clock.advance(11)

    assert cache.get("k", max_age_seconds=10) is None
    assert len(cache) == 0
    assert cache.stats()["evictions"] == 1


def test_lru_eviction_removes_least_recently_used(clock) -> None:
    cache = VerdictCache(capacity=2, clock=clock)
    cache.set("a", _verdict(remaining=1))
    cache.set("b", _verdict(remaining=2))

    # Access "a" so that "b" becomes least recently used
    assert cache.get("a", max_age_seconds=10) is not None

    cache.set("c", _verdict(remaining=3))

    assert cache.get("a", max_age_seconds=10) is not None
    assert cache.get("c", max_age_seconds=10) is not None
    assert cache.get("b", max_age_seconds=10) is None


def test_never_grows_beyond_capacity(clock) -> None:
    cache = VerdictCache(capacity=16, clock=clock)

    for i in range(1_000):
        cache.set(f"10.0.{i // 256}.{i % 256}", _verdict())
        assert len(cache) <= 16

    stats = cache.stats()
    assert stats["entries"] == 16
    assert stats["evictions"] == 1_000 - 16


def test_overwrite_keeps_single_entry(clock) -> None:
    cache = VerdictCache(capacity=2, clock=clock)
    cache.set("k", _verdict(remaining=5))
    clock.advance(1)
    cache.set("k", _verdict(allowed=False, remaining=0))

    entry = cache.get("k", max_age_seconds=10)
    assert len(cache) == 1
    assert entry.verdict.allowed is False
    assert entry.computed_at == 1001.0


def test_discard_and_clear(clock) -> None:
    cache = VerdictCache(capacity=4, clock=clock)
    cache.set("a", _verdict())
    cache.set("b", _verdict())
    cache.get("a", max_age_seconds=10)

    cache.discard("a")
    cache.discard("never-set")
    assert cache.get("a", max_age_seconds=10) is None

    cache.clear()

    stats = cache.stats()
    assert stats["entries"] == 0
    assert stats["hits"] == 0
    assert stats["misses"] == 0
    assert stats["evictions"] == 0


def test_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        VerdictCache(capacity=0)


def test_thread_safety_under_concurrent_inserts() -> None:
    cache = VerdictCache(capacity=64)

    def _writer(offset: int) -> None:
        for i in range(200):
            cache.set(f"{offset}-{i}", _verdict())
            cache.get(f"{offset}-{i // 2}", max_age_seconds=60)

    threads = [threading.Thread(target=_writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 64
    assert cache.stats()["entries"] == 64
