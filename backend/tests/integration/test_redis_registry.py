"""
Integration tests for the Redis-backed registry and token map.

Skipped when no Redis server is reachable.
"""

import threading
from datetime import timedelta

import pytest
from redis.exceptions import LockError

from tempshare.domain.errors import DuplicateIdError
from tempshare.infrastructure.redis_file_registry import RedisFileRegistry
from tempshare.infrastructure.redis_token_repository import RedisTokenRepository
from tests.fixtures import FakeClock

TTL = timedelta(minutes=10)


@pytest.fixture
def registry_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def redis_registry(redis_repository, registry_clock) -> RedisFileRegistry:
    return RedisFileRegistry(redis_repository, clock=registry_clock)


@pytest.fixture
def redis_tokens(redis_repository) -> RedisTokenRepository:
    return RedisTokenRepository(redis_repository)


def run_threads(count, target):
    barrier = threading.Barrier(count)

    def wrapped():
        barrier.wait()
        target()

    threads = [threading.Thread(target=wrapped) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


class TestRedisFileRegistry:
    def test_create_and_get(self, redis_registry, registry_clock):
        entry_id = redis_registry.create("k/a.txt", "a.txt", TTL)

        entry = redis_registry.get(entry_id)
        assert entry.original_name == "a.txt"
        assert entry.storage_key == "k/a.txt"
        assert entry.created_at == registry_clock()
        assert entry.expires_at == registry_clock() + TTL
        assert entry.download_count == 0

    def test_duplicate_explicit_id(self, redis_registry):
        redis_registry.create("k", "a.txt", TTL, entry_id="fixed")

        with pytest.raises(DuplicateIdError):
            redis_registry.create("k", "b.txt", TTL, entry_id="fixed")

    def test_lazy_expiry(self, redis_registry, registry_clock):
        entry_id = redis_registry.create("k", "a.txt", timedelta(seconds=1))
        registry_clock.advance(seconds=1)

        assert redis_registry.get(entry_id) is None
        assert redis_registry.get_raw(entry_id) is not None

    def test_record_access(self, redis_registry, registry_clock):
        entry_id = redis_registry.create("k", "a.txt", TTL)
        later = registry_clock.advance(minutes=1)

        entry = redis_registry.record_access(entry_id)

        assert entry.download_count == 1
        assert entry.last_access_at == later

    def test_record_access_unknown(self, redis_registry):
        assert redis_registry.record_access("missing") is None

    def test_concurrent_accesses_are_not_lost(self, redis_registry):
        entry_id = redis_registry.create("k", "a.txt", TTL)

        run_threads(8, lambda: [redis_registry.record_access(entry_id) for _ in range(25)])

        assert redis_registry.get(entry_id).download_count == 200

    def test_exactly_one_remover_wins(self, redis_registry):
        entry_id = redis_registry.create("k", "a.txt", TTL)
        results = []

        run_threads(8, lambda: results.append(redis_registry.remove(entry_id)))

        assert len([r for r in results if r is not None]) == 1
        assert redis_registry.get_raw(entry_id) is None

    def test_list_all(self, redis_registry):
        ids = {redis_registry.create("k", f"{i}.txt", TTL) for i in range(5)}

        assert {e.id for e in redis_registry.list_all()} == ids

    def test_health_check(self, redis_registry):
        assert redis_registry.health_check() is True


class TestRedisTokenRepository:
    def test_token_is_single_use(self, redis_tokens):
        assert redis_tokens.put_if_absent("t" * 40, "entry-1") is True
        assert redis_tokens.put_if_absent("t" * 40, "entry-2") is False

        assert redis_tokens.pop("t" * 40) == "entry-1"
        assert redis_tokens.pop("t" * 40) is None

    def test_concurrent_pop_single_winner(self, redis_tokens):
        redis_tokens.put_if_absent("t" * 40, "entry-1")
        results = []

        run_threads(8, lambda: results.append(redis_tokens.pop("t" * 40)))

        assert results.count("entry-1") == 1

    def test_count(self, redis_tokens):
        redis_tokens.put_if_absent("a" * 40, "entry-1")
        redis_tokens.put_if_absent("b" * 40, "entry-1")

        assert redis_tokens.count() == 2


class TestDistributedLock:
    def test_second_holder_is_refused(self, redis_repository):
        with redis_repository.distributed_lock("sweep:expired", timeout=5, blocking_timeout=0):
            with pytest.raises(LockError):
                with redis_repository.distributed_lock(
                    "sweep:expired", timeout=5, blocking_timeout=0
                ):
                    pass
