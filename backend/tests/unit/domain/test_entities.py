"""
Unit tests for registry entities.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from tempshare.domain.file_storage.entities import EntrySnapshot, RegistryEntry

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_entry(ttl=timedelta(minutes=10)) -> RegistryEntry:
    return RegistryEntry.create("id-1/a.txt", "a.txt", ttl, now=T0, entry_id="id-1")


class TestRegistryEntryCreate:
    def test_create_sets_times_from_ttl(self):
        entry = make_entry()
        snapshot = entry.snapshot()

        assert snapshot.id == "id-1"
        assert snapshot.created_at == T0
        assert snapshot.expires_at == T0 + timedelta(minutes=10)
        assert snapshot.last_access_at == T0
        assert snapshot.download_count == 0

    def test_create_generates_id_when_missing(self):
        a = RegistryEntry.create("k", "a.txt", timedelta(minutes=1), now=T0)
        b = RegistryEntry.create("k", "a.txt", timedelta(minutes=1), now=T0)

        assert a.id and b.id
        assert a.id != b.id

    @pytest.mark.parametrize("ttl", [timedelta(0), timedelta(seconds=-5)])
    def test_create_rejects_non_positive_ttl(self, ttl):
        with pytest.raises(ValueError):
            RegistryEntry.create("k", "a.txt", ttl, now=T0)

    def test_constructor_rejects_expiry_before_creation(self):
        with pytest.raises(ValueError):
            RegistryEntry("id", "k", "a.txt", created_at=T0, expires_at=T0)


class TestRecordAccess:
    def test_increments_count_and_moves_last_access(self):
        entry = make_entry()

        snapshot = entry.record_access(T0 + timedelta(minutes=2))

        assert snapshot.download_count == 1
        assert snapshot.last_access_at == T0 + timedelta(minutes=2)

    def test_last_access_never_moves_backwards(self):
        entry = make_entry()
        entry.record_access(T0 + timedelta(minutes=5))

        snapshot = entry.record_access(T0 + timedelta(minutes=1))

        assert snapshot.download_count == 2
        assert snapshot.last_access_at == T0 + timedelta(minutes=5)

    def test_concurrent_accesses_are_all_counted(self):
        entry = make_entry()
        threads = [
            threading.Thread(
                target=lambda: [entry.record_access(T0) for _ in range(100)]
            )
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert entry.snapshot().download_count == 800


class TestEntrySnapshot:
    @pytest.fixture
    def snapshot(self) -> EntrySnapshot:
        return make_entry().snapshot()

    def test_not_expired_just_before_expiry(self, snapshot):
        assert not snapshot.is_expired(snapshot.expires_at - timedelta(microseconds=1))

    def test_expired_exactly_at_expiry(self, snapshot):
        assert snapshot.is_expired(snapshot.expires_at)

    def test_idle_only_strictly_past_threshold(self, snapshot):
        threshold = timedelta(days=30)

        assert not snapshot.is_idle(threshold, T0 + threshold)
        assert snapshot.is_idle(threshold, T0 + threshold + timedelta(seconds=1))

    def test_snapshot_is_immutable(self, snapshot):
        with pytest.raises(AttributeError):
            snapshot.download_count = 5

    def test_stats_dict_shape(self, snapshot):
        assert snapshot.to_stats_dict() == {
            "id": "id-1",
            "filename": "a.txt",
            "expiresAt": "2024-01-01T12:10:00+00:00",
            "lastAccess": "2024-01-01T12:00:00+00:00",
            "downloads": 0,
        }
