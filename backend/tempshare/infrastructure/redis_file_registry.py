"""
Redis File Registry Implementation

Concrete Redis-based implementation of FileRegistry, for deployments where
several worker processes must share one registry.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from tempshare.domain.errors import DuplicateIdError
from tempshare.domain.file_storage.entities import EntrySnapshot, utc_now
from tempshare.domain.file_storage.repositories import FileRegistry
from tempshare.domain.file_storage.value_objects import generate_entry_id

from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)

# Each entry is one hash; timestamps are stored as epoch seconds so the Lua
# scripts can compare them numerically.
_CREATE_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
redis.call('HSET', KEYS[1],
    'id', ARGV[1],
    'storage_key', ARGV[2],
    'original_name', ARGV[3],
    'created_at', ARGV[4],
    'expires_at', ARGV[5],
    'last_access_at', ARGV[4],
    'download_count', 0)
return 1
"""

_RECORD_ACCESS_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return nil
end
local last = tonumber(redis.call('HGET', KEYS[1], 'last_access_at'))
if tonumber(ARGV[1]) > last then
    redis.call('HSET', KEYS[1], 'last_access_at', ARGV[1])
end
redis.call('HINCRBY', KEYS[1], 'download_count', 1)
return redis.call('HGETALL', KEYS[1])
"""

_REMOVE_SCRIPT = """
local data = redis.call('HGETALL', KEYS[1])
if #data == 0 then
    return nil
end
redis.call('DEL', KEYS[1])
return data
"""


def _to_epoch(value: datetime) -> str:
    return f"{value.timestamp():.6f}"


def _from_epoch(value: str) -> datetime:
    return datetime.fromtimestamp(float(value), tz=timezone.utc)


def _decode(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


def _pairs_to_dict(flat: Sequence[Any]) -> Dict[str, str]:
    items = [_decode(item) for item in flat]
    return dict(zip(items[0::2], items[1::2]))


class RedisFileRegistry(FileRegistry):
    """
    Redis-based implementation of FileRegistry.

    Every mutation is a single Lua script, so it runs atomically on the
    server: concurrent removals of one id yield exactly one winner and
    concurrent downloads never lose a counter increment. Entries carry no
    Redis TTL; they leave the registry only through remove(), which keeps
    blob deletion tied to the removal winner.
    """

    def __init__(
        self,
        redis_repository: RedisRepository,
        clock: Optional[Callable[[], datetime]] = None,
        max_id_attempts: int = 5,
    ):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
            clock: Callable returning the current aware UTC datetime
            max_id_attempts: Id generation attempts before giving up on
                collisions
        """
        self.redis_repo = redis_repository
        self.entry_prefix = "file_entry"
        self._clock = clock or utc_now
        self._max_id_attempts = max_id_attempts

    def now(self) -> datetime:
        return self._clock()

    def _entry_key(self, entry_id: str) -> str:
        return f"{self.entry_prefix}:{entry_id}"

    @staticmethod
    def _to_snapshot(data: Dict[str, str]) -> EntrySnapshot:
        return EntrySnapshot(
            id=data["id"],
            storage_key=data["storage_key"],
            original_name=data["original_name"],
            created_at=_from_epoch(data["created_at"]),
            expires_at=_from_epoch(data["expires_at"]),
            last_access_at=_from_epoch(data["last_access_at"]),
            download_count=int(data["download_count"]),
        )

    def _try_insert(
        self, entry_id: str, storage_key: str, original_name: str, ttl: timedelta
    ) -> bool:
        now = self.now()
        result = self.redis_repo.run_script(
            _CREATE_SCRIPT,
            [self._entry_key(entry_id)],
            [
                entry_id,
                storage_key,
                original_name,
                _to_epoch(now),
                _to_epoch(now + ttl),
            ],
        )
        return int(result) == 1

    # FileRegistry interface methods

    def create(
        self,
        storage_key: str,
        original_name: str,
        ttl: timedelta,
        entry_id: Optional[str] = None,
    ) -> str:
        if ttl <= timedelta(0):
            raise ValueError(f"ttl must be positive, got {ttl}")

        if entry_id is not None:
            if not self._try_insert(entry_id, storage_key, original_name, ttl):
                raise DuplicateIdError(f"Entry id already registered: {entry_id}")
            return entry_id

        for _ in range(self._max_id_attempts):
            candidate = generate_entry_id()
            if self._try_insert(candidate, storage_key, original_name, ttl):
                return candidate
            logger.warning(f"Entry id collision on {candidate}, regenerating")

        raise DuplicateIdError(
            f"Could not allocate a unique entry id after {self._max_id_attempts} attempts"
        )

    def get(self, entry_id: str) -> Optional[EntrySnapshot]:
        snapshot = self.get_raw(entry_id)
        if snapshot is None or snapshot.is_expired(self.now()):
            return None
        return snapshot

    def get_raw(self, entry_id: str) -> Optional[EntrySnapshot]:
        data = self.redis_repo.hash_get_all(self._entry_key(entry_id))
        if data is None:
            return None

        try:
            return self._to_snapshot(data)
        except (KeyError, ValueError) as e:
            logger.error(f"Corrupt registry entry {entry_id}: {e}")
            return None

    def record_access(self, entry_id: str) -> Optional[EntrySnapshot]:
        result = self.redis_repo.run_script(
            _RECORD_ACCESS_SCRIPT,
            [self._entry_key(entry_id)],
            [_to_epoch(self.now())],
        )
        if not result:
            return None
        return self._to_snapshot(_pairs_to_dict(result))

    def remove(self, entry_id: str) -> Optional[EntrySnapshot]:
        result = self.redis_repo.run_script(
            _REMOVE_SCRIPT, [self._entry_key(entry_id)], []
        )
        if not result:
            return None
        return self._to_snapshot(_pairs_to_dict(result))

    def list_all(self) -> List[EntrySnapshot]:
        snapshots = []
        for key in self.redis_repo.scan_keys(f"{self.entry_prefix}:*"):
            entry_id = key[len(self.entry_prefix) + 1 :]
            # Entries removed between SCAN and HGETALL are simply skipped.
            snapshot = self.get_raw(entry_id)
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def health_check(self) -> bool:
        return self.redis_repo.ping()
