"""
In-Memory File Registry

Lock-striped, process-local implementation of FileRegistry.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from tempshare.domain.errors import DuplicateIdError
from tempshare.domain.file_storage.entities import EntrySnapshot, RegistryEntry, utc_now
from tempshare.domain.file_storage.repositories import FileRegistry

logger = logging.getLogger(__name__)


class _Stripe:
    """One shard of the registry map with its own lock."""

    __slots__ = ("lock", "entries")

    def __init__(self):
        self.lock = threading.Lock()
        self.entries: Dict[str, RegistryEntry] = {}


class InMemoryFileRegistry(FileRegistry):
    """
    Process-local registry backed by a lock-striped dict.

    Ids are spread over a fixed number of stripes, each guarded by its own
    lock that is held only for the dict operation itself. Access counters
    are updated under the entry's own lock, outside any stripe lock, so
    downloads of different files never serialize on each other.

    Attributes:
        stripe_count: Number of independent shards
    """

    def __init__(
        self,
        stripes: int = 16,
        clock: Optional[Callable[[], datetime]] = None,
        max_id_attempts: int = 5,
    ):
        """
        Initialize the registry.

        Args:
            stripes: Number of lock stripes (at least 1)
            clock: Callable returning the current aware UTC datetime
            max_id_attempts: Id generation attempts before giving up on
                collisions
        """
        if stripes < 1:
            raise ValueError(f"stripes must be at least 1, got {stripes}")

        self.stripe_count = stripes
        self._stripes = [_Stripe() for _ in range(stripes)]
        self._clock = clock or utc_now
        self._max_id_attempts = max_id_attempts

    def now(self) -> datetime:
        return self._clock()

    def _stripe_for(self, entry_id: str) -> _Stripe:
        return self._stripes[hash(entry_id) % self.stripe_count]

    def _insert(self, entry: RegistryEntry) -> bool:
        stripe = self._stripe_for(entry.id)
        with stripe.lock:
            if entry.id in stripe.entries:
                return False
            stripe.entries[entry.id] = entry
            return True

    def _lookup(self, entry_id: str) -> Optional[RegistryEntry]:
        stripe = self._stripe_for(entry_id)
        with stripe.lock:
            return stripe.entries.get(entry_id)

    # FileRegistry interface methods

    def create(
        self,
        storage_key: str,
        original_name: str,
        ttl: timedelta,
        entry_id: Optional[str] = None,
    ) -> str:
        if entry_id is not None:
            entry = RegistryEntry.create(
                storage_key, original_name, ttl, now=self.now(), entry_id=entry_id
            )
            if not self._insert(entry):
                raise DuplicateIdError(f"Entry id already registered: {entry_id}")
            return entry.id

        for _ in range(self._max_id_attempts):
            entry = RegistryEntry.create(storage_key, original_name, ttl, now=self.now())
            if self._insert(entry):
                return entry.id
            logger.warning(f"Entry id collision on {entry.id}, regenerating")

        raise DuplicateIdError(
            f"Could not allocate a unique entry id after {self._max_id_attempts} attempts"
        )

    def get(self, entry_id: str) -> Optional[EntrySnapshot]:
        entry = self._lookup(entry_id)
        if entry is None:
            return None

        snapshot = entry.snapshot()
        if snapshot.is_expired(self.now()):
            return None
        return snapshot

    def get_raw(self, entry_id: str) -> Optional[EntrySnapshot]:
        entry = self._lookup(entry_id)
        return entry.snapshot() if entry is not None else None

    def record_access(self, entry_id: str) -> Optional[EntrySnapshot]:
        entry = self._lookup(entry_id)
        if entry is None:
            return None
        return entry.record_access(self.now())

    def remove(self, entry_id: str) -> Optional[EntrySnapshot]:
        stripe = self._stripe_for(entry_id)
        with stripe.lock:
            entry = stripe.entries.pop(entry_id, None)

        return entry.snapshot() if entry is not None else None

    def list_all(self) -> List[EntrySnapshot]:
        entries: List[RegistryEntry] = []
        for stripe in self._stripes:
            with stripe.lock:
                entries.extend(stripe.entries.values())

        return [entry.snapshot() for entry in entries]

    def __len__(self) -> int:
        total = 0
        for stripe in self._stripes:
            with stripe.lock:
                total += len(stripe.entries)
        return total
