"""
File Storage Entities

Domain entities for registry entry management.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from .value_objects import generate_entry_id


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EntrySnapshot:
    """
    Immutable point-in-time view of a registry entry.

    Snapshots are what the registry hands out to callers; they never change
    after creation, so they can be passed across threads freely.
    """

    id: str
    storage_key: str
    original_name: str
    created_at: datetime
    expires_at: datetime
    last_access_at: datetime
    download_count: int = 0

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the entry has reached its hard expiry.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            True if expired, False otherwise
        """
        return (now or utc_now()) >= self.expires_at

    def is_idle(self, threshold: timedelta, now: Optional[datetime] = None) -> bool:
        """
        Check if the entry has not been accessed for longer than threshold.

        Args:
            threshold: Maximum allowed time since last access
            now: Reference time (defaults to current UTC time)

        Returns:
            True if the last access is older than threshold
        """
        return (now or utc_now()) - self.last_access_at > threshold

    def to_stats_dict(self) -> Dict[str, Any]:
        """Convert to the public stats representation."""
        return {
            "id": self.id,
            "filename": self.original_name,
            "expiresAt": self.expires_at.isoformat(),
            "lastAccess": self.last_access_at.isoformat(),
            "downloads": self.download_count,
        }


class RegistryEntry:
    """
    Live metadata record for one stored file.

    Identity fields are fixed at construction. The mutable access fields
    (last access time and download counter) sit behind the entry's own lock,
    so updating one entry never contends with any other entry.
    """

    __slots__ = (
        "id",
        "storage_key",
        "original_name",
        "created_at",
        "expires_at",
        "_last_access_at",
        "_download_count",
        "_lock",
    )

    def __init__(
        self,
        entry_id: str,
        storage_key: str,
        original_name: str,
        created_at: datetime,
        expires_at: datetime,
        last_access_at: Optional[datetime] = None,
        download_count: int = 0,
    ):
        if expires_at <= created_at:
            raise ValueError("expires_at must be later than created_at")

        self.id = entry_id
        self.storage_key = storage_key
        self.original_name = original_name
        self.created_at = created_at
        self.expires_at = expires_at
        self._last_access_at = max(last_access_at or created_at, created_at)
        self._download_count = download_count
        self._lock = threading.Lock()

    @classmethod
    def create(
        cls,
        storage_key: str,
        original_name: str,
        ttl: timedelta,
        now: Optional[datetime] = None,
        entry_id: Optional[str] = None,
    ) -> "RegistryEntry":
        """
        Factory method to create a new registry entry.

        Args:
            storage_key: Blob store key holding the file content
            original_name: Display filename
            ttl: Time to live (must be positive)
            now: Creation time (defaults to current UTC time)
            entry_id: Pre-generated id (a fresh UUID is used if omitted)

        Returns:
            New RegistryEntry instance

        Raises:
            ValueError: If ttl is not positive
        """
        if ttl <= timedelta(0):
            raise ValueError(f"ttl must be positive, got {ttl}")

        now = now or utc_now()
        return cls(
            entry_id=entry_id or generate_entry_id(),
            storage_key=storage_key,
            original_name=original_name,
            created_at=now,
            expires_at=now + ttl,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) >= self.expires_at

    def record_access(self, now: Optional[datetime] = None) -> EntrySnapshot:
        """
        Register one successful download.

        Args:
            now: Access time (defaults to current UTC time)

        Returns:
            Snapshot taken right after the update
        """
        now = now or utc_now()
        with self._lock:
            if now > self._last_access_at:
                self._last_access_at = now
            self._download_count += 1
            return self._snapshot_locked()

    def snapshot(self) -> EntrySnapshot:
        """Take a consistent snapshot of the entry."""
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> EntrySnapshot:
        return EntrySnapshot(
            id=self.id,
            storage_key=self.storage_key,
            original_name=self.original_name,
            created_at=self.created_at,
            expires_at=self.expires_at,
            last_access_at=self._last_access_at,
            download_count=self._download_count,
        )

    def __repr__(self) -> str:
        return f"RegistryEntry(id={self.id!r}, original_name={self.original_name!r})"
