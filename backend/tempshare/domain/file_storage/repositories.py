"""
File Storage Repositories

Repository interfaces for registry metadata and one-time download tokens.
Concrete implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional

from .entities import EntrySnapshot, utc_now


class FileRegistry(ABC):
    """
    Abstract registry of live uploaded files.

    Every operation is internally synchronized. Operations on different
    entries never wait for each other; two callers racing on the same id
    always observe a serializable outcome for that id.

    Not-found is reported as None rather than raised, so callers can treat
    it as an ordinary result.
    """

    @abstractmethod
    def create(
        self,
        storage_key: str,
        original_name: str,
        ttl: timedelta,
        entry_id: Optional[str] = None,
    ) -> str:
        """
        Insert a new entry.

        Args:
            storage_key: Blob store key of the uploaded content
            original_name: Display filename
            ttl: Time to live, measured from now
            entry_id: Pre-generated id; when omitted a fresh id is generated
                and regenerated on collision

        Returns:
            The id of the new entry

        Raises:
            DuplicateIdError: If entry_id is given and already registered
            ValueError: If ttl is not positive
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, entry_id: str) -> Optional[EntrySnapshot]:
        """
        Look up a live entry.

        An entry whose expiry has passed is reported as None even if no
        sweep has removed it yet.
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_raw(self, entry_id: str) -> Optional[EntrySnapshot]:
        """Look up an entry regardless of expiry (for cleanup paths only)."""
        pass  # pragma: no cover

    @abstractmethod
    def record_access(self, entry_id: str) -> Optional[EntrySnapshot]:
        """
        Atomically bump the download counter and last access time.

        Returns:
            Snapshot after the update, or None if the id does not exist
        """
        pass  # pragma: no cover

    @abstractmethod
    def remove(self, entry_id: str) -> Optional[EntrySnapshot]:
        """
        Atomically remove an entry and hand it back.

        Among concurrent callers for the same id exactly one receives the
        entry; the others receive None.
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_all(self) -> List[EntrySnapshot]:
        """
        Weakly consistent snapshot of every entry, expired ones included.

        Each element reflects one consistent state of its entry, but the list
        as a whole is not taken under a single lock.
        """
        pass  # pragma: no cover

    def now(self) -> datetime:
        """Current time as seen by this registry."""
        return utc_now()

    def list_live(self) -> List[EntrySnapshot]:
        """Entries from list_all() that have not expired yet."""
        now = self.now()
        return [entry for entry in self.list_all() if not entry.is_expired(now)]

    def health_check(self) -> bool:
        """Report whether the backing store is reachable."""
        return True


class TokenRepository(ABC):
    """Abstract map from one-time download token to target entry id."""

    @abstractmethod
    def put_if_absent(self, token: str, target_id: str) -> bool:
        """
        Bind token to target_id unless the token is already bound.

        Returns:
            True if stored, False if the token already existed
        """
        pass  # pragma: no cover

    @abstractmethod
    def pop(self, token: str) -> Optional[str]:
        """
        Atomically remove a token and return its target id.

        Among concurrent callers for the same token exactly one receives the
        target id; the others receive None.
        """
        pass  # pragma: no cover

    @abstractmethod
    def count(self) -> int:
        """Number of outstanding tokens."""
        pass  # pragma: no cover
