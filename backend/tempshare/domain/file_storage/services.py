"""
File Storage Services

Domain service coordinating the blob store and the file registry.
"""

import logging
from datetime import timedelta
from typing import BinaryIO, Optional, Tuple

from tempshare.domain.errors import (
    BlobMissingError,
    EntryNotFoundError,
    StorageWriteError,
)
from tempshare.domain.events import (
    FileCleanupFailedEvent,
    FileDownloadedEvent,
    FileEvictedEvent,
    FileUploadedEvent,
)

from .entities import EntrySnapshot
from .repositories import FileRegistry
from .storage_repository import IFileStorageRepository
from .value_objects import StorageKey, generate_entry_id

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=10)


class FileManager:
    """
    Domain service for temporary file storage.

    Keeps the registry and the blob store in step:
    - an entry is inserted only after its blob was written
    - a blob is deleted only by whoever removed its entry from the registry
    """

    def __init__(
        self,
        file_registry: FileRegistry,
        storage_repository: IFileStorageRepository,
        default_ttl: timedelta = DEFAULT_TTL,
        event_publisher=None,
    ):
        """
        Initialize FileManager.

        Args:
            file_registry: Registry of live entries
            storage_repository: Blob store for file content
            default_ttl: Lifetime given to uploads without an explicit ttl
            event_publisher: Optional publisher for domain events
        """
        self.registry = file_registry
        self.storage = storage_repository
        self.default_ttl = default_ttl
        self.event_publisher = event_publisher

    def register_upload(
        self,
        content: BinaryIO,
        original_name: str,
        ttl: Optional[timedelta] = None,
    ) -> EntrySnapshot:
        """
        Store an uploaded file and register it.

        Args:
            content: Uploaded bytes
            original_name: Filename as sent by the client
            ttl: Lifetime override (defaults to default_ttl)

        Returns:
            Snapshot of the new entry

        Raises:
            ValueError: If original_name is empty
            StorageWriteError: If the blob store rejected the content; no
                entry is created in that case
        """
        if not original_name or not original_name.strip():
            raise ValueError("original_name cannot be empty")

        entry_id = generate_entry_id()
        storage_key = StorageKey(entry_id, original_name).value

        try:
            saved = self.storage.save(storage_key, content)
        except (OSError, ValueError) as e:
            raise StorageWriteError(f"Failed to store {original_name}: {e}", e) from e
        if not saved:
            raise StorageWriteError(f"Blob store refused {original_name}")

        try:
            self.registry.create(
                storage_key, original_name, ttl or self.default_ttl, entry_id=entry_id
            )
        except Exception:
            self._delete_blob_quietly(storage_key)
            raise

        entry = self.registry.get_raw(entry_id)
        if entry is None:
            # A sweep can only beat us here when the ttl is already over.
            raise EntryNotFoundError(f"Entry {entry_id} vanished right after upload")

        self._publish(
            FileUploadedEvent(
                aggregate_id=entry.id,
                occurred_at=entry.created_at,
                filename=entry.original_name,
                storage_key=entry.storage_key,
                expires_at=entry.expires_at,
            )
        )
        return entry

    def get_file(self, entry_id: str) -> EntrySnapshot:
        """
        Retrieve a live entry.

        An expired entry found here is removed on the spot (lazy cleanup)
        and reported as not found.

        Raises:
            EntryNotFoundError: If the entry is missing or expired
        """
        entry = self.registry.get(entry_id)
        if entry is not None:
            return entry

        stale = self.registry.get_raw(entry_id)
        if stale is not None and stale.is_expired(self.registry.now()):
            self.remove_entry(entry_id, reason="lazy")

        raise EntryNotFoundError(f"File not found: {entry_id}")

    def open_download(
        self, entry_id: str, via_token: bool = False
    ) -> Tuple[EntrySnapshot, BinaryIO]:
        """
        Open a live entry's blob and count the download.

        Args:
            entry_id: Registry entry id
            via_token: Whether the request came through a one-time token

        Returns:
            Tuple of (snapshot after the access was recorded, open stream).
            The caller must close the stream.

        Raises:
            EntryNotFoundError: If the entry is missing or expired
            BlobMissingError: If the entry exists but its blob is gone
        """
        entry = self.get_file(entry_id)

        stream = self.storage.get(entry.storage_key)
        if stream is None:
            raise BlobMissingError(
                f"Blob {entry.storage_key} missing for entry {entry_id}"
            )

        updated = self.registry.record_access(entry_id)
        if updated is None:
            stream.close()
            raise EntryNotFoundError(f"File not found: {entry_id}")

        if updated.is_expired(self.registry.now()):
            stream.close()
            self.remove_entry(entry_id, reason="lazy")
            raise EntryNotFoundError(f"File not found: {entry_id}")


        self._publish(
            FileDownloadedEvent(
                aggregate_id=updated.id,
                occurred_at=updated.last_access_at,
                filename=updated.original_name,
                download_count=updated.download_count,
                via_token=via_token,
            )
        )
        return updated, stream

    def find_latest_by_name(self, original_name: str) -> Optional[EntrySnapshot]:
        """
        Most recently created live entry with the given filename.

        Returns:
            The matching snapshot, or None
        """
        matches = [
            entry
            for entry in self.registry.list_live()
            if entry.original_name == original_name
        ]
        if not matches:
            return None
        return max(matches, key=lambda entry: entry.created_at)

    def remove_entry(self, entry_id: str, reason: str) -> bool:
        """
        Remove an entry and release its blob.

        Only the caller whose registry removal succeeds touches the blob,
        so a blob is never deleted twice.

        Args:
            entry_id: Registry entry id
            reason: Why the entry goes away ('expired', 'idle', 'lazy', ...)

        Returns:
            True if this call removed the entry
        """
        removed = self.registry.remove(entry_id)
        if removed is None:
            return False

        self.release_blob(removed, reason)
        return True

    def release_blob(self, entry: EntrySnapshot, reason: str) -> bool:
        """
        Delete the blob of an entry that was already removed from the registry.

        Delete failures are logged and published, never raised: the entry
        stays removed and the blob becomes an orphan.

        Returns:
            True if the blob was deleted (or was already gone)
        """
        self._publish(
            FileEvictedEvent(
                aggregate_id=entry.id,
                occurred_at=self.registry.now(),
                filename=entry.original_name,
                reason=reason,
            )
        )

        try:
            return bool(self.storage.delete(entry.storage_key))
        except Exception as e:
            logger.warning(
                f"Failed to delete blob {entry.storage_key} for entry {entry.id}: {e}"
            )
            self._publish(
                FileCleanupFailedEvent(
                    aggregate_id=entry.id,
                    occurred_at=self.registry.now(),
                    storage_key=entry.storage_key,
                    error_message=str(e),
                )
            )
            return False

    def _delete_blob_quietly(self, storage_key: str) -> None:
        try:
            self.storage.delete(storage_key)
        except Exception as e:
            logger.warning(f"Could not roll back blob {storage_key}: {e}")

    def _publish(self, event) -> None:
        if self.event_publisher is not None:
            self.event_publisher.publish(event)
