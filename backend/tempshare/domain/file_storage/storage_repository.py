"""
File Storage Repository Interface

Abstract interface for the blob store holding uploaded file content.
The domain layer only sees opaque storage keys and byte streams, so the
registry stays independent of where bytes physically live (local disk,
object storage, ...).
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional


class IFileStorageRepository(ABC):
    """
    Blob store contract.

    Contract Guarantees:
    - Keys are opaque, relative identifiers chosen by the caller
    - Binary content is handled via BinaryIO for streaming support
    - delete() and exists() are idempotent

    Implementation Requirements:
    - save(): Must create any intermediate structure it needs
    - get(): Must return None for missing blobs (no exceptions)
    - delete(): Must succeed when the blob is already gone
    - exists(): Must never raise for invalid keys
    - get_size(): Must return None for missing blobs

    Thread Safety:
    - Implementations must be safe for concurrent use from request threads
      and sweep threads
    """

    @abstractmethod
    def save(self, storage_key: str, content: BinaryIO) -> bool:
        """
        Store content under storage_key.

        Args:
            storage_key: Opaque key (e.g. '3f2b.../report.pdf')
            content: Binary file content, read from its current position

        Returns:
            True if the blob was fully written

        Raises:
            ValueError: If storage_key is empty or invalid
            PermissionError: If there are insufficient permissions to write
            IOError: If there are I/O errors during the operation

        Notes:
            - A failed write must not leave a partial blob behind
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, storage_key: str) -> Optional[BinaryIO]:
        """
        Open a blob for reading.

        Args:
            storage_key: Key passed to save()

        Returns:
            Readable binary stream, or None if the blob doesn't exist

        Notes:
            - Caller must close the returned stream
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, storage_key: str) -> bool:
        """
        Delete a blob.

        Args:
            storage_key: Key passed to save()

        Returns:
            True if the blob was deleted or didn't exist

        Raises:
            StorageDeleteError: If the blob exists but cannot be removed
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, storage_key: str) -> bool:
        """
        Check whether a blob exists.

        Returns:
            True if the blob exists, False otherwise (never raises)
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_size(self, storage_key: str) -> Optional[int]:
        """
        Size of a blob in bytes.

        Returns:
            Size in bytes, or None if the blob doesn't exist
        """
        pass  # pragma: no cover
