"""
Local File Storage Repository Implementation

Concrete implementation of IFileStorageRepository for the local filesystem.
Blobs live under a single base directory; storage keys map to relative paths
below it.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional

from tempshare.domain.errors import StorageDeleteError
from tempshare.domain.file_storage.storage_repository import IFileStorageRepository

CHUNK_SIZE = 64 * 1024


class LocalFileStorageRepository(IFileStorageRepository):
    """
    Local filesystem implementation of IFileStorageRepository.

    Writes go to a temporary file in the target directory and are moved
    into place with os.replace, so readers never see a half-written blob.

    Attributes:
        base_path: Base directory path for file storage operations
    """

    def __init__(self, base_path: str = "/tmp/tempshare"):
        """
        Initialize the local file storage repository.

        Args:
            base_path: Base directory for file storage (default: /tmp/tempshare)
        """
        self.base_path = Path(base_path).resolve()
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        """
        Ensure the base storage directory exists.

        Raises:
            PermissionError: If insufficient permissions to create directory
            OSError: If directory creation fails for other reasons
        """
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(
                f"Insufficient permissions to create storage directory: {self.base_path}"
            ) from e
        except OSError as e:
            raise OSError(f"Failed to create storage directory: {self.base_path}") from e

    def _resolve(self, storage_key: str) -> Path:
        """
        Map a storage key to an absolute path inside base_path.

        Raises:
            ValueError: If the key is empty or points outside base_path
        """
        if not storage_key or not storage_key.strip():
            raise ValueError("storage_key cannot be empty")

        full_path = (self.base_path / storage_key).resolve()
        if full_path == self.base_path or self.base_path not in full_path.parents:
            raise ValueError(f"storage_key escapes storage root: {storage_key!r}")
        return full_path

    # IFileStorageRepository interface methods

    def save(self, storage_key: str, content: BinaryIO) -> bool:
        full_path = self._resolve(storage_key)

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=full_path.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as f:
                    shutil.copyfileobj(content, f, CHUNK_SIZE)
                os.replace(tmp_name, full_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
            return True

        except PermissionError:
            raise
        except OSError as e:
            raise IOError(f"Failed to save file: {e}") from e

    def get(self, storage_key: str) -> Optional[BinaryIO]:
        try:
            full_path = self._resolve(storage_key)
            if not full_path.is_file():
                return None
            return open(full_path, "rb")
        except (OSError, ValueError):
            return None

    def delete(self, storage_key: str) -> bool:
        try:
            full_path = self._resolve(storage_key)
        except ValueError:
            return True  # Idempotent - invalid key treated as already gone

        try:
            full_path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageDeleteError(f"Failed to delete {storage_key}: {e}", e) from e

        # Remove the per-entry directory once it is empty.
        parent = full_path.parent
        if parent != self.base_path:
            try:
                parent.rmdir()
            except OSError:
                pass
        return True

    def exists(self, storage_key: str) -> bool:
        try:
            return self._resolve(storage_key).is_file()
        except (OSError, ValueError):
            return False

    def get_size(self, storage_key: str) -> Optional[int]:
        try:
            full_path = self._resolve(storage_key)
            if not full_path.is_file():
                return None
            return full_path.stat().st_size
        except (OSError, ValueError):
            return None
