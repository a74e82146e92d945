"""
Test doubles shared across the suite.
"""

import io
import threading
from datetime import datetime, timedelta, timezone
from typing import BinaryIO, Dict, Optional
from unittest.mock import Mock

from tempshare.domain.file_storage import IFileStorageRepository


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self.current

    def advance(self, **kwargs) -> datetime:
        with self._lock:
            self.current += timedelta(**kwargs)
            return self.current


class InMemoryBlobStore(IFileStorageRepository):
    """Dict-backed blob store recording deletes."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.deleted = []
        self._lock = threading.Lock()

    def save(self, storage_key: str, content: BinaryIO) -> bool:
        data = content.read()
        with self._lock:
            self.blobs[storage_key] = data
        return True

    def get(self, storage_key: str) -> Optional[BinaryIO]:
        with self._lock:
            data = self.blobs.get(storage_key)
        return io.BytesIO(data) if data is not None else None

    def delete(self, storage_key: str) -> bool:
        with self._lock:
            self.blobs.pop(storage_key, None)
            self.deleted.append(storage_key)
        return True

    def exists(self, storage_key: str) -> bool:
        with self._lock:
            return storage_key in self.blobs

    def get_size(self, storage_key: str) -> Optional[int]:
        with self._lock:
            data = self.blobs.get(storage_key)
        return len(data) if data is not None else None


def published(event_publisher: Mock, event_type) -> list:
    """Events of event_type passed to a mock publisher, in order."""
    return [
        call.args[0]
        for call in event_publisher.publish.call_args_list
        if isinstance(call.args[0], event_type)
    ]
