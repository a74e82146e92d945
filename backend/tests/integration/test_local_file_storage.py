"""
Integration tests for LocalFileStorageRepository on a real filesystem.
"""

import io
from unittest.mock import patch

import pytest

from tempshare.domain.errors import StorageDeleteError
from tempshare.domain.file_storage.value_objects import StorageKey
from tempshare.infrastructure.local_file_storage_repository import (
    LocalFileStorageRepository,
)


@pytest.fixture
def storage(tmp_path) -> LocalFileStorageRepository:
    return LocalFileStorageRepository(str(tmp_path / "blobs"))


def test_creates_base_directory(tmp_path):
    LocalFileStorageRepository(str(tmp_path / "nested" / "blobs"))
    assert (tmp_path / "nested" / "blobs").is_dir()


def test_save_and_get(storage):
    key = StorageKey("entry-1", "a.txt").value

    assert storage.save(key, io.BytesIO(b"content")) is True

    with storage.get(key) as stream:
        assert stream.read() == b"content"
    assert storage.exists(key)
    assert storage.get_size(key) == 7


def test_save_large_content_in_chunks(storage):
    payload = b"x" * (1024 * 1024 + 17)
    key = StorageKey("entry-1", "big.bin").value

    storage.save(key, io.BytesIO(payload))

    assert storage.get_size(key) == len(payload)


def test_save_leaves_no_temp_files(storage):
    key = StorageKey("entry-1", "a.txt").value
    storage.save(key, io.BytesIO(b"content"))

    names = [p.name for p in (storage.base_path / "entry-1").iterdir()]
    assert names == ["a.txt"]


def test_encoded_names_stay_inside_entry_directory(storage):
    key = StorageKey("entry-1", "../../escape.txt").value

    storage.save(key, io.BytesIO(b"x"))

    assert storage.exists(key)
    assert not (storage.base_path.parent / "escape.txt").exists()


@pytest.mark.parametrize("key", ["", "   ", "../outside.txt", "entry/../../x"])
def test_rejects_keys_outside_root(storage, key):
    with pytest.raises(ValueError):
        storage.save(key, io.BytesIO(b"x"))


def test_get_missing_returns_none(storage):
    assert storage.get("entry-1/missing.txt") is None
    assert storage.get_size("entry-1/missing.txt") is None
    assert not storage.exists("entry-1/missing.txt")


def test_delete_removes_blob_and_entry_directory(storage):
    key = StorageKey("entry-1", "a.txt").value
    storage.save(key, io.BytesIO(b"content"))

    assert storage.delete(key) is True

    assert not storage.exists(key)
    assert not (storage.base_path / "entry-1").exists()


def test_delete_is_idempotent(storage):
    assert storage.delete("entry-1/never-saved.txt") is True


def test_delete_failure_raises_storage_delete_error(storage):
    key = StorageKey("entry-1", "a.txt").value
    storage.save(key, io.BytesIO(b"content"))

    with patch("pathlib.Path.unlink", side_effect=PermissionError("read-only")):
        with pytest.raises(StorageDeleteError):
            storage.delete(key)
