"""Infrastructure layer: registry backends, blob storage and Redis access."""

from .in_memory_file_registry import InMemoryFileRegistry
from .in_memory_token_repository import InMemoryTokenRepository
from .local_file_storage_repository import LocalFileStorageRepository
from .redis_repository import RedisConnectionManager, RedisRepository
from .storage_factory import StorageFactory

__all__ = [
    "InMemoryFileRegistry",
    "InMemoryTokenRepository",
    "LocalFileStorageRepository",
    "RedisConnectionManager",
    "RedisRepository",
    "StorageFactory",
]
