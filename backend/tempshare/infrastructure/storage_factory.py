"""
Storage Factory

Builds the blob store, file registry and token map for the configured
backend. The application layer only sees the domain interfaces.
"""

import logging
from typing import Optional

from tempshare.config.registry_config import RegistryConfig
from tempshare.domain.file_storage.repositories import FileRegistry, TokenRepository
from tempshare.domain.file_storage.storage_repository import IFileStorageRepository

from .in_memory_file_registry import InMemoryFileRegistry
from .in_memory_token_repository import InMemoryTokenRepository
from .local_file_storage_repository import LocalFileStorageRepository
from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)


class StorageFactory:
    """Factory for storage and registry implementations."""

    @staticmethod
    def create_storage(config: RegistryConfig) -> IFileStorageRepository:
        """
        Create the local filesystem blob store.

        Raises:
            RuntimeError: If local storage initialization fails
        """
        try:
            storage = LocalFileStorageRepository(config.storage_dir)
            logger.info(f"Storage factory: using local filesystem storage at {config.storage_dir}")
            return storage
        except OSError as e:
            raise RuntimeError(f"Failed to initialize local storage: {e}") from e

    @staticmethod
    def create_registry(
        config: RegistryConfig, redis_repo: Optional[RedisRepository] = None
    ) -> FileRegistry:
        """
        Create the file registry for config.backend.

        Raises:
            ValueError: If the redis backend is selected without a repository
        """
        if config.backend == "redis":
            from .redis_file_registry import RedisFileRegistry

            if redis_repo is None:
                raise ValueError("Redis registry backend requires a RedisRepository")
            return RedisFileRegistry(redis_repo)

        return InMemoryFileRegistry(stripes=config.stripes)

    @staticmethod
    def create_token_repository(
        config: RegistryConfig, redis_repo: Optional[RedisRepository] = None
    ) -> TokenRepository:
        """Create the token map matching config.backend."""
        if config.backend == "redis":
            from .redis_token_repository import RedisTokenRepository

            if redis_repo is None:
                raise ValueError("Redis token backend requires a RedisRepository")
            return RedisTokenRepository(redis_repo)

        return InMemoryTokenRepository(stripes=config.stripes)
