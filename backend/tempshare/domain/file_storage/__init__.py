"""
File Storage Domain

Handles the ephemeral file registry, one-time download links and eviction.
"""

from .entities import EntrySnapshot, RegistryEntry
from .eviction import EvictionService, SweepResult
from .link_issuer import LinkIssuer
from .repositories import FileRegistry, TokenRepository
from .services import FileManager
from .stats import StatsReporter
from .storage_repository import IFileStorageRepository
from .value_objects import DownloadToken, StorageKey

__all__ = [
    "DownloadToken",
    "EntrySnapshot",
    "EvictionService",
    "FileManager",
    "FileRegistry",
    "IFileStorageRepository",
    "LinkIssuer",
    "RegistryEntry",
    "StatsReporter",
    "StorageKey",
    "SweepResult",
    "TokenRepository",
]
