"""
Domain Events

Immutable records of significant state changes in the domain.
Events decouple side effects (logging, monitoring) from core registry logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the registry entry the event is about
        occurred_at: Timestamp when the event occurred
    """

    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class FileUploadedEvent(DomainEvent):
    """
    Event emitted when an upload has been stored and registered.

    Attributes:
        filename: Original filename
        storage_key: Blob store key
        expires_at: Hard expiry of the new entry
    """

    filename: str
    storage_key: str
    expires_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update(
            {
                "filename": self.filename,
                "storage_key": self.storage_key,
                "expires_at": self.expires_at.isoformat(),
            }
        )
        return base_dict


@dataclass(frozen=True)
class FileDownloadedEvent(DomainEvent):
    """
    Event emitted after a successful download was recorded.

    Attributes:
        filename: Original filename
        download_count: Counter value after this download
        via_token: True when the download used a one-time token
    """

    filename: str
    download_count: int
    via_token: bool

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update(
            {
                "filename": self.filename,
                "download_count": self.download_count,
                "via_token": self.via_token,
            }
        )
        return base_dict


@dataclass(frozen=True)
class DownloadLinkIssuedEvent(DomainEvent):
    """
    Event emitted when a one-time download token is issued.

    Only a short token prefix is kept so events are safe to log.
    """

    token_prefix: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict["token_prefix"] = self.token_prefix
        return base_dict


@dataclass(frozen=True)
class FileEvictedEvent(DomainEvent):
    """
    Event emitted when an entry is removed from the registry.

    Attributes:
        filename: Original filename
        reason: 'expired', 'idle' or 'lazy'
    """

    filename: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({"filename": self.filename, "reason": self.reason})
        return base_dict


@dataclass(frozen=True)
class FileCleanupFailedEvent(DomainEvent):
    """
    Event emitted when a blob could not be deleted after its entry was removed.

    The entry is gone regardless; the blob is left as an orphan.

    Attributes:
        storage_key: Key of the orphaned blob
        error_message: Human-readable error message
    """

    storage_key: str
    error_message: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update(
            {
                "storage_key": self.storage_key,
                "error_message": self.error_message,
            }
        )
        return base_dict
