"""
File Service

Application service behind the /files endpoints. Turns handles into entry
ids, issues links and shapes the payloads the API returns.
"""

import logging
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from tempshare.domain.errors import EntryNotFoundError
from tempshare.domain.events import DownloadLinkIssuedEvent
from tempshare.domain.file_storage import (
    DownloadToken,
    EntrySnapshot,
    FileManager,
    LinkIssuer,
    StatsReporter,
)

logger = logging.getLogger(__name__)

DOWNLOAD_PATH = "/files/download/{handle}"


class FileService:
    """
    Coordinates uploads, one-time links and downloads.

    Handle resolution on download:
    - a handle that is an outstanding token is always consumed and resolved
    - otherwise in 'id' mode the handle is taken as an entry id
    - otherwise in 'token' mode the handle is taken as an entry id only when
      accept_raw_ids is set
    """

    def __init__(
        self,
        file_manager: FileManager,
        link_issuer: LinkIssuer,
        stats_reporter: StatsReporter,
        handle_mode: str = "id",
        accept_raw_ids: bool = False,
        event_publisher=None,
    ):
        """
        Initialize FileService.

        Args:
            file_manager: Domain service over registry and blob store
            link_issuer: Issues and consumes one-time tokens
            stats_reporter: Read-only registry view
            handle_mode: 'id' to hand out entry ids, 'token' to hand out
                one-time tokens on upload
            accept_raw_ids: In 'token' mode, also accept entry ids on download
            event_publisher: Optional publisher for domain events
        """
        if handle_mode not in ("id", "token"):
            raise ValueError(f"Unknown handle mode: {handle_mode!r}")

        self.file_manager = file_manager
        self.link_issuer = link_issuer
        self.stats_reporter = stats_reporter
        self.handle_mode = handle_mode
        self.accept_raw_ids = accept_raw_ids
        self.event_publisher = event_publisher

    def upload(self, content: BinaryIO, filename: str) -> Dict[str, Any]:
        """
        Store an upload and hand out its handle.

        Args:
            content: Uploaded bytes
            filename: Original filename

        Returns:
            Dictionary with download_url, handle, id and expires_at

        Raises:
            ValueError: If filename is empty
            StorageWriteError: If the blob could not be stored
        """
        entry = self.file_manager.register_upload(content, filename)

        if self.handle_mode == "token":
            handle = self._issue_token(entry)
        else:
            handle = entry.id

        return {
            "download_url": DOWNLOAD_PATH.format(handle=handle),
            "handle": handle,
            "id": entry.id,
            "expires_at": entry.expires_at.isoformat(),
        }

    def generate_link(self, filename: str) -> Dict[str, str]:
        """
        Issue a one-time link for the newest live upload named filename.

        Raises:
            EntryNotFoundError: If no live entry has that filename
        """
        entry = self.file_manager.find_latest_by_name(filename)
        if entry is None:
            raise EntryNotFoundError(f"No live file named {filename}")

        token = self._issue_token(entry)
        return {
            "download_url": DOWNLOAD_PATH.format(handle=token),
            "token": token,
        }

    def download(self, handle: str) -> Tuple[EntrySnapshot, BinaryIO]:
        """
        Resolve a handle and open the file behind it.

        A token is spent as soon as it resolves, even if its target turns
        out to be gone.

        Returns:
            Tuple of (entry snapshot, open stream); the caller closes the stream

        Raises:
            EntryNotFoundError: If the handle does not lead to a live entry
            BlobMissingError: If the entry exists without its blob
        """
        entry_id, via_token = self._resolve_handle(handle)
        if entry_id is None:
            raise EntryNotFoundError(f"Unknown or used handle: {handle}")

        return self.file_manager.open_download(entry_id, via_token=via_token)

    def stats(self) -> List[Dict[str, Any]]:
        return self.stats_reporter.snapshot()

    def _resolve_handle(self, handle: str) -> Tuple[Optional[str], bool]:
        # Strings that cannot be tokens never hit the token map
        if DownloadToken.looks_valid(handle):
            target_id = self.link_issuer.resolve_and_consume(handle)
            if target_id is not None:
                return target_id, True

        if self.handle_mode == "id" or self.accept_raw_ids:
            return handle, False

        return None, False

    def _issue_token(self, entry: EntrySnapshot) -> str:
        token = self.link_issuer.issue(entry.id)
        if self.event_publisher is not None:
            self.event_publisher.publish(
                DownloadLinkIssuedEvent(
                    aggregate_id=entry.id,
                    occurred_at=self.file_manager.registry.now(),
                    token_prefix=token[:6],
                )
            )
        return token
