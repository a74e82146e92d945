"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from tempshare.domain.events import (
    DomainEvent,
    DownloadLinkIssuedEvent,
    FileCleanupFailedEvent,
    FileDownloadedEvent,
    FileEvictedEvent,
    FileUploadedEvent,
)


class LoggingEventHandler:
    """Logs domain events at a level matching their significance."""

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, FileUploadedEvent):
                self._handle_uploaded(event)
            elif isinstance(event, FileDownloadedEvent):
                self._handle_downloaded(event)
            elif isinstance(event, DownloadLinkIssuedEvent):
                self._handle_link_issued(event)
            elif isinstance(event, FileEvictedEvent):
                self._handle_evicted(event)
            elif isinstance(event, FileCleanupFailedEvent):
                self._handle_cleanup_failed(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={event.aggregate_id})"
                )
        except Exception as e:
            # Log handler errors but don't fail the operation
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_uploaded(self, event: FileUploadedEvent) -> None:
        self.logger.info(
            f"File uploaded: id={event.aggregate_id}, filename={event.filename}, "
            f"expires_at={event.expires_at.isoformat()}"
        )

    def _handle_downloaded(self, event: FileDownloadedEvent) -> None:
        self.logger.info(
            f"File downloaded: id={event.aggregate_id}, filename={event.filename}, "
            f"downloads={event.download_count}, via_token={event.via_token}"
        )

    def _handle_link_issued(self, event: DownloadLinkIssuedEvent) -> None:
        self.logger.info(
            f"Download link issued: id={event.aggregate_id}, token={event.token_prefix}..."
        )

    def _handle_evicted(self, event: FileEvictedEvent) -> None:
        self.logger.info(
            f"File evicted: id={event.aggregate_id}, filename={event.filename}, "
            f"reason={event.reason}"
        )

    def _handle_cleanup_failed(self, event: FileCleanupFailedEvent) -> None:
        self.logger.warning(
            f"Blob cleanup failed, orphan left behind: id={event.aggregate_id}, "
            f"storage_key={event.storage_key}, error={event.error_message}"
        )
