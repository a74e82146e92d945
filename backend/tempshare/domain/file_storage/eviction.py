"""
Eviction Service

The two reclamation policies of the registry: hard expiry and idle eviction.
Scheduling lives in tempshare.tasks; this module only knows how to sweep once.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from .entities import EntrySnapshot
from .services import FileManager

logger = logging.getLogger(__name__)

DEFAULT_IDLE_THRESHOLD = timedelta(days=30)


@dataclass
class SweepResult:
    """Outcome of one sweep run."""

    sweep: str
    started_at: datetime
    scanned: int = 0
    removed: int = 0
    blob_failures: int = 0
    duration_seconds: float = 0.0
    removed_ids: list = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sweep": self.sweep,
            "started_at": self.started_at.isoformat(),
            "scanned": self.scanned,
            "removed": self.removed,
            "blob_failures": self.blob_failures,
            "duration_seconds": round(self.duration_seconds, 3),
        }


class EvictionService:
    """
    Domain service removing entries that are past their expiry or idle.

    Both sweeps go through FileRegistry.remove, the same primitive used by
    lazy cleanup on the request path, so whichever caller wins the removal
    is the only one that deletes the blob.
    """

    def __init__(
        self,
        file_manager: FileManager,
        idle_threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
    ):
        """
        Initialize EvictionService.

        Args:
            file_manager: FileManager owning the registry and blob store
            idle_threshold: Time without downloads after which an entry is
                evicted regardless of its expiry
        """
        self.file_manager = file_manager
        self.registry = file_manager.registry
        self.idle_threshold = idle_threshold

    def sweep_expired(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Remove every entry whose expires_at is at or before now.

        Args:
            now: Reference time (defaults to the registry clock)

        Returns:
            SweepResult with counts
        """
        now = now or self.registry.now()
        return self._sweep("expired", lambda entry: entry.is_expired(now), now)

    def sweep_idle(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Remove every entry not accessed for longer than the idle threshold.

        Args:
            now: Reference time (defaults to the registry clock)

        Returns:
            SweepResult with counts
        """
        now = now or self.registry.now()
        return self._sweep(
            "idle", lambda entry: entry.is_idle(self.idle_threshold, now), now
        )

    def _sweep(
        self,
        reason: str,
        qualifies: Callable[[EntrySnapshot], bool],
        now: datetime,
    ) -> SweepResult:
        result = SweepResult(sweep=reason, started_at=now)
        started = time.monotonic()

        for entry in self.registry.list_all():
            result.scanned += 1
            if not qualifies(entry):
                continue

            removed = self.registry.remove(entry.id)
            if removed is None:
                # Another sweep or a request got there first.
                continue

            result.removed += 1
            result.removed_ids.append(removed.id)
            if not self.file_manager.release_blob(removed, reason):
                result.blob_failures += 1

        result.duration_seconds = time.monotonic() - started
        if result.removed:
            logger.info(
                f"{reason} sweep removed {result.removed}/{result.scanned} entries "
                f"({result.blob_failures} blob failures)"
            )
        else:
            logger.debug(f"{reason} sweep found nothing among {result.scanned} entries")
        return result
