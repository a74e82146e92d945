"""
Stats Reporter

Read-only view over the registry for observability.
"""

from typing import Any, Dict, List

from .repositories import FileRegistry


class StatsReporter:
    """Builds best-effort snapshots of the live registry contents."""

    def __init__(self, file_registry: FileRegistry):
        self.registry = file_registry

    def snapshot(self) -> List[Dict[str, Any]]:
        """
        Stats for every live entry, oldest upload first.

        Entries are read one at a time, so the list as a whole is not a
        single transaction; each item is internally consistent.
        """
        entries = sorted(self.registry.list_live(), key=lambda e: e.created_at)
        return [entry.to_stats_dict() for entry in entries]

    def summary(self) -> Dict[str, Any]:
        """Aggregate counters over the live entries."""
        entries = self.registry.list_live()
        return {
            "live_files": len(entries),
            "total_downloads": sum(entry.download_count for entry in entries),
        }
