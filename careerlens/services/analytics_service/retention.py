"""Retention cleanup for the analytics store."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from .partition_store import PartitionStore

logger = logging.getLogger(__name__)


class RetentionManager:
    """Purges records older than the retention window.

    Load, partition and rewrite all happen under the store's writer lock,
    so a concurrent append cannot slip in between and be overwritten.
    """

    def __init__(self, store: PartitionStore):
        self.store = store

    def cleanup(self, retention_days: int, now: Optional[datetime] = None) -> int:
        """Delete records strictly older than now - retention_days.

        Survivors are regrouped by their own day and written back through
        PartitionStore.rewrite. Partitions that could not be read are left
        untouched.

        Args:
            retention_days: Retention window in days
            now: Reference time (defaults to current UTC time)

        Returns:
            Number of records removed

        Raises:
            ValueError: If retention_days is negative
            StorageWriteError: If survivors cannot be written back
        """
        if retention_days < 0:
            raise ValueError(f"retention_days must be >= 0, got {retention_days}")

        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=retention_days)

        with self.store.locked():
            partitions = self.store.load_partitions()
            records = [r for day_records in partitions.values() for r in day_records]
            survivors = [r for r in records if r.created_at >= cutoff]
            removed = len(records) - len(survivors)

            if removed > 0:
                self.store.rewrite(survivors, days=partitions.keys())

        logger.info(
            "ANALYTICS_CLEANUP_COMPLETED",
            extra={
                "retention_days": retention_days,
                "cutoff": cutoff.isoformat(),
                "removed": removed,
                "remaining": len(survivors),
            }
        )
        return removed
