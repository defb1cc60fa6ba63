"""Analytics Service facade.

The operations exposed to the rest of the platform. Collection runs on a
background writer and never raises to the submission pipeline; query,
dashboard, stats, export and cleanup raise to their caller.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from careerlens.shared.models import AnonymizedRecord, format_timestamp
from careerlens.shared.models.profile import (
    MetadataInput,
    ProfileInput,
    RecommendationInput,
)
from careerlens.shared.storage import StorageConfig
from .aggregator import Aggregation, Aggregator
from .anonymizer import AnonymizationError, Anonymizer
from .config import AnalyticsConfig
from .dashboard import DashboardBuilder, DashboardView
from .exporter import ExportFormat, export_records
from .filters import AnalyticsFilter
from .partition_store import PartitionStore
from .retention import RetentionManager

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Collects anonymized submission events and answers aggregate queries."""

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        storage_config: Optional[StorageConfig] = None,
        store: Optional[PartitionStore] = None,
    ):
        """Initialize service and its storage.

        Args:
            config: Analytics configuration (defaults to environment)
            storage_config: Storage configuration, ignored when store is given
            store: Partition store (injected for testing)

        Raises:
            StorageInitializationError: If the data directory cannot be created
        """
        self.config = config or AnalyticsConfig.from_env()
        self.store = store or PartitionStore(storage_config)
        self.store.initialize()

        self.anonymizer = Anonymizer(strict_location=self.config.strict_location)
        self.aggregator = Aggregator(group_averaging=self.config.group_averaging)
        self.dashboard_builder = DashboardBuilder(top_n=self.config.top_n)
        self.retention = RetentionManager(self.store)

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.writer_threads,
            thread_name_prefix="analytics-writer",
        )
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()

        logger.info(
            "ANALYTICS_SERVICE_INITIALIZED",
            extra={
                "data_dir": str(self.store.data_dir),
                "retention_days": self.config.retention_days,
                "group_averaging": self.config.group_averaging.value,
                "writer_threads": self.config.writer_threads,
            }
        )

    def collect_analytics(
        self,
        profile: ProfileInput,
        recommendations: List[RecommendationInput],
        processing_meta: MetadataInput,
    ) -> None:
        """Anonymize and store one submission in the background.

        Returns immediately and never raises; failures are logged.
        """
        try:
            future = self._executor.submit(
                self._collect, profile, recommendations, processing_meta
            )
        except RuntimeError as e:
            logger.error(
                "ANALYTICS_COLLECTION_REJECTED",
                extra={"error": str(e)}
            )
            return

        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._on_collected)

    def _collect(
        self,
        profile: ProfileInput,
        recommendations: List[RecommendationInput],
        processing_meta: MetadataInput,
    ) -> AnonymizedRecord:
        record = self.anonymizer.anonymize(profile, recommendations, processing_meta)
        self.store.append(record)

        logger.info(
            "ANALYTICS_RECORD_STORED",
            extra={
                "record_id": record.id,
                "profile_hash": record.profile_hash,
                "partition": record.partition_key,
            }
        )
        return record

    def _on_collected(self, future: Future) -> None:
        """The one place collection failures are absorbed."""
        with self._pending_lock:
            self._pending.discard(future)

        if future.cancelled():
            logger.warning("ANALYTICS_COLLECTION_CANCELLED")
            return

        error = future.exception()
        if error is None:
            return

        if isinstance(error, AnonymizationError):
            logger.warning(
                "ANALYTICS_RECORD_DROPPED",
                extra={"reason": "anonymization_failed", "error": str(error)}
            )
        else:
            logger.error(
                "ANALYTICS_COLLECTION_FAILED",
                extra={"error_type": type(error).__name__, "error": str(error)}
            )

    def wait_for_pending(self, timeout: Optional[float] = None) -> bool:
        """Block until queued collections finish.

        Returns:
            True if nothing is left pending
        """
        with self._pending_lock:
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self, wait_for_writes: bool = True) -> None:
        """Stop the background writer."""
        self._executor.shutdown(wait=wait_for_writes)
        logger.info("ANALYTICS_SERVICE_CLOSED")

    def get_aggregated_data(self, record_filter: Optional[AnalyticsFilter] = None) -> Aggregation:
        """Aggregate all stored records matching the filter."""
        try:
            records = self.store.load_all(record_filter)
            return self.aggregator.aggregate(records, record_filter)
        except Exception as e:
            logger.error(
                "ANALYTICS_AGGREGATION_FAILED",
                extra={"error": str(e)}
            )
            raise

    def get_dashboard_data(self, record_filter: Optional[AnalyticsFilter] = None) -> DashboardView:
        """Dashboard view over all stored records matching the filter."""
        aggregation = self.get_aggregated_data(record_filter)
        return self.dashboard_builder.build(aggregation)

    def get_analytics_stats(self) -> Dict[str, Any]:
        """Entry count, date range, storage size and last update time."""
        try:
            stats = self.store.stats()
        except Exception as e:
            logger.error(
                "ANALYTICS_STATS_FAILED",
                extra={"error": str(e)}
            )
            raise

        now = format_timestamp(datetime.now(timezone.utc))
        return {
            "total_entries": stats.count,
            "date_range": {
                "from": stats.date_from or now,
                "to": stats.date_to or now,
            },
            "storage_size_bytes": stats.size_bytes,
            "last_updated": stats.last_modified,
        }

    def cleanup_old_data(self, retention_days: Optional[int] = None) -> int:
        """Purge records older than the retention window.

        Args:
            retention_days: Window in days (defaults to config)

        Returns:
            Number of records removed
        """
        days = self.config.retention_days if retention_days is None else retention_days
        try:
            return self.retention.cleanup(days)
        except Exception as e:
            logger.error(
                "ANALYTICS_CLEANUP_FAILED",
                extra={"retention_days": days, "error": str(e)}
            )
            raise

    def export_data(self, record_filter: Optional[AnalyticsFilter] = None) -> List[AnonymizedRecord]:
        """Stored records matching the filter, for JSON/CSV formatting."""
        try:
            return self.store.load_all(record_filter)
        except Exception as e:
            logger.error(
                "ANALYTICS_EXPORT_FAILED",
                extra={"error": str(e)}
            )
            raise

    def export_bytes(
        self,
        record_filter: Optional[AnalyticsFilter] = None,
        export_format: ExportFormat = ExportFormat.JSON,
    ) -> bytes:
        """Filtered records serialized as JSON or CSV."""
        records = self.export_data(record_filter)
        logger.info(
            "ANALYTICS_EXPORTED",
            extra={"format": export_format.value, "records": len(records)}
        )
        return export_records(records, export_format)
