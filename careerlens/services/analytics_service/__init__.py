"""Analytics Service: anonymized career-recommendation analytics.

Every submission is reduced to an anonymized record (hashed profile id,
state-level location, bucketed income and family background) and stored
in day-partitioned JSON files. Aggregates, dashboards and exports are
recomputed from the stored records on every request.

This service provides:
- Background collection of anonymized records
- Filtered aggregation with counts and averages
- Dashboard views with top-N rankings and percentages
- Retention cleanup and JSON/CSV export

Endpoints:
- GET /health - Health check
- GET /ready - Readiness check
- GET /analytics - Aggregated analytics
- GET /analytics/dashboard - Dashboard view
- GET /analytics/stats - Storage statistics
- GET /analytics/export - JSON or CSV download
- DELETE /analytics/cleanup - Retention cleanup
"""

from .anonymizer import (
    Anonymizer,
    AnonymizationError,
    anonymize_id,
    anonymize_location,
    anonymize_family_background,
    generalize_income,
)
from .aggregator import Aggregation, Aggregator, GroupAverager
from .config import AnalyticsConfig, AveragingMode
from .dashboard import DashboardBuilder, DashboardView
from .exporter import ExportFormat, CSV_COLUMNS, export_records
from .filters import AnalyticsFilter, apply_filters
from .partition_store import PartitionStore, StoreStats
from .retention import RetentionManager
from .service import AnalyticsService

__all__ = [
    "Anonymizer",
    "AnonymizationError",
    "anonymize_id",
    "anonymize_location",
    "anonymize_family_background",
    "generalize_income",
    "Aggregation",
    "Aggregator",
    "GroupAverager",
    "AnalyticsConfig",
    "AveragingMode",
    "DashboardBuilder",
    "DashboardView",
    "ExportFormat",
    "CSV_COLUMNS",
    "export_records",
    "AnalyticsFilter",
    "apply_filters",
    "PartitionStore",
    "StoreStats",
    "RetentionManager",
    "AnalyticsService",
]
