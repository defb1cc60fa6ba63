"""Analytics Service configuration."""
import os
from dataclasses import dataclass
from enum import Enum


class AveragingMode(Enum):
    """How per-group match-score averages are accumulated."""
    PAIRWISE = "pairwise"   # Legacy: stored = round((stored + new) / 2). Biased toward recent values.
    MEAN = "mean"           # (sum, count) accumulator, true arithmetic mean


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AnalyticsConfig:
    """Configuration for analytics service."""

    # Records older than this many days are purged by cleanup
    retention_days: int = 365

    # Hard cap on the page size accepted over HTTP
    max_page_size: int = 1000

    # Length of the ranked dashboard lists
    top_n: int = 10

    group_averaging: AveragingMode = AveragingMode.MEAN

    # Map unrecognized no-comma locations to "unknown" instead of passing them through
    strict_location: bool = False

    # Background threads running collection writes
    writer_threads: int = 2

    @classmethod
    def from_env(cls) -> "AnalyticsConfig":
        """Create config from environment variables.

        Environment variables:
            ANALYTICS_RETENTION_DAYS: Retention window (default 365)
            ANALYTICS_MAX_PAGE_SIZE: Page size cap (default 1000)
            ANALYTICS_TOP_N: Dashboard list length (default 10)
            ANALYTICS_GROUP_AVERAGING: mean or pairwise (default mean)
            ANALYTICS_STRICT_LOCATION: Fail closed on unknown regions (default false)
            ANALYTICS_WRITER_THREADS: Collection worker threads (default 2)
        """
        return cls(
            retention_days=int(os.getenv("ANALYTICS_RETENTION_DAYS", "365")),
            max_page_size=int(os.getenv("ANALYTICS_MAX_PAGE_SIZE", "1000")),
            top_n=int(os.getenv("ANALYTICS_TOP_N", "10")),
            group_averaging=AveragingMode(
                os.getenv("ANALYTICS_GROUP_AVERAGING", "mean").strip().lower()
            ),
            strict_location=_env_flag("ANALYTICS_STRICT_LOCATION", False),
            writer_threads=int(os.getenv("ANALYTICS_WRITER_THREADS", "2")),
        )
