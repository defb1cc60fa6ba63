"""Storage configuration for the partitioned analytics store."""
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class StorageConfig:
    """Location and layout of the partition files.

    Each UTC calendar day is stored as ``<file_prefix><YYYY-MM-DD>.json``
    inside ``data_dir``.
    """
    data_dir: str = os.path.join("data", "analytics")
    file_prefix: str = "analytics_"
    file_suffix: str = ".json"
    json_indent: int = 2

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """Create config from environment variables.

        Environment variables:
            ANALYTICS_DATA_DIR: Partition directory (default data/analytics)
            ANALYTICS_FILE_PREFIX: Partition filename prefix (default analytics_)
            ANALYTICS_JSON_INDENT: Indent of stored JSON (default 2)
        """
        return cls(
            data_dir=os.getenv("ANALYTICS_DATA_DIR", os.path.join("data", "analytics")),
            file_prefix=os.getenv("ANALYTICS_FILE_PREFIX", "analytics_"),
            json_indent=int(os.getenv("ANALYTICS_JSON_INDENT", "2")),
        )
