"""Day-partitioned file store for anonymized analytics records.

Each UTC calendar day is one JSON file holding an array of records.
Writes are read-modify-write of a whole partition, so every writer
(append, rewrite, retention cleanup) runs under one store-wide lock and
replaces files with write-to-temp-then-rename. Readers take no lock and
always see either the previous or the new version of a partition.
"""
import json
import logging
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from careerlens.shared.models import AnonymizedRecord
from careerlens.shared.storage import (
    StorageConfig,
    StorageInitializationError,
    StorageReadError,
    StorageWriteError,
)
from .filters import AnalyticsFilter, apply_filters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreStats:
    """Snapshot of the store contents."""
    count: int
    date_from: Optional[str]
    date_to: Optional[str]
    size_bytes: int
    last_modified: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "date_range": {"from": self.date_from, "to": self.date_to},
            "size_bytes": self.size_bytes,
            "last_modified": self.last_modified,
        }


class PartitionStore:
    """Persists anonymized records as one file per calendar day."""

    def __init__(self, config: Optional[StorageConfig] = None):
        """Initialize store.

        Args:
            config: Storage configuration (defaults to environment)
        """
        self.config = config or StorageConfig.from_env()
        self.data_dir = Path(self.config.data_dir)
        self._write_lock = threading.RLock()
        self._initialized = False

        logger.info(
            "PARTITION_STORE_CREATED",
            extra={"data_dir": str(self.data_dir)}
        )

    def initialize(self) -> None:
        """Create the data directory.

        Idempotent. Must succeed before any write.

        Raises:
            StorageInitializationError: If the directory cannot be created
        """
        if self._initialized:
            return

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.critical(
                "PARTITION_STORE_INIT_FAILED",
                extra={"data_dir": str(self.data_dir), "error": str(e)}
            )
            raise StorageInitializationError(
                f"Cannot create analytics directory {self.data_dir}: {e}"
            ) from e

        self._initialized = True
        logger.info(
            "PARTITION_STORE_INITIALIZED",
            extra={"data_dir": str(self.data_dir)}
        )

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the writer lock across a multi-step maintenance operation.

        Usage:
            with store.locked():
                records = store.load_all()
                store.rewrite(records)
        """
        with self._write_lock:
            yield

    def partition_path(self, day: str) -> Path:
        """Path of the partition file for a YYYY-MM-DD day."""
        return self.data_dir / f"{self.config.file_prefix}{day}{self.config.file_suffix}"

    def partition_day(self, path: Path) -> str:
        """Inverse of partition_path."""
        name = path.name
        return name[len(self.config.file_prefix):len(name) - len(self.config.file_suffix)]

    def list_partitions(self) -> List[Path]:
        """All partition files, oldest day first."""
        if not self.data_dir.exists():
            return []
        pattern = f"{self.config.file_prefix}*{self.config.file_suffix}"
        return sorted(p for p in self.data_dir.glob(pattern) if p.is_file())

    def read_partition(self, path: Path) -> List[AnonymizedRecord]:
        """Read and parse one partition file.

        Raises:
            StorageReadError: If the file cannot be read or parsed
        """
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            return [AnonymizedRecord.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise StorageReadError(f"Failed to read partition {path.name}: {e}", str(path)) from e

    def append(self, record: AnonymizedRecord) -> None:
        """Add a record to its day's partition.

        Raises:
            StorageWriteError: If the partition cannot be written
        """
        self.initialize()
        day = record.partition_key
        path = self.partition_path(day)

        with self._write_lock:
            records: List[AnonymizedRecord] = []
            if path.exists():
                try:
                    records = self.read_partition(path)
                except StorageReadError as e:
                    self._quarantine(path, e)

            records.append(record)
            self._write_partition(path, records)

        logger.debug(
            "PARTITION_RECORD_APPENDED",
            extra={"partition": day, "record_id": record.id, "partition_size": len(records)}
        )

    def load_all(self, record_filter: Optional[AnalyticsFilter] = None) -> List[AnonymizedRecord]:
        """Load every readable partition, then apply the optional filter.

        A partition that fails to parse is logged and skipped, so the result
        is best-effort over the remaining partitions.
        """
        records: List[AnonymizedRecord] = []
        for path in self.list_partitions():
            try:
                records.extend(self.read_partition(path))
            except StorageReadError as e:
                logger.error(
                    "PARTITION_READ_FAILED",
                    extra={"partition": path.name, "error": str(e)}
                )

        if record_filter is not None:
            return apply_filters(records, record_filter)
        return records

    def load_partitions(self) -> Dict[str, List[AnonymizedRecord]]:
        """Readable partitions keyed by day. Unreadable ones are skipped."""
        partitions: Dict[str, List[AnonymizedRecord]] = {}
        for path in self.list_partitions():
            try:
                partitions[self.partition_day(path)] = self.read_partition(path)
            except StorageReadError as e:
                logger.error(
                    "PARTITION_READ_FAILED",
                    extra={"partition": path.name, "error": str(e)}
                )
        return partitions

    def rewrite(
        self,
        records: Iterable[AnonymizedRecord],
        days: Optional[Iterable[str]] = None,
    ) -> int:
        """Replace partitions with the given records, regrouped by their own day.

        Every survivor file is written before any emptied partition is
        removed, so a crash part-way leaves old and new files side by side
        rather than losing records.

        Args:
            records: Records to persist
            days: Partition days being replaced; days in this set that end
                up with no records are deleted. Defaults to every existing
                partition.

        Returns:
            Number of partition files written

        Raises:
            StorageWriteError: If a partition cannot be written or removed
        """
        self.initialize()
        grouped: Dict[str, List[AnonymizedRecord]] = {}
        for record in records:
            grouped.setdefault(record.partition_key, []).append(record)

        with self._write_lock:
            replaced = set(days) if days is not None else {
                self.partition_day(p) for p in self.list_partitions()
            }

            for day in sorted(grouped):
                self._write_partition(self.partition_path(day), grouped[day])

            for day in sorted(replaced - set(grouped)):
                path = self.partition_path(day)
                try:
                    path.unlink()
                except FileNotFoundError:
                    continue
                except OSError as e:
                    logger.error(
                        "PARTITION_DELETE_FAILED",
                        extra={"partition": path.name, "error": str(e)}
                    )
                    raise StorageWriteError(f"Failed to delete partition {path.name}: {e}") from e

        logger.info(
            "PARTITIONS_REWRITTEN",
            extra={
                "partitions_written": len(grouped),
                "partitions_removed": len(replaced - set(grouped)),
            }
        )
        return len(grouped)

    def stats(self) -> StoreStats:
        """Record count, date range, on-disk size and last modification."""
        records = self.load_all()
        timestamps = sorted(r.timestamp for r in records)

        size_bytes = 0
        last_mtime: Optional[float] = None
        for path in self.list_partitions():
            try:
                st = path.stat()
            except OSError:
                continue
            size_bytes += st.st_size
            last_mtime = st.st_mtime if last_mtime is None else max(last_mtime, st.st_mtime)

        if last_mtime is None and self.data_dir.exists():
            last_mtime = self.data_dir.stat().st_mtime

        last_modified = (
            datetime.fromtimestamp(last_mtime, tz=timezone.utc)
            if last_mtime is not None
            else datetime.now(timezone.utc)
        )

        return StoreStats(
            count=len(records),
            date_from=timestamps[0] if timestamps else None,
            date_to=timestamps[-1] if timestamps else None,
            size_bytes=size_bytes,
            last_modified=last_modified.isoformat(),
        )

    def _write_partition(self, path: Path, records: List[AnonymizedRecord]) -> None:
        """Atomically replace a partition file."""
        tmp_path = path.with_name(path.name + ".tmp")
        payload = [r.to_dict() for r in records]
        try:
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=self.config.json_indent)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            try:
                tmp_path.unlink()
            except OSError:
                pass
            logger.error(
                "PARTITION_WRITE_FAILED",
                extra={"partition": path.name, "error": str(e)}
            )
            raise StorageWriteError(f"Failed to write partition {path.name}: {e}") from e

    def _quarantine(self, path: Path, error: StorageReadError) -> None:
        """Move an unparseable partition aside so an append cannot clobber it."""
        target = path.with_name(f"{path.name}.corrupt-{int(time.time() * 1000)}")
        try:
            os.replace(path, target)
        except OSError as e:
            raise StorageWriteError(
                f"Partition {path.name} is unreadable and could not be quarantined: {e}"
            ) from e

        logger.warning(
            "PARTITION_QUARANTINED",
            extra={"partition": path.name, "moved_to": target.name, "error": str(error)}
        )
