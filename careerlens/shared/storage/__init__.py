"""File storage primitives for CareerLens services.

Provides the storage configuration and the exception hierarchy shared by
the day-partitioned analytics store.
"""

from .config import StorageConfig
from .errors import (
    StorageError,
    StorageInitializationError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "StorageConfig",
    "StorageError",
    "StorageInitializationError",
    "StorageReadError",
    "StorageWriteError",
]
