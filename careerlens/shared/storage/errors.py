"""Storage exceptions for the partitioned analytics store."""


class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class StorageInitializationError(StorageError):
    """Storage directory could not be created. Fatal at startup."""
    pass


class StorageReadError(StorageError):
    """A partition file could not be read or parsed."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class StorageWriteError(StorageError):
    """A partition file could not be written."""
    pass
