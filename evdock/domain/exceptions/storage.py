"""Persistence-related domain exceptions."""

from .base import DomainException


class StorageException(DomainException):
    """Raised when the underlying key-value store fails."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="STORAGE_ERROR",
        )


class ConcurrentModificationException(StorageException):
    """Raised when a stored document changed between read and write."""

    def __init__(self, key: str):
        super().__init__(message=f"Stored document was modified concurrently: {key}")
        self.code = "CONCURRENT_MODIFICATION"
        self.key = key
