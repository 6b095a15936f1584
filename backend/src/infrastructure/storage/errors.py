"""Storage exceptions.

StorageError marks an infrastructure failure; services let it propagate so
the caller's unit of work rolls back. ContentIntegrityError is raised when a
written or re-read blob does not hash to the expected value.
"""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ContentIntegrityError(StorageError):
    """Stored content does not match the hash computed for it."""

    def __init__(self, storage_path: str, expected: str, actual: str):
        self.storage_path = storage_path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Integrity check failed for {storage_path}: expected {expected}, got {actual}"
        )
