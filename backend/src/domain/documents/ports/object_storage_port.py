"""Object Storage Port - Domain interface for blob storage.

This port defines the contract for persisting document content. The core
never touches bytes directly: it hands streams to the port and records the
returned path, hash and size on the document, version or working copy.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Optional


@dataclass
class StoredFile:
    """Metadata for a blob stored through the port.

    Attributes:
        storage_path: Opaque key to retrieve or delete the blob later
        content_hash: Hex digest of the stored content
        hash_algorithm: Algorithm of content_hash (e.g. 'SHA256')
        size_bytes: Content size in bytes
    """
    storage_path: str
    content_hash: str
    hash_algorithm: str
    size_bytes: int


class ObjectStoragePort(ABC):
    """Port interface for content storage operations.

    Key Design Principles:
    - Published and draft content use distinct logical keys; the caller
      decides the key, the adapter only persists
    - The adapter computes the content hash while writing and verifies the
      write, raising ContentIntegrityError on mismatch
    - Infrastructure failures raise StorageError and are never masked

    Example Usage:
        stored = await storage.save(stream, f"documents/{doc_id}/v{n}/{name}")
        content = await storage.get(stored.storage_path)
    """

    @abstractmethod
    async def save(self, stream: BinaryIO, logical_key: str) -> StoredFile:
        """Store a stream under a logical key.

        Args:
            stream: Readable binary stream (read from its current position)
            logical_key: Caller-chosen key, unique per published/draft slot

        Returns:
            StoredFile: Path, hash, algorithm and size of what was stored

        Raises:
            StorageError: If the storage backend is unavailable
            ContentIntegrityError: If the post-write check disagrees with
                the hash computed while reading
            ValueError: If the stream is empty
        """
        pass

    @abstractmethod
    async def get(self, storage_path: str) -> Optional[BinaryIO]:
        """Retrieve stored content.

        Returns:
            BinaryIO stream (caller must close), or None if the path does not exist

        Raises:
            StorageError: If retrieval fails for reasons other than absence
        """
        pass

    @abstractmethod
    async def delete(self, storage_path: str) -> bool:
        """Delete stored content.

        Returns:
            bool: True if deleted, False if it did not exist

        Note:
            This operation is idempotent.
        """
        pass
