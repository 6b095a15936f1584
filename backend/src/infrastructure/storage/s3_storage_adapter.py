"""S3 Storage Adapter - Implementation of ObjectStoragePort using boto3.

Provides S3-compatible storage operations for AWS S3, MinIO, and other
S3-compatible services. Every write is verified: the MD5 computed while
reading the stream must match the ETag S3 returns for the single-part upload.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import hashlib
import logging
from io import BytesIO
from typing import BinaryIO, Optional, Tuple

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from domain.documents.ports.object_storage_port import (
    ObjectStoragePort,
    StoredFile,
)
from .errors import ContentIntegrityError, StorageError
from .storage_config import StorageConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192  # 8KB chunks


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    This adapter implements the ObjectStoragePort interface using boto3 to interact
    with S3-compatible storage (AWS S3, MinIO, etc.).

    Features:
    - SHA256 content hash computed while streaming
    - Post-write verification against the returned ETag
    - Storage path equals the caller's logical key, so published and draft
      slots never collide

    Example:
        config = load_storage_config()
        storage = S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

        with open('contract.pdf', 'rb') as f:
            stored = await storage.save(f, f"documents/{doc_id}/v1/contract.pdf")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        hash_algorithm: str = "SHA256",
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')
            hash_algorithm: Label recorded with each content hash

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        self.hash_algorithm = hash_algorithm

        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    @classmethod
    def from_config(cls, config: StorageConfig, bucket_name: Optional[str] = None) -> "S3StorageAdapter":
        """Create an adapter for the content bucket or an explicit bucket."""
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=bucket_name or config.bucket_name,
            region=config.region,
            hash_algorithm=config.hash_algorithm,
        )

    async def save(self, stream: BinaryIO, logical_key: str) -> StoredFile:
        """Store a stream under its logical key.

        Implementation:
        1. Reads the stream in chunks while calculating SHA256 and MD5
        2. Uploads the content in a single put_object call
        3. Compares the returned ETag with the local MD5

        Raises:
            StorageError: If upload fails
            ContentIntegrityError: If the ETag does not match
            ValueError: If stream is empty
        """
        content, sha256_hex, md5_hex = self._read_and_hash(stream)
        if not content:
            raise ValueError("Cannot store empty file")

        try:
            response = self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=logical_key,
                Body=BytesIO(content),
                Metadata={"sha256": sha256_hex},
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"S3 upload failed: storage_path={logical_key}, "
                f"error={error_code}, message={e}"
            )
            raise StorageError(f"Failed to upload file: {error_code}")

        etag = (response.get("ETag") or "").strip('"')
        if etag and etag != md5_hex:
            logger.error(
                f"Post-write integrity check failed: storage_path={logical_key}, "
                f"expected_md5={md5_hex}, etag={etag}"
            )
            raise ContentIntegrityError(logical_key, md5_hex, etag)

        logger.info(
            f"Uploaded file: storage_path={logical_key}, "
            f"sha256={sha256_hex}, size={len(content)}"
        )

        return StoredFile(
            storage_path=logical_key,
            content_hash=sha256_hex,
            hash_algorithm=self.hash_algorithm,
            size_bytes=len(content),
        )

    async def get(self, storage_path: str) -> Optional[BinaryIO]:
        """Retrieve a file from S3.

        Returns:
            BinaryIO: In-memory copy of the content, or None if it does not exist

        Raises:
            StorageError: If retrieval fails
        """
        try:
            response = self.s3_client.get_object(
                Bucket=self.bucket_name,
                Key=storage_path,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("NoSuchKey", "404"):
                logger.warning(f"File not found: storage_path={storage_path}")
                return None
            logger.error(
                f"S3 retrieval failed: storage_path={storage_path}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to retrieve file: {error_code}")

        body = response["Body"]
        try:
            return BytesIO(body.read())
        finally:
            body.close()

    async def delete(self, storage_path: str) -> bool:
        """Delete a file from S3.

        Returns:
            bool: True if deleted, False if didn't exist

        Raises:
            StorageError: If deletion fails
        """
        if not await self.exists(storage_path):
            logger.info(f"File not found for deletion: storage_path={storage_path}")
            return False

        try:
            self.s3_client.delete_object(
                Bucket=self.bucket_name,
                Key=storage_path,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"S3 deletion failed: storage_path={storage_path}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to delete file: {error_code}")

        logger.info(f"Deleted file: storage_path={storage_path}")
        return True

    async def exists(self, storage_path: str) -> bool:
        """Check if a file exists in S3.

        Uses HEAD request (faster than GET).

        Raises:
            StorageError: If the check fails for reasons other than absence
        """
        try:
            self.s3_client.head_object(
                Bucket=self.bucket_name,
                Key=storage_path,
            )
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to check file: {error_code}")

    async def verify_bucket_exists(self) -> bool:
        """Verify that the configured bucket exists.

        This should be called on application startup to fail fast if
        bucket doesn't exist.

        Raises:
            StorageError: If bucket check fails or bucket doesn't exist
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            logger.info(f"Verified bucket exists: {self.bucket_name}")
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "404":
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. "
                    f"Create it first or update S3_BUCKET_NAME environment variable."
                )
            raise StorageError(f"Failed to verify bucket: {error_code}")

    @staticmethod
    def _read_and_hash(stream: BinaryIO) -> Tuple[bytes, str, str]:
        sha256_hash = hashlib.sha256()
        md5_hash = hashlib.md5()
        chunks = []
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            sha256_hash.update(chunk)
            md5_hash.update(chunk)
            chunks.append(chunk)
        return b"".join(chunks), sha256_hash.hexdigest(), md5_hash.hexdigest()


def create_storage_adapters(config: StorageConfig) -> Tuple[S3StorageAdapter, Optional[S3StorageAdapter]]:
    """Build the content adapter and, when configured, the write-once adapter."""
    content = S3StorageAdapter.from_config(config)
    worm = None
    if config.worm_bucket_name:
        worm = S3StorageAdapter.from_config(config, bucket_name=config.worm_bucket_name)
    return content, worm
