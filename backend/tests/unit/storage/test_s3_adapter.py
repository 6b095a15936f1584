"""Unit tests for S3 Storage Adapter using moto

This module tests the S3StorageAdapter implementation using moto to mock AWS S3.
Tests cover save with hashing and post-write verification, retrieve, delete,
exists, bucket verification and adapter construction from configuration.
"""

import hashlib
import io
import pytest

from moto import mock_aws
import boto3

from infrastructure.storage.s3_storage_adapter import (
    S3StorageAdapter,
    create_storage_adapters,
)
from infrastructure.storage.errors import ContentIntegrityError, StorageError
from infrastructure.storage.storage_config import StorageConfig
from domain.documents.ports.object_storage_port import StoredFile


# Test constants
TEST_BUCKET = "test-records-bucket"
TEST_WORM_BUCKET = "test-records-worm"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "test-access-key"
TEST_SECRET_KEY = "test-secret-key"


@pytest.fixture
def s3_client():
    """Mock S3 environment with the content bucket created"""
    with mock_aws():
        client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id=TEST_ACCESS_KEY,
            aws_secret_access_key=TEST_SECRET_KEY,
        )
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture
def storage_adapter(s3_client):
    """S3StorageAdapter bound to the mocked content bucket"""
    return S3StorageAdapter(
        endpoint_url=None,  # AWS S3 (moto mocks this)
        access_key=TEST_ACCESS_KEY,
        secret_key=TEST_SECRET_KEY,
        bucket_name=TEST_BUCKET,
        region=TEST_REGION,
    )


class TestS3AdapterInitialization:
    """Test S3 adapter initialization"""

    def test_adapter_creation_success(self):
        """Test successful adapter creation"""
        with mock_aws():
            adapter = S3StorageAdapter(
                endpoint_url=None,
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
                region=TEST_REGION,
            )
            assert adapter.bucket_name == TEST_BUCKET
            assert adapter.region == TEST_REGION
            assert adapter.hash_algorithm == "SHA256"

    def test_adapter_with_minio_endpoint(self):
        """Test adapter creation with MinIO endpoint"""
        with mock_aws():
            adapter = S3StorageAdapter(
                endpoint_url="http://localhost:9000",
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
                region=TEST_REGION,
            )
            assert adapter.bucket_name == TEST_BUCKET

    def test_from_config_uses_explicit_bucket(self):
        """Test from_config can target a bucket other than the content bucket"""
        config = StorageConfig(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name=TEST_BUCKET,
            region=TEST_REGION,
            hash_algorithm="SHA-256",
        )
        with mock_aws():
            adapter = S3StorageAdapter.from_config(config, bucket_name=TEST_WORM_BUCKET)

        assert adapter.bucket_name == TEST_WORM_BUCKET
        assert adapter.hash_algorithm == "SHA-256"


class TestSave:
    """Test file storage operations"""

    @pytest.mark.asyncio
    async def test_save_success(self, storage_adapter, s3_client):
        """Test upload stores the bytes under the logical key"""
        content = b"%PDF-1.7 signed contract"
        key = "documents/0001/v1/contract.pdf"

        stored = await storage_adapter.save(io.BytesIO(content), key)

        assert isinstance(stored, StoredFile)
        assert stored.storage_path == key
        assert stored.content_hash == hashlib.sha256(content).hexdigest()
        assert stored.hash_algorithm == "SHA256"
        assert stored.size_bytes == len(content)

        response = s3_client.get_object(Bucket=TEST_BUCKET, Key=key)
        assert response["Body"].read() == content
        assert response["Metadata"]["sha256"] == stored.content_hash

    @pytest.mark.asyncio
    async def test_save_reads_from_current_position(self, storage_adapter):
        """Test the stream is read from where the caller left it"""
        stream = io.BytesIO(b"HEADERpayload")
        stream.seek(6)

        stored = await storage_adapter.save(stream, "documents/0001/drafts/a/payload.bin")

        assert stored.size_bytes == len(b"payload")

    @pytest.mark.asyncio
    async def test_save_large_file(self, storage_adapter):
        """Test content spanning many read chunks"""
        content = b"x" * (1024 * 1024)

        stored = await storage_adapter.save(io.BytesIO(content), "documents/0002/v1/big.bin")

        assert stored.size_bytes == len(content)
        assert stored.content_hash == hashlib.sha256(content).hexdigest()

    @pytest.mark.asyncio
    async def test_save_empty_file_raises_error(self, storage_adapter):
        """Test that empty content is rejected"""
        with pytest.raises(ValueError, match="Cannot store empty file"):
            await storage_adapter.save(io.BytesIO(b""), "documents/0003/v1/empty.txt")

    @pytest.mark.asyncio
    async def test_save_etag_mismatch_raises_integrity_error(self, storage_adapter, monkeypatch):
        """Test the post-write check rejects an upload whose ETag disagrees"""
        monkeypatch.setattr(
            storage_adapter.s3_client,
            "put_object",
            lambda **kwargs: {"ETag": '"00000000000000000000000000000000"'},
        )

        with pytest.raises(ContentIntegrityError) as exc_info:
            await storage_adapter.save(io.BytesIO(b"content"), "documents/0004/v1/a.txt")

        assert exc_info.value.storage_path == "documents/0004/v1/a.txt"
        assert exc_info.value.expected == hashlib.md5(b"content").hexdigest()

    @pytest.mark.asyncio
    async def test_save_to_missing_bucket_raises_storage_error(self, s3_client):
        """Test upload failures surface as StorageError"""
        adapter = S3StorageAdapter(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name="bucket-that-does-not-exist",
            region=TEST_REGION,
        )

        with pytest.raises(StorageError, match="Failed to upload file"):
            await adapter.save(io.BytesIO(b"content"), "documents/0005/v1/a.txt")


class TestGet:
    """Test file retrieval operations"""

    @pytest.mark.asyncio
    async def test_get_returns_stored_content(self, storage_adapter):
        """Test retrieving a stored file"""
        content = b"Test file content"
        stored = await storage_adapter.save(io.BytesIO(content), "documents/0006/v1/a.txt")

        stream = await storage_adapter.get(stored.storage_path)

        assert stream.read() == content

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, storage_adapter):
        """Test retrieving a non-existent file"""
        assert await storage_adapter.get("documents/missing/v1/a.txt") is None


class TestDeleteAndExists:
    """Test file deletion and existence checks"""

    @pytest.mark.asyncio
    async def test_delete_existing_file(self, storage_adapter):
        """Test deleting a stored file"""
        stored = await storage_adapter.save(io.BytesIO(b"draft"), "documents/0007/drafts/x/a.txt")

        assert await storage_adapter.exists(stored.storage_path) is True
        assert await storage_adapter.delete(stored.storage_path) is True
        assert await storage_adapter.exists(stored.storage_path) is False

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, storage_adapter):
        """Test deleting a non-existent file returns False"""
        assert await storage_adapter.delete("documents/missing/v1/a.txt") is False

    @pytest.mark.asyncio
    async def test_draft_and_published_keys_are_independent(self, storage_adapter):
        """Test deleting a draft never touches published content"""
        published = await storage_adapter.save(io.BytesIO(b"v1"), "documents/0008/v1/a.txt")
        draft = await storage_adapter.save(io.BytesIO(b"draft"), "documents/0008/drafts/x/a.txt")

        await storage_adapter.delete(draft.storage_path)

        assert (await storage_adapter.get(published.storage_path)).read() == b"v1"


class TestBucketVerification:
    """Test startup bucket checks"""

    @pytest.mark.asyncio
    async def test_verify_existing_bucket(self, storage_adapter):
        """Test verification succeeds for the configured bucket"""
        assert await storage_adapter.verify_bucket_exists() is True

    @pytest.mark.asyncio
    async def test_verify_missing_bucket(self, s3_client):
        """Test verification fails fast for a missing bucket"""
        adapter = S3StorageAdapter(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name="missing-bucket",
            region=TEST_REGION,
        )

        with pytest.raises(StorageError, match="does not exist"):
            await adapter.verify_bucket_exists()


class TestCreateStorageAdapters:
    """Test building the content and WORM adapters"""

    def test_without_worm_bucket(self):
        """Test only the content adapter is built when no WORM bucket is set"""
        config = StorageConfig(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name=TEST_BUCKET,
        )
        with mock_aws():
            content, worm = create_storage_adapters(config)

        assert content.bucket_name == TEST_BUCKET
        assert worm is None

    @pytest.mark.asyncio
    async def test_with_worm_bucket(self, s3_client):
        """Test the WORM adapter writes to its own bucket"""
        s3_client.create_bucket(Bucket=TEST_WORM_BUCKET)
        config = StorageConfig(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name=TEST_BUCKET,
            region=TEST_REGION,
            worm_bucket_name=TEST_WORM_BUCKET,
        )
        content, worm = create_storage_adapters(config)

        await worm.save(io.BytesIO(b"record"), "documents/0009/v1/a.txt")

        assert worm.bucket_name == TEST_WORM_BUCKET
        assert await worm.exists("documents/0009/v1/a.txt") is True
        assert await content.exists("documents/0009/v1/a.txt") is False
