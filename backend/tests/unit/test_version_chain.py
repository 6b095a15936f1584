"""Unit tests for VersionChain: initial version, compare, restore, integrity"""

import hashlib
from io import BytesIO
from uuid import uuid4

import pytest

from audit.service import get_activity
from checkout.schemas import CheckInSpec, CustomMetadataItem, SaveWorkingCopyRequest
from domain.versioning.metadata_diff import DiffType
from domain.versioning.numbering import CheckInType, VersionType
from infrastructure.repositories.document_repository import DocumentRepository
from infrastructure.storage.errors import ContentIntegrityError, StorageError
from models.document import DocumentMetadata
from versions.schemas import RestoreSpec

from conftest import TEXT_BYTES


REVISED_BYTES = b"Quarterly report, revised after audit\n"


async def revise(checkout_manager, db_session, document, user_id):
    """Check in new content and change the Department field to Legal."""
    department = db_session.query(DocumentMetadata).filter_by(
        document_id=document.id, field_name="Department"
    ).one()
    checkout_manager.check_out(document.id, user_id)
    checkout_manager.save_working_copy_metadata(
        document.id,
        user_id,
        SaveWorkingCopyRequest(custom_metadata=[
            CustomMetadataItem(field_id=department.field_id, field_name="Department", value="Legal"),
        ]),
    )
    await checkout_manager.save_working_copy_content(
        document.id, BytesIO(REVISED_BYTES), "report.txt", "text/plain", user_id
    )
    result = await checkout_manager.check_in(document.id, CheckInSpec(check_in_type=CheckInType.MINOR), user_id)
    assert result.success, result.error
    return result.data


class TestInitialVersion:
    """Test minting version 1.0"""

    def test_initial_version_is_1_0(self, version_chain, document_factory, db_session):
        """Test a new document gets version 1 labelled 1.0 with a metadata snapshot"""
        document = document_factory(metadata={"Department": "Finance"})

        versions = version_chain.get_versions(document.id)

        assert len(versions) == 1
        first = versions[0]
        assert first.version_number == 1
        assert first.version_label == "1.0"
        assert first.version_type == VersionType.MAJOR
        assert first.previous_version_id is None
        assert first.comment == "Initial version"
        assert first.integrity_hash == hashlib.sha256(TEXT_BYTES).hexdigest()
        assert document.current_version_id == first.id
        assert (document.current_major_version, document.current_minor_version) == (1, 0)
        assert [row.value for row in version_chain.get_version_metadata(first.id)] == ["Finance"]
        details = [e.detail for e in get_activity(db_session, "document", document.id)]
        assert "Version 1.0 (Initial)" in details

    def test_initial_version_only_once(self, version_chain, document_factory):
        """Test minting twice is rejected"""
        document = document_factory()

        result = version_chain.mint_initial_version(document.id)

        assert result.success is False
        assert result.error == "Document already has versions"

    def test_initial_version_missing_document(self, version_chain):
        """Test unknown documents are rejected"""
        assert version_chain.mint_initial_version(uuid4()).error == "Document not found"


class TestCompare:
    """Test comparing two versions"""

    @pytest.mark.asyncio
    async def test_compare_reports_content_and_metadata_changes(
        self, version_chain, checkout_manager, document_factory, db_session, user_id
    ):
        """Test content, size and metadata differences between 1.0 and 1.1"""
        document = document_factory(metadata={"Department": "Finance"})
        first = version_chain.get_versions(document.id)[0]
        second = await revise(checkout_manager, db_session, document, user_id)

        result = version_chain.compare(document.id, first.id, second.id)

        comparison = result.data
        assert comparison.source_label == "1.0"
        assert comparison.target_label == "1.1"
        assert comparison.content_changed is True
        assert comparison.size_difference == len(REVISED_BYTES) - len(TEXT_BYTES)
        assert comparison.metadata_changed is True
        assert len(comparison.metadata_diffs) == 1
        diff = comparison.metadata_diffs[0]
        assert diff.diff_type == DiffType.MODIFIED
        assert (diff.old_value, diff.new_value) == ("Finance", "Legal")

    def test_compare_same_version(self, version_chain, document_factory):
        """Test a version compared with itself shows no change"""
        document = document_factory(metadata={"Department": "Finance"})
        first = version_chain.get_versions(document.id)[0]

        comparison = version_chain.compare(document.id, first.id, first.id).data

        assert comparison.content_changed is False
        assert comparison.size_difference == 0
        assert comparison.metadata_changed is False
        assert comparison.metadata_diffs[0].diff_type == DiffType.UNCHANGED

    def test_compare_versions_of_other_document(self, version_chain, document_factory):
        """Test versions must belong to the named document"""
        document = document_factory()
        other = document_factory(name="Other.txt")

        result = version_chain.compare(
            document.id,
            version_chain.get_versions(document.id)[0].id,
            version_chain.get_versions(other.id)[0].id,
        )

        assert result.error == "Versions do not belong to this document"

    def test_compare_missing_version(self, version_chain, document_factory):
        """Test unknown version ids are rejected"""
        document = document_factory()
        first = version_chain.get_versions(document.id)[0]

        result = version_chain.compare(document.id, first.id, uuid4())

        assert result.error == "One or both versions not found"


class TestRestore:
    """Test republishing a historical version"""

    @pytest.mark.asyncio
    async def test_restore_content_only(
        self, version_chain, checkout_manager, document_factory, db_session, user_id, storage
    ):
        """Test restoring 1.0 content without metadata publishes 2.0 with current metadata"""
        document = document_factory(metadata={"Department": "Finance"})
        first = version_chain.get_versions(document.id)[0]
        await revise(checkout_manager, db_session, document, user_id)
        blob_count = len(storage.blobs)

        result = version_chain.restore(
            document.id, first.id, RestoreSpec(restore_content=True, restore_metadata=False), user_id
        )

        restored = result.data
        assert result.message == "Restored from version 1.0"
        assert restored.version_number == 3
        assert restored.version_label == "2.0"
        assert restored.version_type == VersionType.MAJOR
        assert restored.integrity_hash == first.integrity_hash
        assert restored.storage_path == first.storage_path
        assert restored.is_content_changed is True
        assert restored.is_metadata_changed is False
        assert restored.comment == "Restored from version 1.0"
        assert document.integrity_hash == first.integrity_hash
        assert document.current_version_id == restored.id
        assert len(storage.blobs) == blob_count
        snapshot = version_chain.get_version_metadata(restored.id)
        assert [row.value for row in snapshot] == ["Legal"]

    @pytest.mark.asyncio
    async def test_restore_metadata_only(
        self, version_chain, checkout_manager, document_factory, db_session, user_id
    ):
        """Test restoring metadata keeps the current content"""
        document = document_factory(metadata={"Department": "Finance"})
        first = version_chain.get_versions(document.id)[0]
        second = await revise(checkout_manager, db_session, document, user_id)

        result = version_chain.restore(
            document.id,
            first.id,
            RestoreSpec(restore_content=False, restore_metadata=True, comment="Undo department change"),
            user_id,
        )

        restored = result.data
        assert restored.integrity_hash == second.integrity_hash
        assert restored.is_content_changed is False
        assert restored.is_metadata_changed is True
        assert restored.comment == "Undo department change"
        assert [row.value for row in DocumentRepository(db_session).get_metadata(document.id)] == ["Finance"]
        assert [row.value for row in version_chain.get_version_metadata(restored.id)] == ["Finance"]
        # The historical snapshot is untouched
        assert [row.value for row in version_chain.get_version_metadata(second.id)] == ["Legal"]

    @pytest.mark.asyncio
    async def test_restore_links_to_previous_head(
        self, version_chain, checkout_manager, document_factory, db_session, user_id
    ):
        """Test the restored version continues the chain"""
        document = document_factory(metadata={"Department": "Finance"})
        first = version_chain.get_versions(document.id)[0]
        second = await revise(checkout_manager, db_session, document, user_id)

        restored = version_chain.restore(document.id, first.id, RestoreSpec(), user_id).data

        assert restored.previous_version_id == second.id
        assert [v.version_number for v in version_chain.get_versions(document.id)] == [3, 2, 1]

    def test_restore_while_checked_out(self, version_chain, checkout_manager, document_factory, user_id):
        """Test restore is refused during a checkout"""
        document = document_factory()
        first = version_chain.get_versions(document.id)[0]
        checkout_manager.check_out(document.id, user_id)

        result = version_chain.restore(document.id, first.id, RestoreSpec(), user_id)

        assert result.success is False
        assert result.error == "Cannot restore version while document is checked out"
        assert document.current_version == 1

    def test_restore_version_of_other_document(self, version_chain, document_factory, user_id):
        """Test a foreign version id is treated as not found"""
        document = document_factory()
        other = document_factory(name="Other.txt")

        result = version_chain.restore(
            document.id, version_chain.get_versions(other.id)[0].id, RestoreSpec(), user_id
        )

        assert result.error == "Version not found"


class TestVerifyIntegrity:
    """Test re-hashing stored version content"""

    @pytest.mark.asyncio
    async def test_verify_stamps_verification_time(self, version_chain, document_factory, clock, user_id, db_session):
        """Test matching content records the verification time"""
        document = document_factory()
        first = version_chain.get_versions(document.id)[0]
        clock.advance(days=3)

        result = await version_chain.verify_version_integrity(first.id, user_id)

        assert result.success is True
        assert first.integrity_verified_at == clock()
        actions = [e.action for e in get_activity(db_session, "document", document.id)]
        assert "VERSION_VERIFIED" in actions

    @pytest.mark.asyncio
    async def test_verify_detects_tampering(self, version_chain, document_factory, storage):
        """Test changed bytes raise ContentIntegrityError"""
        document = document_factory()
        first = version_chain.get_versions(document.id)[0]
        storage.blobs[first.storage_path] = b"tampered"

        with pytest.raises(ContentIntegrityError) as exc_info:
            await version_chain.verify_version_integrity(first.id)

        assert exc_info.value.expected == first.integrity_hash
        assert exc_info.value.actual == hashlib.sha256(b"tampered").hexdigest()
        assert first.integrity_verified_at is None

    @pytest.mark.asyncio
    async def test_verify_missing_content(self, version_chain, document_factory, storage):
        """Test missing blobs surface as storage errors"""
        document = document_factory()
        first = version_chain.get_versions(document.id)[0]
        del storage.blobs[first.storage_path]

        with pytest.raises(StorageError):
            await version_chain.verify_version_integrity(first.id)

    @pytest.mark.asyncio
    async def test_verify_unknown_version(self, version_chain):
        """Test unknown versions are a business rejection"""
        result = await version_chain.verify_version_integrity(uuid4())
        assert result.error == "Version not found"
