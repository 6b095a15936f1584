"""Version chain service.

Appends immutable DocumentVersion rows, snapshots metadata for each of them,
compares and restores versions. A version row is never updated after it is
written except for integrity_verified_at.

Callers create the version and move the document pointer in the same
session, so readers never see a pointer to a missing version.
"""

import hashlib
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from audit import service as audit
from domain.clock import Clock, utcnow
from domain.documents.ports.object_storage_port import ObjectStoragePort
from domain.results import ServiceResult
from domain.versioning.metadata_diff import DiffType, build_metadata_diff
from domain.versioning.numbering import (
    initial_version_numbers,
    restore_version_numbers,
)
from infrastructure.repositories.document_repository import DocumentRepository
from infrastructure.storage.errors import ContentIntegrityError, StorageError
from models.document import Document, DocumentMetadata
from models.document_version import DocumentVersion, DocumentVersionMetadata
from observability.metrics import versions_created_total
from .schemas import NewVersion, RestoreSpec, VersionComparison

logger = logging.getLogger(__name__)


class VersionChain:
    """Creates, snapshots, compares and restores document versions."""

    def __init__(
        self,
        db: Session,
        storage: Optional[ObjectStoragePort] = None,
        clock: Clock = utcnow,
    ):
        """Initialize the version chain.

        Args:
            db: Database session (unit of work shared with the caller)
            storage: Content storage, only needed for integrity verification
            clock: Source of timestamps
        """
        self.db = db
        self.storage = storage
        self.clock = clock
        self.documents = DocumentRepository(db)

    def create_version(self, document: Document, spec: NewVersion) -> DocumentVersion:
        """Append a version linked to the document's current version.

        The document's pointer fields are NOT touched here; call
        publish_version afterwards in the same session.
        """
        numbers = spec.numbers
        version = DocumentVersion(
            document_id=document.id,
            version_number=numbers.version_number,
            major_version=numbers.major,
            minor_version=numbers.minor,
            version_label=numbers.label,
            version_type=numbers.version_type,
            storage_path=spec.storage_path,
            size=spec.size or 0,
            integrity_hash=spec.integrity_hash,
            hash_algorithm=spec.hash_algorithm,
            content_type=spec.content_type,
            original_file_name=spec.original_file_name,
            is_content_changed=spec.is_content_changed,
            is_metadata_changed=spec.is_metadata_changed,
            previous_version_id=document.current_version_id,
            comment=spec.comment,
            change_description=spec.change_description,
            created_by=spec.created_by,
            created_at=self.clock(),
        )
        self.db.add(version)
        self.db.flush()

        versions_created_total.labels(version_type=numbers.version_type.value).inc()
        logger.info(
            f"Created version {version.version_label} (#{version.version_number})",
            extra={"document_id": str(document.id), "version_id": str(version.id)},
        )
        return version

    def snapshot_metadata(self, document_id: UUID, version_id: UUID) -> int:
        """Copy the document's current metadata values onto a version.

        Must run after every metadata change of the check-in or restore has
        been applied to the session.

        Returns:
            Number of snapshot rows written
        """
        self.db.flush()
        rows = self.documents.get_metadata(document_id)
        now = self.clock()
        for row in rows:
            self.db.add(DocumentVersionMetadata(
                document_version_id=version_id,
                document_id=document_id,
                content_type_id=row.content_type_id,
                field_id=row.field_id,
                field_name=row.field_name,
                value=row.value,
                numeric_value=row.numeric_value,
                date_value=row.date_value,
                created_at=now,
            ))
        self.db.flush()
        return len(rows)

    def publish_version(self, document: Document, version: DocumentVersion, user_id: Optional[UUID]) -> None:
        """Point the document at a version and adopt its content pointer."""
        document.storage_path = version.storage_path
        document.size = version.size
        document.integrity_hash = version.integrity_hash
        document.hash_algorithm = version.hash_algorithm
        document.content_type = version.content_type
        document.current_version = version.version_number
        document.current_major_version = version.major_version
        document.current_minor_version = version.minor_version
        document.current_version_id = version.id
        document.modified_by = user_id
        document.modified_at = self.clock()
        self.db.flush()

    def mint_initial_version(
        self,
        document_id: UUID,
        user_id: Optional[UUID] = None,
        comment: Optional[str] = None,
    ) -> ServiceResult[DocumentVersion]:
        """Create version 1 (label 1.0) for a newly created document."""
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")
        if document.current_version_id is not None or document.current_version:
            return ServiceResult.fail("Document already has versions")

        version = self.create_version(document, NewVersion(
            numbers=initial_version_numbers(),
            storage_path=document.storage_path,
            size=document.size or 0,
            integrity_hash=document.integrity_hash,
            hash_algorithm=document.hash_algorithm,
            content_type=document.content_type,
            original_file_name=document.name,
            is_content_changed=True,
            is_metadata_changed=False,
            created_by=user_id,
            comment=comment or "Initial version",
        ))
        self.snapshot_metadata(document.id, version.id)
        self.publish_version(document, version, user_id)

        audit.log_activity(
            self.db,
            action=audit.VERSION_CREATED,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            detail=f"Version {version.version_label} (Initial)",
            actor_id=user_id,
        )
        return ServiceResult.ok(version)

    def get_versions(self, document_id: UUID) -> List[DocumentVersion]:
        """All versions of a document, newest first."""
        stmt = (
            select(DocumentVersion)
            .where(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_number.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def get_version(self, version_id: UUID) -> Optional[DocumentVersion]:
        return self.db.get(DocumentVersion, version_id)

    def get_version_metadata(self, version_id: UUID) -> List[DocumentVersionMetadata]:
        """Metadata snapshot of a version, ordered by field name."""
        stmt = (
            select(DocumentVersionMetadata)
            .where(DocumentVersionMetadata.document_version_id == version_id)
            .order_by(DocumentVersionMetadata.field_name, DocumentVersionMetadata.field_id)
        )
        return list(self.db.execute(stmt).scalars())

    def compare(
        self,
        document_id: UUID,
        source_version_id: UUID,
        target_version_id: UUID,
    ) -> ServiceResult[VersionComparison]:
        """Compare two versions of one document.

        Old values come from the source version, new values from the target.
        """
        source = self.get_version(source_version_id)
        target = self.get_version(target_version_id)
        if source is None or target is None:
            return ServiceResult.fail("One or both versions not found")
        if source.document_id != document_id or target.document_id != document_id:
            return ServiceResult.fail("Versions do not belong to this document")

        diffs = build_metadata_diff(
            self.get_version_metadata(source.id),
            self.get_version_metadata(target.id),
        )
        comparison = VersionComparison(
            document_id=document_id,
            source_version_id=source.id,
            target_version_id=target.id,
            source_label=source.version_label,
            target_label=target.version_label,
            content_changed=source.integrity_hash != target.integrity_hash,
            size_difference=(target.size or 0) - (source.size or 0),
            metadata_changed=any(d.diff_type != DiffType.UNCHANGED for d in diffs),
            metadata_diffs=diffs,
        )
        return ServiceResult.ok(comparison)

    def restore(
        self,
        document_id: UUID,
        version_id: UUID,
        spec: RestoreSpec,
        user_id: Optional[UUID] = None,
    ) -> ServiceResult[DocumentVersion]:
        """Publish a historical version again as a new major version.

        Content and metadata are taken from the target only where the
        restore options opt in. Without restore_metadata the new version snapshots the
        document's current metadata unchanged.
        """
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")
        if document.is_checked_out:
            return ServiceResult.fail("Cannot restore version while document is checked out")

        target = self.get_version(version_id)
        if target is None or target.document_id != document_id:
            return ServiceResult.fail("Version not found")

        if spec.restore_metadata:
            self._replace_document_metadata(document.id, target.id)

        if spec.restore_content:
            content_source = target
        else:
            content_source = document
        content_changed = spec.restore_content and target.integrity_hash != document.integrity_hash

        version = self.create_version(document, NewVersion(
            numbers=restore_version_numbers(document.current_version, document.current_major_version),
            storage_path=content_source.storage_path,
            size=content_source.size or 0,
            integrity_hash=content_source.integrity_hash,
            hash_algorithm=content_source.hash_algorithm,
            content_type=content_source.content_type,
            original_file_name=target.original_file_name if spec.restore_content else None,
            is_content_changed=content_changed,
            is_metadata_changed=spec.restore_metadata,
            created_by=user_id,
            comment=spec.comment or f"Restored from version {target.version_label}",
            change_description=f"Restored from version {target.version_label}",
        ))
        self.snapshot_metadata(document.id, version.id)
        self.publish_version(document, version, user_id)

        audit.log_activity(
            self.db,
            action=audit.VERSION_RESTORED,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            detail=f"Version {version.version_label} restored from {target.version_label}",
            actor_id=user_id,
        )
        logger.info(
            f"Restored version {target.version_label} as {version.version_label}",
            extra={"document_id": str(document.id), "user_id": str(user_id), "version_id": str(version.id)},
        )
        return ServiceResult.ok(version, message=f"Restored from version {target.version_label}")

    async def verify_version_integrity(
        self,
        version_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> ServiceResult[DocumentVersion]:
        """Re-hash a version's stored content and stamp the verification time.

        Raises:
            ContentIntegrityError: If the stored bytes no longer match the hash
            StorageError: If the content cannot be read
        """
        version = self.get_version(version_id)
        if version is None:
            return ServiceResult.fail("Version not found")
        if not version.storage_path or not version.integrity_hash:
            return ServiceResult.fail("Version has no stored content")
        if self.storage is None:
            raise StorageError("No storage configured for integrity verification")

        stream = await self.storage.get(version.storage_path)
        if stream is None:
            raise StorageError(f"Content for version {version.version_label} not found: {version.storage_path}")

        try:
            actual = _hash_stream(stream, version.hash_algorithm)
        finally:
            stream.close()

        if actual != version.integrity_hash:
            logger.error(
                f"Integrity mismatch for version {version.version_label}",
                extra={"document_id": str(version.document_id), "version_id": str(version.id)},
            )
            raise ContentIntegrityError(version.storage_path, version.integrity_hash, actual)

        version.integrity_verified_at = self.clock()
        self.db.flush()

        audit.log_activity(
            self.db,
            action=audit.VERSION_VERIFIED,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=version.document_id,
            detail=f"Version {version.version_label} integrity verified",
            actor_id=user_id,
        )
        return ServiceResult.ok(version)

    def _replace_document_metadata(self, document_id: UUID, version_id: UUID) -> None:
        snapshot = self.get_version_metadata(version_id)
        self.db.execute(delete(DocumentMetadata).where(DocumentMetadata.document_id == document_id))
        now = self.clock()
        for row in snapshot:
            self.db.add(DocumentMetadata(
                document_id=document_id,
                content_type_id=row.content_type_id,
                field_id=row.field_id,
                field_name=row.field_name,
                value=row.value,
                numeric_value=row.numeric_value,
                date_value=row.date_value,
                modified_at=now,
            ))
        self.db.flush()


def _hash_stream(stream, algorithm: Optional[str]) -> str:
    name = (algorithm or "SHA256").replace("-", "").lower()
    digest = hashlib.new(name)
    while True:
        chunk = stream.read(8192)
        if not chunk:
            break
        digest.update(chunk)
    return digest.hexdigest()
