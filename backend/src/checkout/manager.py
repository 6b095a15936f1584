"""Checkout manager.

Owns the working-copy lifecycle: checkout, draft saves, check-in, discard,
force-discard and stale-checkout reporting. The checkout flags on the
document row are the single-writer lock; they are only claimed and released
through conditional updates in DocumentRepository.

Draft content is stored under ``documents/{id}/drafts/...`` and published
content under ``documents/{id}/v{n}/...`` so the two never share a path.
"""

import logging
from datetime import timedelta
from typing import BinaryIO, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from audit import service as audit
from config import get_settings
from domain.clock import Clock, utcnow
from domain.documents.ports.legal_hold_port import LegalHoldQueryPort
from domain.documents.ports.object_storage_port import ObjectStoragePort
from domain.documents.validation import FileValidator, sanitize_filename
from domain.results import ServiceResult
from domain.versioning.numbering import next_version_numbers
from infrastructure.repositories.document_repository import DocumentRepository
from infrastructure.repositories.legal_hold_repository import DocumentLegalHoldQuery
from models.document import Document, DocumentMetadata
from models.document_version import DocumentVersion
from models.working_copy import DocumentWorkingCopy
from observability.metrics import checkout_operations_total
from versions.chain import VersionChain
from versions.schemas import NewVersion
from .check_in import (
    ContentSource,
    apply_draft_properties,
    detect_changes,
    extension_of,
    parse_draft_metadata,
    properties_changed,
    reset_working_copy,
    resolve_content_source,
    serialize_draft_metadata,
)
from .schemas import (
    CheckInSpec,
    CustomMetadataItem,
    SaveWorkingCopyRequest,
    StaleCheckout,
    UploadedContent,
    WorkingCopyView,
)

logger = logging.getLogger(__name__)

class CheckoutManager:
    """Service for the check-out / check-in protocol.

    Business rejections come back as failed ServiceResults. Storage and
    database errors propagate so the caller's session rolls back.
    """

    def __init__(
        self,
        db: Session,
        storage: ObjectStoragePort,
        versions: Optional[VersionChain] = None,
        validator: Optional[FileValidator] = None,
        legal_holds: Optional[LegalHoldQueryPort] = None,
        clock: Clock = utcnow,
        stale_checkout_hours: Optional[int] = None,
    ):
        """Initialize checkout manager.

        Args:
            db: Database session (one unit of work per operation)
            storage: Content storage for draft and published blobs
            versions: Version chain used at check-in (built on db if omitted)
            validator: File validator for uploads
            legal_holds: Legal hold query (defaults to the document hold flag)
            clock: Source of timestamps
            stale_checkout_hours: Default age threshold for get_stale_checkouts
                (STALE_CHECKOUT_HOURS setting if omitted)
        """
        self.db = db
        self.storage = storage
        self.clock = clock
        self.versions = versions or VersionChain(db, storage=storage, clock=clock)
        self.validator = validator or FileValidator()
        self.legal_holds = legal_holds or DocumentLegalHoldQuery(db)
        self.stale_checkout_hours = (
            stale_checkout_hours if stale_checkout_hours is not None else get_settings().STALE_CHECKOUT_HOURS
        )
        self.documents = DocumentRepository(db)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def check_out(self, document_id: UUID, user_id: UUID) -> ServiceResult[DocumentWorkingCopy]:
        """Claim exclusive edit rights and create a pre-populated working copy."""
        document = self.documents.get(document_id)
        if document is None:
            return self._rejected("checkout", "Document not found")
        if document.is_checked_out:
            return self._rejected("checkout", "Document is already checked out")
        if document.is_on_legal_hold or self.legal_holds.is_on_hold(document_id):
            return self._rejected("checkout", "Cannot check out a document under legal hold")

        now = self.clock()
        if not self.documents.try_mark_checked_out(document_id, user_id, now):
            # Another session claimed the row between our read and the update
            return self._rejected("checkout", "Document is already checked out")

        working_copy = self._create_working_copy(document, user_id, now)

        audit.log_activity(
            self.db,
            action=audit.CHECKED_OUT,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            actor_id=user_id,
        )
        checkout_operations_total.labels(operation="checkout", status="success").inc()
        logger.info(
            f"Document checked out: {document.name}",
            extra={"document_id": str(document_id), "user_id": str(user_id)},
        )
        return ServiceResult.ok(working_copy)

    # ------------------------------------------------------------------
    # Working copy
    # ------------------------------------------------------------------

    def get_working_copy(self, document_id: UUID, user_id: UUID) -> ServiceResult[WorkingCopyView]:
        document, error = self._require_owner(document_id, user_id)
        if error:
            return ServiceResult.fail(error)

        working_copy = self._ensure_working_copy(document)
        has_draft_file = bool(working_copy.draft_storage_path)
        view = WorkingCopyView(
            document_id=document.id,
            checked_out_by=working_copy.checked_out_by,
            checked_out_at=working_copy.checked_out_at,
            draft_name=working_copy.draft_name,
            draft_description=working_copy.draft_description,
            draft_classification_id=working_copy.draft_classification_id,
            draft_importance_id=working_copy.draft_importance_id,
            draft_document_type_id=working_copy.draft_document_type_id,
            draft_content_type=working_copy.draft_content_type,
            draft_original_file_name=working_copy.draft_original_file_name,
            draft_size=working_copy.draft_size,
            has_draft_file=has_draft_file,
            has_unsaved_changes=(
                has_draft_file
                or bool(working_copy.draft_metadata_json)
                or properties_changed(document, working_copy)
            ),
            custom_metadata=parse_draft_metadata(working_copy.draft_metadata_json),
            last_modified_at=working_copy.last_modified_at,
        )
        return ServiceResult.ok(view)

    def save_working_copy_metadata(
        self,
        document_id: UUID,
        user_id: UUID,
        request: SaveWorkingCopyRequest,
    ) -> ServiceResult[DocumentWorkingCopy]:
        """Apply the fields present in the request to the draft."""
        document, error = self._require_owner(document_id, user_id)
        if error:
            return ServiceResult.fail(error)

        working_copy = self._ensure_working_copy(document)
        present = request.model_fields_set

        if "name" in present:
            working_copy.draft_name = request.name
        if "description" in present:
            # Empty string stages an explicit clear
            working_copy.draft_description = request.description if request.description is not None else ""
        if "classification_id" in present:
            working_copy.draft_classification_id = request.classification_id
        if "importance_id" in present:
            working_copy.draft_importance_id = request.importance_id
        if "document_type_id" in present:
            working_copy.draft_document_type_id = request.document_type_id
        if "custom_metadata" in present:
            working_copy.draft_metadata_json = serialize_draft_metadata(request.custom_metadata)

        working_copy.last_modified_at = self.clock()
        self.db.flush()

        logger.info(
            f"Working copy metadata saved: fields={sorted(present)}",
            extra={"document_id": str(document_id), "user_id": str(user_id)},
        )
        return ServiceResult.ok(working_copy)

    async def save_working_copy_content(
        self,
        document_id: UUID,
        stream: BinaryIO,
        file_name: str,
        content_type: Optional[str],
        user_id: UUID,
    ) -> ServiceResult[DocumentWorkingCopy]:
        """Validate and store a replacement file in the draft slot."""
        document, error = self._require_owner(document_id, user_id)
        if error:
            return ServiceResult.fail(error)

        validation = self.validator.validate(stream, file_name, content_type)
        if not validation.valid:
            logger.info(
                f"Draft upload rejected: {validation.error}",
                extra={"document_id": str(document_id), "user_id": str(user_id)},
            )
            return ServiceResult.fail(validation.error)

        working_copy = self._ensure_working_copy(document)
        key = f"documents/{document.id}/drafts/{uuid4().hex}/{sanitize_filename(file_name)}"
        stored = await self.storage.save(stream, key)

        previous_draft = working_copy.draft_storage_path
        if previous_draft:
            await self.storage.delete(previous_draft)

        working_copy.draft_storage_path = stored.storage_path
        working_copy.draft_size = stored.size_bytes
        working_copy.draft_integrity_hash = stored.content_hash
        working_copy.draft_content_type = validation.resolved_content_type
        working_copy.draft_original_file_name = file_name
        working_copy.last_modified_at = self.clock()
        self.db.flush()

        message = "Draft content saved"
        if validation.warning:
            message = f"{validation.warning} {message}"
        logger.info(
            f"Draft content saved: {file_name} ({stored.size_bytes} bytes)",
            extra={"document_id": str(document_id), "user_id": str(user_id)},
        )
        return ServiceResult.ok(working_copy, message=message)

    # ------------------------------------------------------------------
    # Check-in
    # ------------------------------------------------------------------

    async def check_in(
        self,
        document_id: UUID,
        spec: CheckInSpec,
        user_id: UUID,
        new_content: Optional[UploadedContent] = None,
    ) -> ServiceResult[DocumentVersion]:
        """Publish the working copy as a new version.

        Steps: detect changes, number the version, resolve the content
        source, merge draft metadata, mint and snapshot the version, move
        the document pointer, then tear down (or reset) the working copy.
        """
        document, error = self._require_owner(document_id, user_id)
        if error:
            return self._rejected("checkin", error)

        working_copy = self._ensure_working_copy(document)
        has_upload = new_content is not None

        resolved_upload_type = None
        if has_upload:
            validation = self.validator.validate(
                new_content.stream, new_content.file_name, new_content.content_type
            )
            if not validation.valid:
                return self._rejected("checkin", validation.error)
            resolved_upload_type = validation.resolved_content_type

        changes = detect_changes(document, working_copy, has_upload)
        latest = self.documents.get_latest_version(document.id)
        numbers = next_version_numbers(
            document.current_version,
            document.current_major_version,
            document.current_minor_version,
            spec.check_in_type,
            latest.version_type if latest is not None else None,
        )

        source = resolve_content_source(working_copy, has_upload)
        orphaned_draft = None
        if source == ContentSource.UPLOAD:
            key = (
                f"documents/{document.id}/v{numbers.version_number}/"
                f"{sanitize_filename(new_content.file_name)}"
            )
            stored = await self.storage.save(new_content.stream, key)
            content = dict(
                storage_path=stored.storage_path,
                size=stored.size_bytes,
                integrity_hash=stored.content_hash,
                hash_algorithm=stored.hash_algorithm,
                content_type=resolved_upload_type,
                original_file_name=new_content.file_name,
            )
            orphaned_draft = working_copy.draft_storage_path
        elif source == ContentSource.DRAFT:
            content = dict(
                storage_path=working_copy.draft_storage_path,
                size=working_copy.draft_size or 0,
                integrity_hash=working_copy.draft_integrity_hash,
                hash_algorithm=document.hash_algorithm or (latest.hash_algorithm if latest else None) or "SHA256",
                content_type=working_copy.draft_content_type,
                original_file_name=working_copy.draft_original_file_name,
            )
        else:
            content = dict(
                storage_path=document.storage_path,
                size=document.size or 0,
                integrity_hash=document.integrity_hash,
                hash_algorithm=document.hash_algorithm,
                content_type=document.content_type,
                original_file_name=latest.original_file_name if latest is not None else None,
            )

        apply_draft_properties(document, working_copy)
        new_extension = extension_of(content["original_file_name"]) if source != ContentSource.UNCHANGED else None
        if new_extension and new_extension != document.extension:
            document.extension = new_extension
        self._apply_draft_custom_metadata(document.id, parse_draft_metadata(working_copy.draft_metadata_json))

        version = self.versions.create_version(document, NewVersion(
            numbers=numbers,
            is_content_changed=changes.content_changed,
            is_metadata_changed=changes.metadata_changed,
            created_by=user_id,
            comment=spec.comment,
            change_description=spec.change_description or spec.comment,
            **content,
        ))
        self.versions.snapshot_metadata(document.id, version.id)
        self.versions.publish_version(document, version, user_id)

        if spec.keep_checked_out:
            reset_working_copy(working_copy, self.clock())
            self.db.flush()
        else:
            self.db.delete(working_copy)
            self.documents.clear_checkout(document.id)

        if orphaned_draft:
            await self.storage.delete(orphaned_draft)

        detail = f"Version {version.version_label} ({spec.check_in_type.value})"
        audit.log_activity(
            self.db,
            action=audit.CHECKED_IN,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            detail=detail,
            actor_id=user_id,
        )
        checkout_operations_total.labels(operation="checkin", status="success").inc()
        logger.info(
            f"Document checked in as {version.version_label}: content_changed={changes.content_changed}, "
            f"metadata_changed={changes.metadata_changed}, keep_checked_out={spec.keep_checked_out}",
            extra={"document_id": str(document.id), "user_id": str(user_id), "version_id": str(version.id)},
        )
        return ServiceResult.ok(version, message=f"Checked in as version {version.version_label}")

    # ------------------------------------------------------------------
    # Discard
    # ------------------------------------------------------------------

    async def discard(self, document_id: UUID, user_id: UUID) -> ServiceResult[None]:
        """Drop the caller's own checkout and everything it staged."""
        document = self.documents.get(document_id)
        if document is None:
            return self._rejected("discard", "Document not found")
        if not document.is_checked_out:
            return self._rejected("discard", "Document is not checked out")
        if document.checked_out_by != user_id:
            return self._rejected("discard", "You can only discard your own checkout")

        await self._tear_down(document)

        audit.log_activity(
            self.db,
            action=audit.CHECKOUT_DISCARDED,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            actor_id=user_id,
        )
        checkout_operations_total.labels(operation="discard", status="success").inc()
        logger.info(
            "Checkout discarded",
            extra={"document_id": str(document_id), "user_id": str(user_id)},
        )
        return ServiceResult.ok(message="Checkout discarded")

    async def force_discard(self, document_id: UUID, admin_user_id: UUID, reason: str) -> ServiceResult[None]:
        """Administrative override of someone else's checkout."""
        document = self.documents.get(document_id)
        if document is None:
            return self._rejected("force_discard", "Document not found")
        if not document.is_checked_out:
            return self._rejected("force_discard", "Document is not checked out")

        original_owner = document.checked_out_by
        await self._tear_down(document)

        audit.log_activity(
            self.db,
            action=audit.CHECKOUT_FORCE_DISCARDED,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            detail=f"Checkout by {original_owner} discarded. Reason: {reason}",
            actor_id=admin_user_id,
        )
        checkout_operations_total.labels(operation="force_discard", status="success").inc()
        logger.warning(
            f"Checkout force-discarded (owner={original_owner}, reason={reason})",
            extra={"document_id": str(document_id), "user_id": str(admin_user_id)},
        )
        return ServiceResult.ok(message="Checkout force-discarded")

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_stale_checkouts(self, stale_hours: Optional[int] = None) -> List[StaleCheckout]:
        """Checkouts older than the threshold. Nothing is reclaimed."""
        hours = stale_hours if stale_hours is not None else self.stale_checkout_hours
        now = self.clock()
        cutoff = now - timedelta(hours=hours)
        return [
            StaleCheckout(
                document_id=document.id,
                document_name=document.name,
                checked_out_by=document.checked_out_by,
                checked_out_at=document.checked_out_at,
                hours_checked_out=round((now - document.checked_out_at).total_seconds() / 3600, 2),
            )
            for document in self.documents.get_stale_checkouts(cutoff)
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_owner(self, document_id: UUID, user_id: UUID) -> Tuple[Optional[Document], Optional[str]]:
        document = self.documents.get(document_id)
        if document is None:
            return None, "Document not found"
        if not document.is_checked_out:
            return None, "Document is not checked out"
        if document.checked_out_by != user_id:
            return None, "Document is not checked out by you"
        return document, None

    def _create_working_copy(self, document: Document, user_id: UUID, now) -> DocumentWorkingCopy:
        working_copy = DocumentWorkingCopy(
            document_id=document.id,
            checked_out_by=user_id,
            checked_out_at=now,
            draft_name=document.name,
            draft_description=document.description,
            draft_classification_id=document.classification_id,
            draft_importance_id=document.importance_id,
            draft_document_type_id=document.document_type_id,
            last_modified_at=now,
        )
        self.db.add(working_copy)
        self.db.flush()
        return working_copy

    def _ensure_working_copy(self, document: Document) -> DocumentWorkingCopy:
        """Working copy of a checked-out document, created if an older
        checkout never got one."""
        working_copy = self.documents.get_working_copy(document.id)
        if working_copy is None:
            logger.info(
                "Creating missing working copy for existing checkout",
                extra={"document_id": str(document.id)},
            )
            working_copy = self._create_working_copy(
                document, document.checked_out_by, document.checked_out_at or self.clock()
            )
        return working_copy

    def _apply_draft_custom_metadata(self, document_id: UUID, items: List[CustomMetadataItem]) -> None:
        if not items:
            return
        existing = {row.field_id: row for row in self.documents.get_metadata(document_id)}
        now = self.clock()
        for item in items:
            row = existing.get(item.field_id)
            if row is None:
                row = DocumentMetadata(document_id=document_id, field_id=item.field_id)
                self.db.add(row)
                existing[item.field_id] = row
            row.field_name = item.field_name
            row.content_type_id = item.content_type_id
            row.value = item.value
            row.numeric_value = item.numeric_value
            row.date_value = item.date_value
            row.modified_at = now
        self.db.flush()

    async def _tear_down(self, document: Document) -> None:
        working_copy = self.documents.get_working_copy(document.id)
        if working_copy is not None:
            if working_copy.draft_storage_path:
                await self.storage.delete(working_copy.draft_storage_path)
            self.db.delete(working_copy)
        self.documents.clear_checkout(document.id)

    def _rejected(self, operation: str, error: str) -> ServiceResult:
        checkout_operations_total.labels(operation=operation, status="rejected").inc()
        logger.info(f"Checkout {operation} rejected: {error}")
        return ServiceResult.fail(error)
