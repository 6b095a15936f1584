"""Document repository for database operations"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models.document import Document, DocumentMetadata
from models.document_version import DocumentVersion
from models.working_copy import DocumentWorkingCopy


class DocumentRepository:
    """Repository for document, working copy and metadata rows.

    Checkout flags are only written through the conditional updates below so
    that two concurrent checkouts cannot both succeed.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get(self, document_id: UUID) -> Optional[Document]:
        return self.db.get(Document, document_id)

    def get_working_copy(self, document_id: UUID) -> Optional[DocumentWorkingCopy]:
        stmt = select(DocumentWorkingCopy).where(DocumentWorkingCopy.document_id == document_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def try_mark_checked_out(self, document_id: UUID, user_id: UUID, now: datetime) -> bool:
        """Atomically claim the checkout.

        Issues a single conditional UPDATE that only matches a row which is
        not checked out. The affected row count decides the winner.

        Returns:
            True if this call set the checkout flags
        """
        stmt = (
            update(Document)
            .where(Document.id == document_id, Document.is_checked_out.is_(False))
            .values(is_checked_out=True, checked_out_by=user_id, checked_out_at=now)
            .execution_options(synchronize_session=False)
        )
        return self._execute_flag_update(stmt, document_id)

    def clear_checkout(self, document_id: UUID, expected_owner: Optional[UUID] = None) -> bool:
        """Atomically release the checkout.

        Args:
            document_id: Document to release
            expected_owner: When given, only release if this user holds the checkout

        Returns:
            True if the flags were cleared
        """
        conditions = [Document.id == document_id, Document.is_checked_out.is_(True)]
        if expected_owner is not None:
            conditions.append(Document.checked_out_by == expected_owner)
        stmt = (
            update(Document)
            .where(*conditions)
            .values(is_checked_out=False, checked_out_by=None, checked_out_at=None)
            .execution_options(synchronize_session=False)
        )
        return self._execute_flag_update(stmt, document_id)

    def get_stale_checkouts(self, cutoff: datetime) -> List[Document]:
        """Documents checked out before the cutoff, oldest checkout first."""
        stmt = (
            select(Document)
            .where(Document.is_checked_out.is_(True), Document.checked_out_at < cutoff)
            .order_by(Document.checked_out_at)
        )
        return list(self.db.execute(stmt).scalars())

    def get_metadata(self, document_id: UUID) -> List[DocumentMetadata]:
        stmt = (
            select(DocumentMetadata)
            .where(DocumentMetadata.document_id == document_id)
            .order_by(DocumentMetadata.field_name, DocumentMetadata.field_id)
        )
        return list(self.db.execute(stmt).scalars())

    def get_latest_version(self, document_id: UUID) -> Optional[DocumentVersion]:
        stmt = (
            select(DocumentVersion)
            .where(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_number.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def _execute_flag_update(self, stmt, document_id: UUID) -> bool:
        # Pending changes must reach the row before the conditional update runs
        self.db.flush()
        matched = self.db.execute(stmt).rowcount == 1
        # Reload the in-session instance so callers see the flags just written
        self.db.get(Document, document_id, populate_existing=True)
        return matched
