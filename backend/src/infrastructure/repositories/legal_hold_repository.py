"""Legal hold query backed by the document's own hold flag"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from domain.documents.ports.legal_hold_port import LegalHoldQueryPort
from models.document import Document


class DocumentLegalHoldQuery(LegalHoldQueryPort):
    """Reads is_on_legal_hold, which the lifecycle hold path maintains."""

    def __init__(self, db: Session):
        self.db = db

    def is_on_hold(self, document_id: UUID) -> bool:
        stmt = select(Document.is_on_legal_hold).where(Document.id == document_id)
        return bool(self.db.execute(stmt).scalar_one_or_none())
