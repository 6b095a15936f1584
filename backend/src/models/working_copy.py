"""DocumentWorkingCopy SQLAlchemy model

Exists if and only if the document is checked out. Draft content lives in a
storage slot distinct from the published content.
"""

from uuid import uuid4

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Text, Uuid

from domain.clock import utcnow
from .base import Base, PortableJSONB


class DocumentWorkingCopy(Base):
    """Staged edits of one checkout session."""
    __tablename__ = "document_working_copy"

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False, unique=True)
    checked_out_by = Column(Uuid, nullable=False)
    checked_out_at = Column(DateTime, nullable=False, default=utcnow)

    # Draft content (null until a replacement file is uploaded)
    draft_storage_path = Column(Text, nullable=True)
    draft_size = Column(BigInteger, nullable=True)
    draft_content_type = Column(Text, nullable=True)
    draft_original_file_name = Column(Text, nullable=True)
    draft_integrity_hash = Column(Text, nullable=True)

    # List of staged custom metadata items (JSON objects)
    draft_metadata_json = Column(PortableJSONB, nullable=True)

    # Draft document properties
    draft_name = Column(Text, nullable=True)
    draft_description = Column(Text, nullable=True)
    draft_classification_id = Column(Uuid, nullable=True)
    draft_importance_id = Column(Uuid, nullable=True)
    draft_document_type_id = Column(Uuid, nullable=True)

    last_modified_at = Column(DateTime, nullable=True)
    auto_save_enabled = Column(Boolean, nullable=False, default=True)
