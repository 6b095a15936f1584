"""Document SQLAlchemy model

Document is the aggregate root of the records core. Its content pointer,
version pointer, checkout flags and lifecycle state are each written by
exactly one component:
- checkout flags: CheckoutManager
- version pointer and content fields: CheckoutManager/VersionChain together
- state fields: LifecycleStateMachine
"""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    BigInteger,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)

from domain.clock import utcnow
from domain.documents.document_state import DocumentState
from .base import Base


class Document(Base):
    """Document model.

    Invariant: current_version equals the version_number of the row
    referenced by current_version_id.
    """
    __tablename__ = "document"
    __table_args__ = (
        Index("ix_document_folder_id", "folder_id"),
        Index("ix_document_checked_out", "is_checked_out", "checked_out_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    folder_id = Column(Uuid, nullable=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    extension = Column(Text, nullable=True)

    # Published content pointer
    content_type = Column(Text, nullable=True)
    storage_path = Column(Text, nullable=True)
    size = Column(BigInteger, nullable=False, default=0)
    integrity_hash = Column(Text, nullable=True)
    hash_algorithm = Column(Text, nullable=True)
    integrity_verified_at = Column(DateTime, nullable=True)

    # Version pointer (no FK: document_version references document)
    current_version = Column(Integer, nullable=False, default=0)
    current_major_version = Column(Integer, nullable=False, default=0)
    current_minor_version = Column(Integer, nullable=False, default=0)
    current_version_id = Column(Uuid, nullable=True)

    # Lifecycle
    state = Column(
        SQLEnum(DocumentState, name="documentstate", native_enum=False, length=32),
        nullable=False,
        default=DocumentState.ACTIVE,
    )
    previous_state = Column(
        SQLEnum(DocumentState, name="documentstate", native_enum=False, length=32),
        nullable=True,
    )
    state_changed_at = Column(DateTime, nullable=True)
    state_changed_by = Column(Uuid, nullable=True)
    archived_at = Column(DateTime, nullable=True)
    archived_by = Column(Uuid, nullable=True)
    disposed_at = Column(DateTime, nullable=True)
    disposed_by = Column(Uuid, nullable=True)

    # Checkout (advisory single-writer lock)
    is_checked_out = Column(Boolean, nullable=False, default=False)
    checked_out_by = Column(Uuid, nullable=True)
    checked_out_at = Column(DateTime, nullable=True)

    # Legal hold
    is_on_legal_hold = Column(Boolean, nullable=False, default=False)
    legal_hold_id = Column(Uuid, nullable=True)
    legal_hold_applied_at = Column(DateTime, nullable=True)
    legal_hold_applied_by = Column(Uuid, nullable=True)

    # Classification and retention
    classification_id = Column(Uuid, ForeignKey("classification.id", ondelete="SET NULL"), nullable=True)
    importance_id = Column(Uuid, nullable=True)
    document_type_id = Column(Uuid, nullable=True)
    retention_policy_id = Column(Uuid, ForeignKey("retention_policy.id", ondelete="SET NULL"), nullable=True)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    modified_by = Column(Uuid, nullable=True)
    modified_at = Column(DateTime, nullable=True, onupdate=utcnow)


class DocumentMetadata(Base):
    """Current value of one typed custom metadata field of a document.

    Exactly one of value/numeric_value/date_value is normally populated.
    Version snapshots copy these rows into document_version_metadata, so a
    field appears at most once per document.
    """
    __tablename__ = "document_metadata"
    __table_args__ = (
        UniqueConstraint("document_id", "field_id", name="uq_document_metadata_field"),
        Index("ix_document_metadata_document_id", "document_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    content_type_id = Column(Uuid, nullable=True)
    field_id = Column(Uuid, nullable=False)
    field_name = Column(Text, nullable=False)
    value = Column(Text, nullable=True)
    numeric_value = Column(Numeric(18, 4), nullable=True)
    date_value = Column(DateTime, nullable=True)
    modified_at = Column(DateTime, nullable=False, default=utcnow)
