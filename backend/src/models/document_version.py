"""DocumentVersion and DocumentVersionMetadata SQLAlchemy models

Versions form an append-only chain per document. A row is never mutated
after creation except for integrity_verified_at.
"""

from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
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
from domain.versioning.numbering import VersionType
from .base import Base


class DocumentVersion(Base):
    """Immutable published version of a document.

    (document_id, version_number) is unique, so two concurrent mints of the
    same number fail at the database instead of producing a gap or duplicate.
    """
    __tablename__ = "document_version"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_document_version_number"),
        Index("ix_document_version_document_id", "document_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    major_version = Column(Integer, nullable=False, default=1)
    minor_version = Column(Integer, nullable=False, default=0)
    version_label = Column(Text, nullable=False)
    version_type = Column(
        SQLEnum(VersionType, name="versiontype", native_enum=False, length=16),
        nullable=False,
        default=VersionType.MINOR,
    )

    storage_path = Column(Text, nullable=True)
    size = Column(BigInteger, nullable=False, default=0)
    integrity_hash = Column(Text, nullable=True)
    hash_algorithm = Column(Text, nullable=True)
    integrity_verified_at = Column(DateTime, nullable=True)
    content_type = Column(Text, nullable=True)
    original_file_name = Column(Text, nullable=True)

    is_content_changed = Column(Boolean, nullable=False, default=True)
    is_metadata_changed = Column(Boolean, nullable=False, default=False)
    previous_version_id = Column(Uuid, ForeignKey("document_version.id"), nullable=True)
    change_description = Column(Text, nullable=True)
    comment = Column(Text, nullable=True)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class DocumentVersionMetadata(Base):
    """Snapshot of one metadata field as it was when a version was minted."""
    __tablename__ = "document_version_metadata"
    __table_args__ = (
        Index("ix_document_version_metadata_version_id", "document_version_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_version_id = Column(Uuid, ForeignKey("document_version.id", ondelete="CASCADE"), nullable=False)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    content_type_id = Column(Uuid, nullable=True)
    field_id = Column(Uuid, nullable=False)
    field_name = Column(Text, nullable=False)
    value = Column(Text, nullable=True)
    numeric_value = Column(Numeric(18, 4), nullable=True)
    date_value = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
