"""Retention SQLAlchemy models

RetentionPolicy defines a duration and the basis its clock starts from.
DocumentRetention is one application of a policy to a document and carries
the live expiration date that legal holds push out.
"""

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
)

from domain.clock import utcnow
from .base import Base


class RetentionBasis(str, Enum):
    """Date a retention clock starts from."""
    CREATION = "Creation"
    DECLARED_RECORD = "DeclaredRecord"
    EVENT_BASED = "EventBased"


class RetentionStatus(str, Enum):
    AWAITING_TRIGGER = "AwaitingTrigger"
    ACTIVE = "Active"
    ON_HOLD = "OnHold"
    PENDING_REVIEW = "PendingReview"
    ARCHIVED = "Archived"
    DELETED = "Deleted"


class RetentionTriggerType(str, Enum):
    """Business events that can start an event-based retention clock."""
    DOCUMENT_CREATED = "DocumentCreated"
    DECLARED_RECORD = "DeclaredRecord"
    METADATA_FIELD_CHANGED = "MetadataFieldChanged"
    EXTERNAL_EVENT = "ExternalEvent"
    CONTRACT_CLOSED = "ContractClosed"
    CASE_RESOLVED = "CaseResolved"


class ExpirationAction(str, Enum):
    REVIEW = "Review"
    ARCHIVE = "Archive"
    DELETE = "Delete"


class RetentionPolicy(Base):
    """Retention policy.

    retention_days of 0 means the content is kept permanently.
    folder_id/classification_id/document_type_id scope the policy for
    applicable-policy lookups; all three null means a catch-all policy.
    """
    __tablename__ = "retention_policy"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    retention_days = Column(Integer, nullable=False, default=0)
    retention_basis = Column(
        SQLEnum(RetentionBasis, name="retentionbasis", native_enum=False, length=32),
        nullable=False,
        default=RetentionBasis.CREATION,
    )
    expiration_action = Column(
        SQLEnum(ExpirationAction, name="expirationaction", native_enum=False, length=16),
        nullable=False,
        default=ExpirationAction.REVIEW,
    )
    folder_id = Column(Uuid, nullable=True)
    classification_id = Column(Uuid, nullable=True)
    document_type_id = Column(Uuid, nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class RetentionTriggerEvent(Base):
    """Trigger definition attached to an event-based policy."""
    __tablename__ = "retention_trigger_event"
    __table_args__ = (
        Index("ix_retention_trigger_event_policy_id", "policy_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    policy_id = Column(Uuid, ForeignKey("retention_policy.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    trigger_type = Column(
        SQLEnum(RetentionTriggerType, name="retentiontriggertype", native_enum=False, length=32),
        nullable=False,
    )
    metadata_field_name = Column(Text, nullable=True)
    metadata_field_value = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class RetentionTriggerLog(Base):
    """Immutable audit row written whenever a trigger starts a retention clock."""
    __tablename__ = "retention_trigger_log"

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    document_retention_id = Column(
        Uuid, ForeignKey("document_retention.id", ondelete="CASCADE"), nullable=False
    )
    trigger_event_id = Column(Uuid, ForeignKey("retention_trigger_event.id"), nullable=False)
    trigger_type = Column(
        SQLEnum(RetentionTriggerType, name="retentiontriggertype", native_enum=False, length=32),
        nullable=False,
    )
    previous_expiration_date = Column(DateTime, nullable=True)
    new_expiration_date = Column(DateTime, nullable=True)
    triggered_by = Column(Uuid, nullable=True)
    triggered_at = Column(DateTime, nullable=False, default=utcnow)


class DocumentRetention(Base):
    """One application of a retention policy to a document.

    status is OnHold exactly when suspended_at is set. original_expiration_date
    is written once and never moved by suspension.
    """
    __tablename__ = "document_retention"
    __table_args__ = (
        Index("ix_document_retention_document_id", "document_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    policy_id = Column(Uuid, ForeignKey("retention_policy.id"), nullable=False)
    retention_start_date = Column(DateTime, nullable=False)
    expiration_date = Column(DateTime, nullable=True)
    original_expiration_date = Column(DateTime, nullable=True)
    status = Column(
        SQLEnum(RetentionStatus, name="retentionstatus", native_enum=False, length=32),
        nullable=False,
        default=RetentionStatus.ACTIVE,
    )
    suspended_at = Column(DateTime, nullable=True)
    suspended_days = Column(Integer, nullable=False, default=0)
    trigger_event_id = Column(Uuid, ForeignKey("retention_trigger_event.id"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
