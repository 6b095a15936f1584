"""Lifecycle rule and transition log SQLAlchemy models"""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    Uuid,
)

from domain.clock import utcnow
from domain.documents.document_state import DocumentState
from .base import Base


def _state_column(nullable: bool = False) -> Column:
    return Column(
        SQLEnum(DocumentState, name="documentstate", native_enum=False, length=32),
        nullable=nullable,
    )


class StateTransitionRule(Base):
    """Configured edge of the lifecycle graph.

    required_role of "System" marks an edge that only system paths
    (legal hold, disposal scheduling) may take.
    """
    __tablename__ = "state_transition_rule"
    __table_args__ = (
        UniqueConstraint("from_state", "to_state", name="uq_state_transition_rule_edge"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    from_state = _state_column()
    to_state = _state_column()
    requires_classification = Column(Boolean, nullable=False, default=False)
    requires_retention_policy = Column(Boolean, nullable=False, default=False)
    requires_approval = Column(Boolean, nullable=False, default=False)
    required_role = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class StateTransitionLog(Base):
    """Append-only record of every lifecycle state change."""
    __tablename__ = "state_transition_log"
    __table_args__ = (
        Index("ix_state_transition_log_document_id", "document_id", "transitioned_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    from_state = _state_column()
    to_state = _state_column()
    transitioned_by = Column(Uuid, nullable=True)
    transitioned_at = Column(DateTime, nullable=False, default=utcnow)
    reason = Column(Text, nullable=True)
    rule_id = Column(Uuid, nullable=True)
    is_system_action = Column(Boolean, nullable=False, default=False)
