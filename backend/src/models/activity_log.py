"""ActivityLog SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, Text, Uuid

from domain.clock import utcnow
from .base import Base


class ActivityLog(Base):
    """Append-only activity trail. Rows are never updated or deleted."""
    __tablename__ = "activity_log"
    __table_args__ = (
        Index("ix_activity_log_subject", "subject_type", "subject_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    action = Column(Text, nullable=False)
    subject_type = Column(Text, nullable=False)
    subject_id = Column(Uuid, nullable=True)
    subject_name = Column(Text, nullable=True)
    detail = Column(Text, nullable=True)
    actor_id = Column(Uuid, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
