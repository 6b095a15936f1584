"""Classification SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Boolean, Column, ForeignKey, Text, Uuid

from .base import Base


class Classification(Base):
    """Node of the classification scheme (file plan).

    Nodes form a tree through parent_id. default_retention_policy_id is
    inherited by descendants that do not define their own.
    """
    __tablename__ = "classification"

    id = Column(Uuid, primary_key=True, default=uuid4)
    parent_id = Column(Uuid, ForeignKey("classification.id", ondelete="SET NULL"), nullable=True)
    code = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    default_retention_policy_id = Column(
        Uuid, ForeignKey("retention_policy.id", ondelete="SET NULL"), nullable=True
    )
    is_active = Column(Boolean, nullable=False, default=True)
