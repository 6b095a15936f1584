"""Pydantic schemas for retention schedules"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from models.retention import RetentionStatus


class RetentionView(BaseModel):
    """Read model of one DocumentRetention row"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    policy_id: UUID
    retention_start_date: datetime
    expiration_date: Optional[datetime] = None
    original_expiration_date: Optional[datetime] = None
    status: RetentionStatus
    suspended_at: Optional[datetime] = None
    suspended_days: int = 0
    trigger_event_id: Optional[UUID] = None
    notes: Optional[str] = None

