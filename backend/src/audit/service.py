"""Activity logging service for the records core.

This service provides a centralized interface for creating immutable activity
entries. Every mutating operation on a document records one entry through
this service so the audit trail can be reconstructed per document.

Activity actions:
- CHECKED_OUT, CHECKED_IN, CHECKOUT_DISCARDED, CHECKOUT_FORCE_DISCARDED
- VERSION_CREATED, VERSION_RESTORED, VERSION_VERIFIED
- STATE_CHANGED, LEGAL_HOLD_APPLIED, LEGAL_HOLD_RELEASED
- RETENTION_APPLIED, RETENTION_TRIGGERED, RETENTION_SUSPENDED, RETENTION_RESUMED
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.activity_log import ActivityLog

CHECKED_OUT = "CHECKED_OUT"
CHECKED_IN = "CHECKED_IN"
CHECKOUT_DISCARDED = "CHECKOUT_DISCARDED"
CHECKOUT_FORCE_DISCARDED = "CHECKOUT_FORCE_DISCARDED"
VERSION_CREATED = "VERSION_CREATED"
VERSION_RESTORED = "VERSION_RESTORED"
VERSION_VERIFIED = "VERSION_VERIFIED"
STATE_CHANGED = "STATE_CHANGED"
LEGAL_HOLD_APPLIED = "LEGAL_HOLD_APPLIED"
LEGAL_HOLD_RELEASED = "LEGAL_HOLD_RELEASED"
RETENTION_APPLIED = "RETENTION_APPLIED"
RETENTION_TRIGGERED = "RETENTION_TRIGGERED"
RETENTION_SUSPENDED = "RETENTION_SUSPENDED"
RETENTION_RESUMED = "RETENTION_RESUMED"

SUBJECT_DOCUMENT = "document"


def log_activity(
    db: Session,
    action: str,
    subject_type: str,
    subject_id: Optional[UUID],
    subject_name: Optional[str] = None,
    detail: Optional[str] = None,
    actor_id: Optional[UUID] = None,
) -> ActivityLog:
    """Create an activity log entry.

    All parameters are stored as-is. This function does not validate action
    names; callers use the constants defined in this module.

    Args:
        db: Database session
        action: Event action (e.g., "CHECKED_IN")
        subject_type: Type of entity affected (e.g., "document")
        subject_id: ID of affected entity
        subject_name: Display name of the entity at the time of the event
        detail: Free-text detail (e.g., "Version 2.0 (Major)")
        actor_id: User who performed the action (None for system events)

    Returns:
        ActivityLog: The created entry

    Example:
        log_activity(
            db=db,
            action=CHECKED_IN,
            subject_type=SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            detail="Version 1.1 (Minor)",
            actor_id=user_id,
        )
    """
    entry = ActivityLog(
        action=action,
        subject_type=subject_type,
        subject_id=subject_id,
        subject_name=subject_name,
        detail=detail,
        actor_id=actor_id,
    )

    db.add(entry)
    db.flush()  # Get ID without committing transaction

    return entry


def get_activity(db: Session, subject_type: str, subject_id: UUID) -> List[ActivityLog]:
    """Activity entries for one subject, oldest first."""
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.subject_type == subject_type, ActivityLog.subject_id == subject_id)
        .order_by(ActivityLog.created_at, ActivityLog.id)
    )
    return list(db.execute(stmt).scalars())
