"""Retention policy repository for database operations"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from models.retention import (
    DocumentRetention,
    RetentionPolicy,
    RetentionStatus,
    RetentionTriggerEvent,
    RetentionTriggerType,
)


class RetentionPolicyRepository:
    """Repository for retention policies, trigger definitions and applications."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, policy_id: UUID) -> Optional[RetentionPolicy]:
        return self.db.get(RetentionPolicy, policy_id)

    def get_applicable_policy(
        self,
        folder_id: Optional[UUID],
        classification_id: Optional[UUID],
        document_type_id: Optional[UUID],
    ) -> Optional[RetentionPolicy]:
        """Most specific active policy whose scope matches the document.

        Every scope column a policy pins must equal the document's value; a
        null column matches anything. A policy pinning a folder and a
        classification therefore does not apply to a document that shares
        only the classification, which a match-any lookup would accept.
        Catch-all policies (no column pinned) are never returned; they reach
        documents only as a classification's default policy.

        Candidates are ranked by how many scope columns they pin, then by
        priority (higher first).
        """
        stmt = select(RetentionPolicy).where(
            RetentionPolicy.is_active.is_(True),
            or_(RetentionPolicy.folder_id.is_(None), RetentionPolicy.folder_id == folder_id),
            or_(
                RetentionPolicy.classification_id.is_(None),
                RetentionPolicy.classification_id == classification_id,
            ),
            or_(
                RetentionPolicy.document_type_id.is_(None),
                RetentionPolicy.document_type_id == document_type_id,
            ),
        )
        candidates = list(self.db.execute(stmt).scalars())
        # Catch-all policies are not "applicable"; they only apply through classification defaults
        candidates = [p for p in candidates if _specificity(p) > 0]
        if not candidates:
            return None
        return max(candidates, key=lambda p: (_specificity(p), p.priority))

    def find_trigger(
        self, policy_id: UUID, trigger_type: RetentionTriggerType
    ) -> Optional[RetentionTriggerEvent]:
        stmt = (
            select(RetentionTriggerEvent)
            .where(
                RetentionTriggerEvent.policy_id == policy_id,
                RetentionTriggerEvent.trigger_type == trigger_type,
                RetentionTriggerEvent.is_active.is_(True),
            )
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_retentions(
        self, document_id: UUID, status: Optional[RetentionStatus] = None
    ) -> List[DocumentRetention]:
        stmt = select(DocumentRetention).where(DocumentRetention.document_id == document_id)
        if status is not None:
            stmt = stmt.where(DocumentRetention.status == status)
        stmt = stmt.order_by(DocumentRetention.created_at, DocumentRetention.id)
        return list(self.db.execute(stmt).scalars())


def _specificity(policy: RetentionPolicy) -> int:
    return sum(
        1
        for value in (policy.folder_id, policy.classification_id, policy.document_type_id)
        if value is not None
    )
