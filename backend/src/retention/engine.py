"""Retention engine.

Computes when documents become eligible for disposal:
- Apply a policy (creation, declared-record or event-based basis)
- Start event-based clocks when a matching business event fires
- Re-derive the policy from the classification hierarchy
- Suspend and resume clocks around legal holds, pushing the expiration
  out by the suspended time

Disposal itself is performed elsewhere; this engine only maintains
DocumentRetention rows.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from audit import service as audit
from domain.clock import Clock, utcnow
from domain.documents.document_state import DocumentState
from domain.results import ServiceResult
from infrastructure.repositories.classification_repository import ClassificationRepository
from infrastructure.repositories.document_repository import DocumentRepository
from infrastructure.repositories.retention_policy_repository import RetentionPolicyRepository
from models.document import Document
from models.lifecycle import StateTransitionLog
from models.retention import (
    DocumentRetention,
    RetentionBasis,
    RetentionPolicy,
    RetentionStatus,
    RetentionTriggerLog,
    RetentionTriggerType,
)
from observability.metrics import retention_operations_total
from .schedule import append_note, compute_expiration, elapsed_whole_days
from .schemas import RetentionView

logger = logging.getLogger(__name__)

# Rows in these states still represent a live application of their policy
LIVE_STATUSES = (RetentionStatus.AWAITING_TRIGGER, RetentionStatus.ACTIVE, RetentionStatus.ON_HOLD)


class RetentionEngine:
    """Service for computing and maintaining retention schedules."""

    def __init__(
        self,
        db: Session,
        policies: Optional[RetentionPolicyRepository] = None,
        classifications: Optional[ClassificationRepository] = None,
        clock: Clock = utcnow,
    ):
        """Initialize retention engine.

        Args:
            db: Database session
            policies: Retention policy repository (built on db if omitted)
            classifications: Classification repository (built on db if omitted)
            clock: Source of timestamps
        """
        self.db = db
        self.policies = policies or RetentionPolicyRepository(db)
        self.classifications = classifications or ClassificationRepository(db)
        self.documents = DocumentRepository(db)
        self.clock = clock

    def apply_policy(
        self,
        document_id: UUID,
        policy_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> ServiceResult[DocumentRetention]:
        """Apply a retention policy to a document.

        Re-applying a policy that already has a live row returns that row.
        A document currently under legal hold gets its new clock suspended
        immediately.
        """
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")
        policy = self.policies.get_by_id(policy_id)
        if policy is None:
            return ServiceResult.fail("Retention policy not found")

        existing = self._live_row(document_id, policy_id)
        if existing is not None:
            document.retention_policy_id = policy.id
            self.db.flush()
            return ServiceResult.ok(existing, message="Retention policy already applied")

        now = self.clock()
        start = self.compute_start_date(document, policy)
        if policy.retention_basis == RetentionBasis.EVENT_BASED:
            expiration = None
            status = RetentionStatus.AWAITING_TRIGGER
        else:
            expiration = compute_expiration(start, policy.retention_days)
            status = RetentionStatus.ACTIVE

        retention = DocumentRetention(
            document_id=document.id,
            policy_id=policy.id,
            retention_start_date=start,
            expiration_date=expiration,
            original_expiration_date=expiration,
            status=status,
            suspended_days=0,
            created_at=now,
        )
        if status == RetentionStatus.ACTIVE and document.is_on_legal_hold:
            retention.status = RetentionStatus.ON_HOLD
            retention.suspended_at = now
            retention.notes = append_note(None, f"Suspended {now:%Y-%m-%d} (document under legal hold)")

        self.db.add(retention)
        document.retention_policy_id = policy.id
        self.db.flush()

        audit.log_activity(
            self.db,
            action=audit.RETENTION_APPLIED,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            detail=_describe(policy, expiration),
            actor_id=user_id,
        )
        retention_operations_total.labels(operation="apply").inc()
        logger.info(
            f"Applied retention policy '{policy.name}': status={retention.status.value}, expiration={expiration}",
            extra={"document_id": str(document.id), "policy_id": str(policy.id)},
        )
        return ServiceResult.ok(retention)

    def compute_start_date(self, document: Document, policy: RetentionPolicy) -> datetime:
        """Date the retention clock starts from for a policy basis.

        Declared-record policies start when the document last entered
        Record, or at creation if it never did.
        """
        if policy.retention_basis == RetentionBasis.DECLARED_RECORD:
            declared_at = self._last_declared_at(document.id)
            if declared_at is not None:
                return declared_at
        return document.created_at

    def fire_trigger_event(
        self,
        document_id: UUID,
        trigger_type: RetentionTriggerType,
        user_id: Optional[UUID] = None,
    ) -> ServiceResult[List[DocumentRetention]]:
        """Start every awaiting clock whose policy listens to this trigger.

        Rows without a matching trigger definition are left untouched.
        """
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")

        started: List[DocumentRetention] = []
        for retention in self.policies.get_retentions(document_id, RetentionStatus.AWAITING_TRIGGER):
            trigger = self.policies.find_trigger(retention.policy_id, trigger_type)
            if trigger is None:
                continue
            policy = self.policies.get_by_id(retention.policy_id)
            now = self.clock()
            previous_expiration = retention.expiration_date
            expiration = compute_expiration(now, policy.retention_days)

            retention.retention_start_date = now
            retention.expiration_date = expiration
            retention.original_expiration_date = expiration
            retention.status = RetentionStatus.ACTIVE
            retention.trigger_event_id = trigger.id
            if document.is_on_legal_hold:
                retention.status = RetentionStatus.ON_HOLD
                retention.suspended_at = now

            self.db.add(RetentionTriggerLog(
                document_id=document.id,
                document_retention_id=retention.id,
                trigger_event_id=trigger.id,
                trigger_type=trigger_type,
                previous_expiration_date=previous_expiration,
                new_expiration_date=expiration,
                triggered_by=user_id,
                triggered_at=now,
            ))
            started.append(retention)

        self.db.flush()

        if started:
            audit.log_activity(
                self.db,
                action=audit.RETENTION_TRIGGERED,
                subject_type=audit.SUBJECT_DOCUMENT,
                subject_id=document.id,
                subject_name=document.name,
                detail=f"{trigger_type.value} started {len(started)} retention schedule(s)",
                actor_id=user_id,
            )
            retention_operations_total.labels(operation="trigger").inc()
        logger.info(
            f"Trigger {trigger_type.value} started {len(started)} retention schedule(s)",
            extra={"document_id": str(document_id)},
        )
        return ServiceResult.ok(started, message=f"{len(started)} retention schedule(s) started")

    def recalculate_on_classification_change(
        self,
        document_id: UUID,
        new_classification_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> ServiceResult[Optional[DocumentRetention]]:
        """Apply the nearest default policy up the classification tree.

        No default anywhere in the chain is a successful no-op.
        """
        policy_id = self.classifications.find_default_policy_id(new_classification_id)
        if policy_id is None:
            return ServiceResult.ok(None, message="No default retention policy in classification hierarchy")
        return self.apply_policy(document_id, policy_id, user_id)

    def auto_apply(
        self,
        document_id: UUID,
        classification_id: Optional[UUID] = None,
        folder_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
    ) -> ServiceResult[Optional[DocumentRetention]]:
        """Apply the most specific applicable policy, falling back to the
        classification default. Finding nothing is a successful no-op."""
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")

        classification_id = classification_id or document.classification_id
        folder_id = folder_id or document.folder_id

        policy = self.policies.get_applicable_policy(folder_id, classification_id, document.document_type_id)
        if policy is not None:
            return self.apply_policy(document_id, policy.id, user_id)
        if classification_id is not None:
            return self.recalculate_on_classification_change(document_id, classification_id, user_id)
        return ServiceResult.ok(None, message="No applicable retention policy")

    def suspend(self, document_id: UUID, user_id: Optional[UUID] = None) -> ServiceResult[List[DocumentRetention]]:
        """Pause every active clock. Expiration dates are left as they are."""
        now = self.clock()
        suspended = self.policies.get_retentions(document_id, RetentionStatus.ACTIVE)
        for retention in suspended:
            retention.status = RetentionStatus.ON_HOLD
            retention.suspended_at = now
            retention.notes = append_note(retention.notes, f"Suspended {now:%Y-%m-%d} for legal hold")
        self.db.flush()

        if suspended:
            audit.log_activity(
                self.db,
                action=audit.RETENTION_SUSPENDED,
                subject_type=audit.SUBJECT_DOCUMENT,
                subject_id=document_id,
                detail=f"{len(suspended)} retention schedule(s) suspended",
                actor_id=user_id,
            )
            retention_operations_total.labels(operation="suspend").inc()
        logger.info(
            f"Suspended {len(suspended)} retention schedule(s)",
            extra={"document_id": str(document_id)},
        )
        return ServiceResult.ok(suspended)

    def resume(self, document_id: UUID, user_id: Optional[UUID] = None) -> ServiceResult[List[DocumentRetention]]:
        """Restart suspended clocks, pushing expiration out by the whole
        days spent suspended."""
        now = self.clock()
        resumed = []
        for retention in self.policies.get_retentions(document_id, RetentionStatus.ON_HOLD):
            days = elapsed_whole_days(retention.suspended_at, now) if retention.suspended_at else 0
            retention.suspended_days = (retention.suspended_days or 0) + days
            if retention.expiration_date is not None:
                retention.expiration_date = retention.expiration_date + timedelta(days=days)
            retention.suspended_at = None
            retention.status = RetentionStatus.ACTIVE
            retention.notes = append_note(
                retention.notes, f"Resumed {now:%Y-%m-%d} after {days} day(s) on hold"
            )
            resumed.append(retention)
        self.db.flush()

        if resumed:
            audit.log_activity(
                self.db,
                action=audit.RETENTION_RESUMED,
                subject_type=audit.SUBJECT_DOCUMENT,
                subject_id=document_id,
                detail=f"{len(resumed)} retention schedule(s) resumed",
                actor_id=user_id,
            )
            retention_operations_total.labels(operation="resume").inc()
        logger.info(
            f"Resumed {len(resumed)} retention schedule(s)",
            extra={"document_id": str(document_id)},
        )
        return ServiceResult.ok(resumed)

    def get_retentions(self, document_id: UUID) -> List[RetentionView]:
        return [RetentionView.model_validate(row) for row in self.policies.get_retentions(document_id)]

    # ------------------------------------------------------------------

    def _live_row(self, document_id: UUID, policy_id: UUID) -> Optional[DocumentRetention]:
        stmt = (
            select(DocumentRetention)
            .where(
                DocumentRetention.document_id == document_id,
                DocumentRetention.policy_id == policy_id,
                DocumentRetention.status.in_(LIVE_STATUSES),
            )
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def _last_declared_at(self, document_id: UUID) -> Optional[datetime]:
        stmt = (
            select(StateTransitionLog.transitioned_at)
            .where(
                StateTransitionLog.document_id == document_id,
                StateTransitionLog.to_state == DocumentState.RECORD,
            )
            .order_by(StateTransitionLog.transitioned_at.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()


def _describe(policy: RetentionPolicy, expiration: Optional[datetime]) -> str:
    if policy.retention_basis == RetentionBasis.EVENT_BASED:
        return f"Policy '{policy.name}' applied; awaiting trigger"
    if expiration is None:
        return f"Policy '{policy.name}' applied; retained permanently"
    return f"Policy '{policy.name}' applied; expires {expiration:%Y-%m-%d}"
