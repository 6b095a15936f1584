"""Lifecycle state machine.

The only writer of Document.state. Generic transitions are validated
against the rule table; legal-hold placement and release and disposal
scheduling are separate system paths. Every change appends a
StateTransitionLog row and an activity entry.
"""

import logging
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from audit import service as audit
from config import get_settings
from domain.clock import Clock, utcnow
from domain.documents.document_state import DocumentState, is_immutable
from domain.documents.ports.object_storage_port import ObjectStoragePort
from domain.results import ServiceResult
from infrastructure.repositories.document_repository import DocumentRepository
from infrastructure.storage.errors import StorageError
from models.document import Document
from models.lifecycle import StateTransitionLog
from observability.metrics import state_transitions_total
from .rules import TransitionRule, TransitionRuleTable
from .schemas import AllowedTransition

logger = logging.getLogger(__name__)

# Entering these states mirrors the published content to write-once storage
WORM_STATES = frozenset({DocumentState.RECORD, DocumentState.ARCHIVED})


class LifecycleStateMachine:
    """Validates and applies document state transitions."""

    is_immutable = staticmethod(is_immutable)

    def __init__(
        self,
        db: Session,
        rules: Optional[TransitionRuleTable] = None,
        storage: Optional[ObjectStoragePort] = None,
        worm_storage: Optional[ObjectStoragePort] = None,
        clock: Clock = utcnow,
        admin_roles: Optional[Sequence[str]] = None,
    ):
        """Initialize the state machine.

        Args:
            db: Database session
            rules: Transition rule table (loaded from the database if omitted)
            storage: Content storage, read when mirroring to WORM
            worm_storage: Optional write-once target for Record/Archived content
            clock: Source of timestamps
            admin_roles: Roles that bypass role requirements (case-insensitive,
                ADMIN_ROLES setting if omitted)
        """
        self.db = db
        self.rules = rules if rules is not None else TransitionRuleTable.load(db)
        self.storage = storage
        self.worm_storage = worm_storage
        self.clock = clock
        if admin_roles is None:
            admin_roles = get_settings().ADMIN_ROLES
        self.admin_roles = {role.lower() for role in admin_roles}
        self.documents = DocumentRepository(db)

    async def transition(
        self,
        document_id: UUID,
        target_state: DocumentState,
        reason: Optional[str],
        user_id: UUID,
        roles: Optional[Iterable[str]] = None,
    ) -> ServiceResult[Document]:
        """Move a document along a configured edge.

        Args:
            document_id: Document to transition
            target_state: Requested state
            reason: Free-text reason stored in the transition log
            user_id: Acting user
            roles: Caller roles; when given, the rule's required role is enforced
        """
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")
        if document.state == DocumentState.ON_HOLD or document.is_on_legal_hold:
            return self._rejected(
                document, "Cannot manually transition a document under legal hold. Release the hold first."
            )
        if document.is_checked_out:
            return self._rejected(document, "Cannot transition a checked-out document")

        current = DocumentState(document.state)
        rule = self.rules.get_rule(current, target_state)
        if rule is None or rule.is_system_only:
            return self._rejected(
                document, f"Invalid state transition from {current.value} to {target_state.value}"
            )
        if roles is not None and not self._role_allows(rule, roles):
            return self._rejected(
                document, f"Transition to {target_state.value} requires role '{rule.required_role}'"
            )

        error = self._check_preconditions(document, rule)
        if error:
            return self._rejected(document, error)

        await self._mirror_to_worm(document, target_state)
        self._apply(document, target_state, user_id, reason, rule, is_system_action=False)
        return ServiceResult.ok(document, message=f"Document moved to {target_state.value}")

    def get_allowed_transitions(
        self,
        document_id: UUID,
        user_id: UUID,
        roles: Iterable[str],
    ) -> ServiceResult[List[AllowedTransition]]:
        """Manually selectable transitions for the caller.

        System-only edges are never returned. Rules requiring a role the
        caller lacks are dropped unless the caller is an administrator.
        """
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")

        roles = list(roles)
        allowed = [
            AllowedTransition(
                to_state=rule.to_state,
                requires_classification=rule.requires_classification,
                requires_retention_policy=rule.requires_retention_policy,
                requires_approval=rule.requires_approval,
                required_role=rule.required_role,
                description=rule.description,
            )
            for rule in self.rules.get_rules_from(DocumentState(document.state))
            if not rule.is_system_only and self._role_allows(rule, roles)
        ]
        return ServiceResult.ok(allowed)

    def place_on_hold(self, document_id: UUID, hold_id: UUID, user_id: Optional[UUID]) -> ServiceResult[Document]:
        """Force a document into OnHold, remembering the state to restore."""
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")
        if document.state == DocumentState.ON_HOLD or document.is_on_legal_hold:
            return self._rejected(document, "Document is already on hold")
        if document.state == DocumentState.DISPOSED:
            return self._rejected(document, "Cannot place a disposed document on hold")

        now = self.clock()
        document.previous_state = document.state
        document.is_on_legal_hold = True
        document.legal_hold_id = hold_id
        document.legal_hold_applied_at = now
        document.legal_hold_applied_by = user_id
        rule = self.rules.get_rule(DocumentState(document.state), DocumentState.ON_HOLD)
        self._apply(
            document,
            DocumentState.ON_HOLD,
            user_id,
            f"Legal hold applied (Hold ID: {hold_id})",
            rule,
            is_system_action=True,
            action=audit.LEGAL_HOLD_APPLIED,
        )
        return ServiceResult.ok(document, message="Legal hold applied")

    def release_from_hold(self, document_id: UUID, user_id: Optional[UUID]) -> ServiceResult[Document]:
        """Leave OnHold, restoring the state saved when the hold was placed."""
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")
        if document.state != DocumentState.ON_HOLD:
            return self._rejected(document, "Document is not on hold")

        hold_id = document.legal_hold_id
        restored = DocumentState(document.previous_state) if document.previous_state else DocumentState.ACTIVE
        document.previous_state = None
        document.is_on_legal_hold = False
        document.legal_hold_id = None
        document.legal_hold_applied_at = None
        document.legal_hold_applied_by = None
        self._apply(
            document,
            restored,
            user_id,
            f"Legal hold released (Hold ID: {hold_id})",
            None,
            is_system_action=True,
            action=audit.LEGAL_HOLD_RELEASED,
        )
        return ServiceResult.ok(document, message=f"Legal hold released; state restored to {restored.value}")

    async def initiate_pending_disposal(
        self,
        document_id: UUID,
        user_id: Optional[UUID],
        reason: Optional[str] = None,
    ) -> ServiceResult[Document]:
        """System path into PendingDisposal (e.g. after retention expiry)."""
        document = self.documents.get(document_id)
        if document is None:
            return ServiceResult.fail("Document not found")
        if document.state == DocumentState.ON_HOLD or document.is_on_legal_hold:
            return self._rejected(document, "Cannot initiate disposal for a document under legal hold")
        if document.is_checked_out:
            return self._rejected(document, "Cannot transition a checked-out document")

        current = DocumentState(document.state)
        rule = self.rules.get_rule(current, DocumentState.PENDING_DISPOSAL)
        if rule is None:
            return self._rejected(
                document,
                f"Invalid state transition from {current.value} to {DocumentState.PENDING_DISPOSAL.value}",
            )
        error = self._check_preconditions(document, rule)
        if error:
            return self._rejected(document, error)

        self._apply(
            document,
            DocumentState.PENDING_DISPOSAL,
            user_id,
            reason or "Retention period expired",
            rule,
            is_system_action=True,
        )
        return ServiceResult.ok(document, message="Document scheduled for disposal")

    def get_transition_history(self, document_id: UUID) -> List[StateTransitionLog]:
        stmt = (
            select(StateTransitionLog)
            .where(StateTransitionLog.document_id == document_id)
            .order_by(StateTransitionLog.transitioned_at)
        )
        return list(self.db.execute(stmt).scalars())

    # ------------------------------------------------------------------

    def _role_allows(self, rule: TransitionRule, roles: Iterable[str]) -> bool:
        if not rule.required_role:
            return True
        lowered = {role.lower() for role in roles}
        if lowered & self.admin_roles:
            return True
        return rule.required_role.lower() in lowered

    @staticmethod
    def _check_preconditions(document: Document, rule: TransitionRule) -> Optional[str]:
        if rule.requires_classification and document.classification_id is None:
            return "Document must have a classification assigned before this transition"
        if rule.requires_retention_policy and document.retention_policy_id is None:
            return "Document must have a retention policy assigned before this transition"
        return None

    async def _mirror_to_worm(self, document: Document, target_state: DocumentState) -> None:
        if self.worm_storage is None or target_state not in WORM_STATES or not document.storage_path:
            return
        if self.storage is None:
            raise StorageError("Content storage is required for WORM mirroring")

        stream = await self.storage.get(document.storage_path)
        if stream is None:
            raise StorageError(f"Published content not found: {document.storage_path}")
        try:
            await self.worm_storage.save(stream, document.storage_path)
        finally:
            stream.close()
        logger.info(
            f"Mirrored content to WORM storage on entering {target_state.value}",
            extra={"document_id": str(document.id)},
        )

    def _apply(
        self,
        document: Document,
        target_state: DocumentState,
        user_id: Optional[UUID],
        reason: Optional[str],
        rule: Optional[TransitionRule],
        is_system_action: bool,
        action: str = audit.STATE_CHANGED,
    ) -> None:
        now = self.clock()
        from_state = DocumentState(document.state)

        document.state = target_state
        document.state_changed_at = now
        document.state_changed_by = user_id
        if target_state == DocumentState.ARCHIVED:
            document.archived_at = now
            document.archived_by = user_id
        elif target_state == DocumentState.DISPOSED:
            document.disposed_at = now
            document.disposed_by = user_id

        self.db.add(StateTransitionLog(
            document_id=document.id,
            from_state=from_state,
            to_state=target_state,
            transitioned_by=user_id,
            transitioned_at=now,
            reason=reason,
            rule_id=rule.rule_id if rule is not None else None,
            is_system_action=is_system_action,
        ))
        self.db.flush()

        audit.log_activity(
            self.db,
            action=action,
            subject_type=audit.SUBJECT_DOCUMENT,
            subject_id=document.id,
            subject_name=document.name,
            detail=f"{from_state.value} -> {target_state.value}" + (f": {reason}" if reason else ""),
            actor_id=user_id,
        )
        state_transitions_total.labels(
            from_state=from_state.value, to_state=target_state.value, system=str(is_system_action).lower()
        ).inc()
        logger.info(
            f"State changed {from_state.value} -> {target_state.value}",
            extra={"document_id": str(document.id), "user_id": str(user_id)},
        )

    def _rejected(self, document: Document, error: str) -> ServiceResult:
        logger.info(
            f"Lifecycle operation rejected: {error}",
            extra={"document_id": str(document.id)},
        )
        return ServiceResult.fail(error)
