"""Legal hold coordination.

Placing or releasing a hold changes the document state through the state
machine and pauses or restarts the retention clocks in the same session.
Retention is only touched when the state change succeeded.
"""

import logging
from typing import Optional
from uuid import UUID

from domain.results import ServiceResult
from models.document import Document
from retention.engine import RetentionEngine
from .state_machine import LifecycleStateMachine

logger = logging.getLogger(__name__)


def apply_legal_hold(
    state_machine: LifecycleStateMachine,
    retention: RetentionEngine,
    document_id: UUID,
    hold_id: UUID,
    user_id: Optional[UUID] = None,
) -> ServiceResult[Document]:
    result = state_machine.place_on_hold(document_id, hold_id, user_id)
    if not result.success:
        return result

    suspended = retention.suspend(document_id, user_id)
    logger.info(
        f"Legal hold {hold_id} applied; {len(suspended.data)} retention schedule(s) suspended",
        extra={"document_id": str(document_id), "user_id": str(user_id)},
    )
    return result


def release_legal_hold(
    state_machine: LifecycleStateMachine,
    retention: RetentionEngine,
    document_id: UUID,
    user_id: Optional[UUID] = None,
) -> ServiceResult[Document]:
    result = state_machine.release_from_hold(document_id, user_id)
    if not result.success:
        return result

    resumed = retention.resume(document_id, user_id)
    logger.info(
        f"Legal hold released; {len(resumed.data)} retention schedule(s) resumed",
        extra={"document_id": str(document_id), "user_id": str(user_id)},
    )
    return result
