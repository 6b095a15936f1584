"""Lifecycle transition rule table.

The table maps a (from_state, to_state) pair to a small rule record. It is
loaded once from the state_transition_rule rows (or the default seed) and is
read-only afterwards.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from domain.documents.document_state import DocumentState
from models.lifecycle import StateTransitionRule

logger = logging.getLogger(__name__)

# Rules carrying this role are only taken by system paths (holds, disposal scheduling)
SYSTEM_ROLE = "System"
RECORDS_MANAGER_ROLE = "RecordsManager"


@dataclass(frozen=True)
class TransitionRule:
    from_state: DocumentState
    to_state: DocumentState
    requires_classification: bool = False
    requires_retention_policy: bool = False
    requires_approval: bool = False
    required_role: Optional[str] = None
    description: Optional[str] = None
    rule_id: Optional[UUID] = None

    @property
    def is_system_only(self) -> bool:
        return (self.required_role or "").lower() == SYSTEM_ROLE.lower()


_S = DocumentState

DEFAULT_TRANSITION_RULES: Tuple[TransitionRule, ...] = (
    TransitionRule(_S.ACTIVE, _S.RECORD, requires_classification=True,
                   description="Declare as record"),
    TransitionRule(_S.ACTIVE, _S.ARCHIVED, description="Archive working document"),
    TransitionRule(_S.ACTIVE, _S.QUARANTINED, required_role=RECORDS_MANAGER_ROLE,
                   description="Quarantine suspicious content"),
    TransitionRule(_S.ACTIVE, _S.PENDING_DISPOSAL, required_role=SYSTEM_ROLE,
                   description="Retention expired"),
    TransitionRule(_S.RECORD, _S.ARCHIVED, requires_retention_policy=True,
                   description="Archive record"),
    TransitionRule(_S.RECORD, _S.PENDING_DISPOSAL, requires_retention_policy=True,
                   required_role=SYSTEM_ROLE, description="Retention expired"),
    TransitionRule(_S.ARCHIVED, _S.ACTIVE, required_role=RECORDS_MANAGER_ROLE,
                   description="Reactivate archived document"),
    TransitionRule(_S.ARCHIVED, _S.PENDING_DISPOSAL, required_role=SYSTEM_ROLE,
                   description="Retention expired"),
    TransitionRule(_S.PENDING_DISPOSAL, _S.DISPOSED, required_role=RECORDS_MANAGER_ROLE,
                   requires_approval=True, description="Confirm disposal"),
    TransitionRule(_S.PENDING_DISPOSAL, _S.RECORD, required_role=RECORDS_MANAGER_ROLE,
                   description="Reject disposal"),
    TransitionRule(_S.QUARANTINED, _S.ACTIVE, required_role=RECORDS_MANAGER_ROLE,
                   description="Release from quarantine"),
    TransitionRule(_S.ACTIVE, _S.ON_HOLD, required_role=SYSTEM_ROLE, description="Legal hold"),
    TransitionRule(_S.RECORD, _S.ON_HOLD, required_role=SYSTEM_ROLE, description="Legal hold"),
    TransitionRule(_S.ARCHIVED, _S.ON_HOLD, required_role=SYSTEM_ROLE, description="Legal hold"),
    TransitionRule(_S.PENDING_DISPOSAL, _S.ON_HOLD, required_role=SYSTEM_ROLE, description="Legal hold"),
    TransitionRule(_S.QUARANTINED, _S.ON_HOLD, required_role=SYSTEM_ROLE, description="Legal hold"),
)


class TransitionRuleTable:
    """Immutable lookup of transition rules keyed by edge."""

    def __init__(self, rules: Iterable[TransitionRule]):
        by_edge: Dict[Tuple[DocumentState, DocumentState], TransitionRule] = {}
        for rule in rules:
            by_edge[(rule.from_state, rule.to_state)] = rule
        self._by_edge = MappingProxyType(by_edge)

    @classmethod
    def default(cls) -> "TransitionRuleTable":
        return cls(DEFAULT_TRANSITION_RULES)

    @classmethod
    def from_rows(cls, rows: Iterable[StateTransitionRule]) -> "TransitionRuleTable":
        return cls(
            TransitionRule(
                from_state=DocumentState(row.from_state),
                to_state=DocumentState(row.to_state),
                requires_classification=bool(row.requires_classification),
                requires_retention_policy=bool(row.requires_retention_policy),
                requires_approval=bool(row.requires_approval),
                required_role=row.required_role,
                description=row.description,
                rule_id=row.id,
            )
            for row in rows
        )

    @classmethod
    def load(cls, db: Session) -> "TransitionRuleTable":
        """Load active rules from the database, or the defaults if none exist."""
        rows = list(db.execute(
            select(StateTransitionRule).where(StateTransitionRule.is_active.is_(True))
        ).scalars())
        if not rows:
            logger.warning("No transition rules configured; using default rule table")
            return cls.default()
        logger.info(f"Loaded {len(rows)} transition rules")
        return cls.from_rows(rows)

    def get_rule(self, from_state: DocumentState, to_state: DocumentState) -> Optional[TransitionRule]:
        return self._by_edge.get((from_state, to_state))

    def get_rules_from(self, state: DocumentState) -> List[TransitionRule]:
        return [rule for (source, _), rule in self._by_edge.items() if source == state]

    def __iter__(self) -> Iterator[TransitionRule]:
        return iter(self._by_edge.values())

    def __len__(self) -> int:
        return len(self._by_edge)


def seed_default_rules(db: Session, rules: Iterable[TransitionRule] = DEFAULT_TRANSITION_RULES) -> int:
    """Insert rules for edges that have no row yet.

    Returns:
        Number of rows inserted
    """
    existing = {
        (DocumentState(row.from_state), DocumentState(row.to_state))
        for row in db.execute(select(StateTransitionRule)).scalars()
    }
    inserted = 0
    for rule in rules:
        if (rule.from_state, rule.to_state) in existing:
            continue
        db.add(StateTransitionRule(
            from_state=rule.from_state,
            to_state=rule.to_state,
            requires_classification=rule.requires_classification,
            requires_retention_policy=rule.requires_retention_policy,
            requires_approval=rule.requires_approval,
            required_role=rule.required_role,
            description=rule.description,
        ))
        inserted += 1
    db.flush()
    return inserted
