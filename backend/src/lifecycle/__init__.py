"""Document lifecycle: rule table, state machine and legal holds"""

from .holds import apply_legal_hold, release_legal_hold
from .rules import (
    DEFAULT_TRANSITION_RULES,
    RECORDS_MANAGER_ROLE,
    SYSTEM_ROLE,
    TransitionRule,
    TransitionRuleTable,
    seed_default_rules,
)
from .schemas import AllowedTransition
from .state_machine import LifecycleStateMachine

__all__ = [
    "AllowedTransition",
    "DEFAULT_TRANSITION_RULES",
    "LifecycleStateMachine",
    "RECORDS_MANAGER_ROLE",
    "SYSTEM_ROLE",
    "TransitionRule",
    "TransitionRuleTable",
    "apply_legal_hold",
    "release_legal_hold",
    "seed_default_rules",
]
