"""DocumentState enum for the records lifecycle.

State flow (default rule table, see lifecycle.rules):
    ACTIVE → RECORD → ARCHIVED → PENDING_DISPOSAL → DISPOSED
    ACTIVE → QUARANTINED → ACTIVE
    any (except DISPOSED) → ON_HOLD → state saved before the hold

ON_HOLD is only reachable through the legal-hold path, never through a
generic transition.
"""

from enum import Enum
from typing import FrozenSet, Optional


class DocumentState(str, Enum):
    """Lifecycle state of a document."""
    ACTIVE = "Active"                      # Editable working document
    RECORD = "Record"                      # Declared record (immutable)
    ARCHIVED = "Archived"                  # Archived record (immutable)
    ON_HOLD = "OnHold"                     # Under legal hold (immutable)
    PENDING_DISPOSAL = "PendingDisposal"   # Awaiting disposal (immutable)
    QUARANTINED = "Quarantined"            # Isolated for review (immutable)
    DISPOSED = "Disposed"                  # Disposed (terminal)


# Documents in these states cannot be checked out or edited
IMMUTABLE_STATES: FrozenSet[DocumentState] = frozenset({
    DocumentState.RECORD,
    DocumentState.ARCHIVED,
    DocumentState.ON_HOLD,
    DocumentState.PENDING_DISPOSAL,
    DocumentState.QUARANTINED,
})


def is_immutable(state: DocumentState) -> bool:
    """Check whether content and metadata edits are forbidden in a state.

    Example:
        >>> is_immutable(DocumentState.RECORD)
        True
        >>> is_immutable(DocumentState.ACTIVE)
        False
    """
    return state in IMMUTABLE_STATES


def parse_state(value: str) -> Optional[DocumentState]:
    """Parse a state name case-insensitively.

    Accepts either the value ("PendingDisposal") or the member name
    ("PENDING_DISPOSAL"). Returns None for unknown names.
    """
    if isinstance(value, DocumentState):
        return value
    normalized = value.strip().replace("_", "").lower()
    for state in DocumentState:
        if state.value.lower() == normalized:
            return state
    return None
