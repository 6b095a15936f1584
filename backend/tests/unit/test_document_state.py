"""Unit tests for DocumentState and the immutable state set"""

import pytest

from domain.documents.document_state import (
    DocumentState,
    IMMUTABLE_STATES,
    is_immutable,
    parse_state,
)


class TestDocumentStateEnum:
    """Test DocumentState values"""

    def test_document_state_enum_values(self):
        """Test DocumentState enum has all required values"""
        assert DocumentState.ACTIVE.value == "Active"
        assert DocumentState.RECORD.value == "Record"
        assert DocumentState.ARCHIVED.value == "Archived"
        assert DocumentState.ON_HOLD.value == "OnHold"
        assert DocumentState.PENDING_DISPOSAL.value == "PendingDisposal"
        assert DocumentState.QUARANTINED.value == "Quarantined"
        assert DocumentState.DISPOSED.value == "Disposed"

    @pytest.mark.parametrize("raw,expected", [
        ("Active", DocumentState.ACTIVE),
        ("pendingdisposal", DocumentState.PENDING_DISPOSAL),
        ("PENDING_DISPOSAL", DocumentState.PENDING_DISPOSAL),
        (" OnHold ", DocumentState.ON_HOLD),
    ])
    def test_parse_state_is_case_insensitive(self, raw, expected):
        """Test state names parse regardless of case and underscores"""
        assert parse_state(raw) == expected

    def test_parse_unknown_state_returns_none(self):
        """Test unknown names are not coerced to a state"""
        assert parse_state("Shredded") is None


class TestImmutableStates:
    """Test the immutable state set"""

    def test_immutable_set_contents(self):
        """Test exactly the record-like states are immutable"""
        assert IMMUTABLE_STATES == {
            DocumentState.RECORD,
            DocumentState.ARCHIVED,
            DocumentState.ON_HOLD,
            DocumentState.PENDING_DISPOSAL,
            DocumentState.QUARANTINED,
        }

    def test_active_is_editable(self):
        """Test ACTIVE documents may be edited"""
        assert is_immutable(DocumentState.ACTIVE) is False

    def test_disposed_is_not_in_immutable_set(self):
        """Test DISPOSED is terminal rather than immutable"""
        assert is_immutable(DocumentState.DISPOSED) is False

    @pytest.mark.parametrize("state", sorted(IMMUTABLE_STATES, key=lambda s: s.value))
    def test_record_states_are_immutable(self, state):
        """Test every immutable state reports immutable"""
        assert is_immutable(state) is True

    def test_immutable_set_cannot_be_mutated(self):
        """Test the set is frozen"""
        with pytest.raises(AttributeError):
            IMMUTABLE_STATES.add(DocumentState.ACTIVE)
