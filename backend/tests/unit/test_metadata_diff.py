"""Unit tests for metadata snapshot comparison"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from domain.versioning import DiffType, build_metadata_diff, metadata_display_value


@dataclass
class Field:
    field_id: UUID
    field_name: str
    value: Optional[str] = None
    numeric_value: Optional[Decimal] = None
    date_value: Optional[datetime] = None


class TestDisplayValue:
    """Test text > numeric > date precedence"""

    def test_text_wins_over_numeric(self):
        """Test a text value hides a numeric value"""
        assert metadata_display_value("abc", Decimal("1"), None) == "abc"

    def test_numeric_used_when_text_empty(self):
        """Test empty text falls through to the numeric value"""
        assert metadata_display_value("", Decimal("12.5000"), datetime(2024, 1, 1)) == "12.5"

    def test_integral_numeric_has_no_exponent(self):
        """Test normalized numbers render in plain notation"""
        assert metadata_display_value(None, Decimal("100.0000"), None) == "100"

    def test_date_used_last(self):
        """Test dates render as ISO dates"""
        assert metadata_display_value(None, None, datetime(2024, 3, 1, 15, 0)) == "2024-03-01"

    def test_all_empty(self):
        """Test no value at all yields None"""
        assert metadata_display_value(None, None, None) is None


class TestBuildMetadataDiff:
    """Test pairing by field id"""

    def setup_method(self):
        self.title = uuid4()
        self.amount = uuid4()
        self.closed = uuid4()
        self.owner = uuid4()

    def test_classifies_every_field(self):
        """Test unchanged, modified, removed and added fields"""
        source = [
            Field(self.title, "Title", value="Lease"),
            Field(self.amount, "Amount", numeric_value=Decimal("10")),
            Field(self.closed, "Closed", date_value=datetime(2024, 1, 1)),
        ]
        target = [
            Field(self.title, "Title", value="Lease"),
            Field(self.amount, "Amount", numeric_value=Decimal("12")),
            Field(self.owner, "Owner", value="Legal"),
        ]

        diffs = {d.field_name: d for d in build_metadata_diff(source, target)}

        assert diffs["Title"].diff_type == DiffType.UNCHANGED
        assert diffs["Amount"].diff_type == DiffType.MODIFIED
        assert (diffs["Amount"].old_value, diffs["Amount"].new_value) == ("10", "12")
        assert diffs["Closed"].diff_type == DiffType.REMOVED
        assert diffs["Closed"].new_value is None
        assert diffs["Owner"].diff_type == DiffType.ADDED
        assert diffs["Owner"].old_value is None

    def test_same_field_set_in_both_directions(self):
        """Test swapping sides reports the same fields with swapped values"""
        source = [Field(self.title, "Title", value="A")]
        target = [Field(self.title, "Title", value="B"), Field(self.owner, "Owner", value="X")]

        forward = build_metadata_diff(source, target)
        backward = build_metadata_diff(target, source)

        assert {d.field_id for d in forward} == {d.field_id for d in backward}
        title_fwd = next(d for d in forward if d.field_id == self.title)
        title_bwd = next(d for d in backward if d.field_id == self.title)
        assert (title_fwd.old_value, title_fwd.new_value) == ("A", "B")
        assert (title_bwd.old_value, title_bwd.new_value) == ("B", "A")
        owner_bwd = next(d for d in backward if d.field_id == self.owner)
        assert owner_bwd.diff_type == DiffType.REMOVED

    def test_numeric_scale_differences_are_unchanged(self):
        """Test 10 and 10.00 compare equal once normalized"""
        source = [Field(self.amount, "Amount", numeric_value=Decimal("10"))]
        target = [Field(self.amount, "Amount", numeric_value=Decimal("10.00"))]
        assert build_metadata_diff(source, target)[0].diff_type == DiffType.UNCHANGED
