"""Unit tests for version numbering rules"""

import pytest

from domain.versioning import (
    CheckInType,
    VersionType,
    format_version_label,
    initial_version_numbers,
    next_version_numbers,
    restore_version_numbers,
)


class TestNextVersionNumbers:
    """Test check-in numbering from label 2.3 (version #7)"""

    def test_major_check_in(self):
        """Test MAJOR bumps major and resets minor"""
        numbers = next_version_numbers(7, 2, 3, CheckInType.MAJOR)
        assert numbers.label == "3.0"
        assert numbers.version_number == 8
        assert numbers.version_type == VersionType.MAJOR

    def test_minor_check_in(self):
        """Test MINOR bumps minor and keeps major"""
        numbers = next_version_numbers(7, 2, 3, CheckInType.MINOR)
        assert numbers.label == "2.4"
        assert numbers.version_number == 8
        assert numbers.version_type == VersionType.MINOR

    def test_overwrite_keeps_label(self):
        """Test OVERWRITE keeps the label but still advances the dense number"""
        numbers = next_version_numbers(7, 2, 3, CheckInType.OVERWRITE)
        assert numbers.label == "2.3"
        assert numbers.version_number == 8

    def test_overwrite_keeps_current_type(self):
        """Test OVERWRITE carries over the current version's type"""
        numbers = next_version_numbers(3, 2, 0, CheckInType.OVERWRITE, VersionType.MAJOR)
        assert numbers.version_type == VersionType.MAJOR

    @pytest.mark.parametrize("check_in_type", list(CheckInType))
    def test_version_number_always_advances_by_one(self, check_in_type):
        """Test every check-in type appends exactly one version"""
        assert next_version_numbers(41, 9, 9, check_in_type).version_number == 42


class TestInitialAndRestoreNumbers:
    """Test first-version and restore numbering"""

    def test_initial_version(self):
        """Test a new document starts at 1.0 (#1)"""
        numbers = initial_version_numbers()
        assert (numbers.version_number, numbers.label) == (1, "1.0")
        assert numbers.version_type == VersionType.MAJOR

    def test_restore_is_always_major(self):
        """Test restore publishes the next major version"""
        numbers = restore_version_numbers(current_version=5, current_major=2)
        assert numbers.label == "3.0"
        assert numbers.version_number == 6
        assert numbers.version_type == VersionType.MAJOR

    def test_label_format(self):
        """Test labels render as major.minor"""
        assert format_version_label(10, 0) == "10.0"
