"""Version numbering rules.

Every published change appends exactly one version row, so the dense
``version_number`` always advances by one. The human-facing major/minor
label depends on the check-in type:

    MAJOR      2.3 -> 3.0
    MINOR      2.3 -> 2.4
    OVERWRITE  2.3 -> 2.3 (new row, label unchanged)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CheckInType(str, Enum):
    """How a check-in advances the version label."""
    MAJOR = "Major"
    MINOR = "Minor"
    OVERWRITE = "Overwrite"


class VersionType(str, Enum):
    """Type recorded on a version row."""
    MAJOR = "Major"
    MINOR = "Minor"


@dataclass(frozen=True)
class VersionNumbers:
    """Numbering of a version about to be minted."""
    version_number: int
    major: int
    minor: int
    version_type: VersionType

    @property
    def label(self) -> str:
        return format_version_label(self.major, self.minor)


def format_version_label(major: int, minor: int) -> str:
    """Render the human-facing label.

    Example:
        >>> format_version_label(2, 3)
        '2.3'
    """
    return f"{major}.{minor}"


def initial_version_numbers() -> VersionNumbers:
    """Numbering of the first version of a new document (1.0)."""
    return VersionNumbers(version_number=1, major=1, minor=0, version_type=VersionType.MAJOR)


def next_version_numbers(
    current_version: int,
    current_major: int,
    current_minor: int,
    check_in_type: CheckInType,
    current_version_type: Optional[VersionType] = None,
) -> VersionNumbers:
    """Compute the numbering for the next check-in.

    Args:
        current_version: Dense version number currently published
        current_major: Current major label component
        current_minor: Current minor label component
        check_in_type: Requested check-in type
        current_version_type: Type of the current version row; an overwrite
            keeps it (defaults to MINOR when unknown)

    Returns:
        VersionNumbers for the new row

    Example:
        >>> next_version_numbers(5, 2, 3, CheckInType.MAJOR).label
        '3.0'
        >>> next_version_numbers(5, 2, 3, CheckInType.OVERWRITE).version_number
        6
    """
    major, minor = current_major, current_minor

    if check_in_type == CheckInType.MAJOR:
        major += 1
        minor = 0
        version_type = VersionType.MAJOR
    elif check_in_type == CheckInType.OVERWRITE:
        version_type = current_version_type or VersionType.MINOR
    else:
        minor += 1
        version_type = VersionType.MINOR

    return VersionNumbers(
        version_number=current_version + 1,
        major=major,
        minor=minor,
        version_type=VersionType(version_type),
    )


def restore_version_numbers(current_version: int, current_major: int) -> VersionNumbers:
    """Numbering for a restore, which always publishes a new major version."""
    return VersionNumbers(
        version_number=current_version + 1,
        major=current_major + 1,
        minor=0,
        version_type=VersionType.MAJOR,
    )
