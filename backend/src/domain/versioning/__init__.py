"""Versioning domain module - version numbering and metadata diffing"""

from .numbering import (
    CheckInType,
    VersionType,
    VersionNumbers,
    next_version_numbers,
    restore_version_numbers,
    initial_version_numbers,
    format_version_label,
)
from .metadata_diff import DiffType, MetadataDiffItem, metadata_display_value, build_metadata_diff

__all__ = [
    "CheckInType",
    "VersionType",
    "VersionNumbers",
    "next_version_numbers",
    "restore_version_numbers",
    "initial_version_numbers",
    "format_version_label",
    "DiffType",
    "MetadataDiffItem",
    "metadata_display_value",
    "build_metadata_diff",
]
