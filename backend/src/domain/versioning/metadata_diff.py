"""Metadata snapshot comparison.

Snapshots are paired by field id over the union of both sides. Each field's
value is reduced to one display string; text wins over numeric, numeric
over date. That order decides what counts as a change and must not be
reordered.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID


class DiffType(str, Enum):
    UNCHANGED = "Unchanged"
    MODIFIED = "Modified"
    ADDED = "Added"
    REMOVED = "Removed"


@dataclass
class MetadataDiffItem:
    """One field of a version comparison."""
    field_id: UUID
    field_name: str
    old_value: Optional[str]
    new_value: Optional[str]
    diff_type: DiffType


def _format_numeric(value: Any) -> str:
    number = value if isinstance(value, Decimal) else Decimal(str(value))
    return format(number.normalize(), "f")


def metadata_display_value(
    value: Optional[str],
    numeric_value: Optional[Any],
    date_value: Optional[Any],
) -> Optional[str]:
    """Best available textual representation of a metadata value.

    Example:
        >>> metadata_display_value("", Decimal("12.5000"), None)
        '12.5'
        >>> metadata_display_value(None, None, datetime(2024, 3, 1))
        '2024-03-01'
    """
    if value:
        return value
    if numeric_value is not None:
        return _format_numeric(numeric_value)
    if date_value is not None:
        if isinstance(date_value, (datetime, date)):
            return date_value.strftime("%Y-%m-%d")
        return str(date_value)
    return None


def _display(item: Any) -> Optional[str]:
    return metadata_display_value(item.value, item.numeric_value, item.date_value)


def build_metadata_diff(source: Iterable[Any], target: Iterable[Any]) -> List[MetadataDiffItem]:
    """Diff two metadata snapshots.

    Items only need ``field_id``, ``field_name``, ``value``, ``numeric_value``
    and ``date_value`` attributes. Fields are reported in source order,
    followed by fields only present in the target.

    Args:
        source: Snapshot of the older (left) version
        target: Snapshot of the newer (right) version

    Returns:
        One MetadataDiffItem per field id present on either side
    """
    source_by_field: Dict[UUID, Any] = {item.field_id: item for item in source}
    target_by_field: Dict[UUID, Any] = {item.field_id: item for item in target}

    field_ids = list(source_by_field)
    field_ids.extend(fid for fid in target_by_field if fid not in source_by_field)

    diffs: List[MetadataDiffItem] = []
    for field_id in field_ids:
        source_item = source_by_field.get(field_id)
        target_item = target_by_field.get(field_id)

        if source_item is not None and target_item is not None:
            old_value = _display(source_item)
            new_value = _display(target_item)
            diff_type = DiffType.UNCHANGED if old_value == new_value else DiffType.MODIFIED
            field_name = source_item.field_name
        elif source_item is not None:
            old_value, new_value = _display(source_item), None
            diff_type = DiffType.REMOVED
            field_name = source_item.field_name
        else:
            old_value, new_value = None, _display(target_item)
            diff_type = DiffType.ADDED
            field_name = target_item.field_name

        diffs.append(MetadataDiffItem(
            field_id=field_id,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            diff_type=diff_type,
        ))

    return diffs
