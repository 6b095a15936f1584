"""Pure steps of a check-in.

A check-in resolves four things, each computed here from the current
document and working copy without any I/O:

1. what changed (content and/or metadata)
2. which content is authoritative (new upload, draft blob, or unchanged)
3. how draft properties and custom metadata merge onto the document
4. how the working copy is torn down or reset
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter

from models.document import Document
from models.working_copy import DocumentWorkingCopy
from .schemas import CustomMetadataItem

_METADATA_LIST = TypeAdapter(List[CustomMetadataItem])


class ContentSource(str, Enum):
    UPLOAD = "upload"
    DRAFT = "draft"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ChangeSet:
    content_changed: bool
    metadata_changed: bool


def parse_draft_metadata(raw: Optional[list]) -> List[CustomMetadataItem]:
    """Validate the stored draft metadata list (empty when unset)."""
    if not raw:
        return []
    return _METADATA_LIST.validate_python(raw)


def serialize_draft_metadata(items: Optional[List[CustomMetadataItem]]) -> Optional[list]:
    if items is None:
        return None
    return _METADATA_LIST.dump_python(items, mode="json")


def draft_description_value(draft_description: Optional[str]) -> Optional[str]:
    """Description a draft would publish. An empty string means 'clear'."""
    return draft_description or None


def properties_changed(document: Document, working_copy: DocumentWorkingCopy) -> bool:
    """Whether any staged property differs from the published document.

    A draft field of None means untouched.
    """
    if working_copy.draft_name is not None and working_copy.draft_name != document.name:
        return True
    if (
        working_copy.draft_description is not None
        and draft_description_value(working_copy.draft_description) != document.description
    ):
        return True
    for draft_attr, document_attr in (
        ("draft_classification_id", "classification_id"),
        ("draft_importance_id", "importance_id"),
        ("draft_document_type_id", "document_type_id"),
    ):
        draft_value = getattr(working_copy, draft_attr)
        if draft_value is not None and draft_value != getattr(document, document_attr):
            return True
    return False


def detect_changes(
    document: Document,
    working_copy: DocumentWorkingCopy,
    has_upload: bool,
) -> ChangeSet:
    """Step 1: content changed if a new stream or a draft blob exists;
    metadata changed if a property differs or draft custom metadata exists."""
    content_changed = has_upload or bool(working_copy.draft_storage_path)
    metadata_changed = properties_changed(document, working_copy) or bool(working_copy.draft_metadata_json)
    return ChangeSet(content_changed=content_changed, metadata_changed=metadata_changed)


def resolve_content_source(working_copy: DocumentWorkingCopy, has_upload: bool) -> ContentSource:
    """Step 2: a check-in upload beats the draft blob, which beats no change."""
    if has_upload:
        return ContentSource.UPLOAD
    if working_copy.draft_storage_path:
        return ContentSource.DRAFT
    return ContentSource.UNCHANGED


def apply_draft_properties(document: Document, working_copy: DocumentWorkingCopy) -> None:
    """Step 3: merge staged properties onto the document."""
    if working_copy.draft_name:
        document.name = working_copy.draft_name
    if working_copy.draft_description is not None:
        document.description = draft_description_value(working_copy.draft_description)
    if working_copy.draft_classification_id is not None:
        document.classification_id = working_copy.draft_classification_id
    if working_copy.draft_importance_id is not None:
        document.importance_id = working_copy.draft_importance_id
    if working_copy.draft_document_type_id is not None:
        document.document_type_id = working_copy.draft_document_type_id


def extension_of(file_name: Optional[str]) -> Optional[str]:
    if not file_name:
        return None
    suffix = Path(file_name).suffix.lower()
    return suffix or None


def reset_working_copy(working_copy: DocumentWorkingCopy, now: datetime) -> None:
    """Step 4 (keep checked out): empty the draft for a new edit session."""
    working_copy.draft_storage_path = None
    working_copy.draft_size = None
    working_copy.draft_content_type = None
    working_copy.draft_original_file_name = None
    working_copy.draft_integrity_hash = None
    working_copy.draft_metadata_json = None
    working_copy.draft_name = None
    working_copy.draft_description = None
    working_copy.draft_classification_id = None
    working_copy.draft_importance_id = None
    working_copy.draft_document_type_id = None
    working_copy.last_modified_at = now
