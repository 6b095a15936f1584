"""Pydantic schemas and value objects for the version chain"""

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.versioning.metadata_diff import MetadataDiffItem
from domain.versioning.numbering import VersionNumbers


@dataclass
class NewVersion:
    """Everything needed to append one version row.

    The content pointer is always the authoritative content of the new
    version, even when the content did not change.
    """
    numbers: VersionNumbers
    storage_path: Optional[str]
    size: int
    integrity_hash: Optional[str]
    hash_algorithm: Optional[str]
    content_type: Optional[str]
    original_file_name: Optional[str]
    is_content_changed: bool
    is_metadata_changed: bool
    created_by: Optional[UUID] = None
    comment: Optional[str] = None
    change_description: Optional[str] = None


class RestoreSpec(BaseModel):
    """Which parts of a historical version a restore brings back.

    Content and metadata are restored independently.
    """
    restore_content: bool = True
    restore_metadata: bool = True
    comment: Optional[str] = Field(None, max_length=2000)


class VersionComparison(BaseModel):
    """Result of comparing two versions of the same document"""
    document_id: UUID
    source_version_id: UUID
    target_version_id: UUID
    source_label: str
    target_label: str
    content_changed: bool
    size_difference: int = Field(..., description="target size minus source size in bytes")
    metadata_changed: bool
    metadata_diffs: List[MetadataDiffItem] = Field(default_factory=list)
