"""Pydantic schemas for the checkout protocol"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import BinaryIO, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.versioning.numbering import CheckInType


class CustomMetadataItem(BaseModel):
    """One typed custom metadata value staged in a working copy"""
    field_id: UUID
    field_name: str = Field(..., min_length=1, max_length=200)
    content_type_id: Optional[UUID] = None
    value: Optional[str] = None
    numeric_value: Optional[Decimal] = None
    date_value: Optional[datetime] = None


class SaveWorkingCopyRequest(BaseModel):
    """Partial update of a working copy.

    Only fields present in the request are applied. For ``description`` an
    explicit null clears the description at check-in, while an absent field
    leaves the draft untouched. ``model_fields_set`` carries that presence.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    classification_id: Optional[UUID] = None
    importance_id: Optional[UUID] = None
    document_type_id: Optional[UUID] = None
    custom_metadata: Optional[List[CustomMetadataItem]] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("name must not be blank")
        return v.strip() if v is not None else v


class CheckInSpec(BaseModel):
    """Options of a check-in"""
    check_in_type: CheckInType = CheckInType.MINOR
    comment: Optional[str] = Field(None, max_length=2000)
    change_description: Optional[str] = Field(None, max_length=2000)
    keep_checked_out: bool = False


@dataclass
class UploadedContent:
    """A file supplied directly at check-in or for the draft slot"""
    stream: BinaryIO
    file_name: str
    content_type: Optional[str] = None


class WorkingCopyView(BaseModel):
    """Owner view of a working copy"""
    document_id: UUID
    checked_out_by: UUID
    checked_out_at: datetime
    draft_name: Optional[str] = None
    draft_description: Optional[str] = None
    draft_classification_id: Optional[UUID] = None
    draft_importance_id: Optional[UUID] = None
    draft_document_type_id: Optional[UUID] = None
    draft_content_type: Optional[str] = None
    draft_original_file_name: Optional[str] = None
    draft_size: Optional[int] = None
    has_draft_file: bool = False
    has_unsaved_changes: bool = False
    custom_metadata: List[CustomMetadataItem] = Field(default_factory=list)
    last_modified_at: Optional[datetime] = None


class StaleCheckout(BaseModel):
    """A checkout older than the stale threshold"""
    document_id: UUID
    document_name: str
    checked_out_by: Optional[UUID]
    checked_out_at: datetime
    hours_checked_out: float
