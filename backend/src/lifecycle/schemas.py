"""Pydantic schemas for lifecycle operations"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from domain.documents.document_state import DocumentState


class AllowedTransition(BaseModel):
    """A transition the caller may select for a document"""
    model_config = ConfigDict(frozen=True)

    to_state: DocumentState
    requires_classification: bool = False
    requires_retention_policy: bool = False
    requires_approval: bool = False
    required_role: Optional[str] = None
    description: Optional[str] = None
