"""SQLAlchemy models for the records core"""

from .base import Base, PortableJSONB
from .document import Document, DocumentMetadata
from .document_version import DocumentVersion, DocumentVersionMetadata
from .working_copy import DocumentWorkingCopy
from .lifecycle import StateTransitionRule, StateTransitionLog
from .classification import Classification
from .retention import (
    DocumentRetention,
    ExpirationAction,
    RetentionBasis,
    RetentionPolicy,
    RetentionStatus,
    RetentionTriggerEvent,
    RetentionTriggerLog,
    RetentionTriggerType,
)
from .activity_log import ActivityLog

__all__ = [
    "Base",
    "PortableJSONB",
    "Document",
    "DocumentMetadata",
    "DocumentVersion",
    "DocumentVersionMetadata",
    "DocumentWorkingCopy",
    "StateTransitionRule",
    "StateTransitionLog",
    "Classification",
    "RetentionPolicy",
    "RetentionBasis",
    "RetentionStatus",
    "RetentionTriggerType",
    "RetentionTriggerEvent",
    "RetentionTriggerLog",
    "DocumentRetention",
    "ExpirationAction",
    "ActivityLog",
]
