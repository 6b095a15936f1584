"""Repositories for the records core"""

from .classification_repository import ClassificationRepository
from .document_repository import DocumentRepository
from .legal_hold_repository import DocumentLegalHoldQuery
from .retention_policy_repository import RetentionPolicyRepository

__all__ = [
    "ClassificationRepository",
    "DocumentRepository",
    "DocumentLegalHoldQuery",
    "RetentionPolicyRepository",
]
