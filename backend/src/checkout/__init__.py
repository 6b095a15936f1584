"""Checkout / check-in protocol"""

from .manager import CheckoutManager
from .schemas import (
    CheckInSpec,
    CustomMetadataItem,
    SaveWorkingCopyRequest,
    StaleCheckout,
    UploadedContent,
    WorkingCopyView,
)

__all__ = [
    "CheckoutManager",
    "CheckInSpec",
    "CustomMetadataItem",
    "SaveWorkingCopyRequest",
    "StaleCheckout",
    "UploadedContent",
    "WorkingCopyView",
]
