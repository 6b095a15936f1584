"""Typed operation results.

Business-rule rejections (not found, wrong owner, illegal transition, missing
precondition, hold conflicts) are returned as failed results and never raised.
Infrastructure and integrity failures are raised instead.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """Outcome of a service operation.

    Attributes:
        success: Whether the operation was applied
        data: Resulting entity or DTO on success
        error: Human-readable reason on failure, safe to show verbatim
        message: Optional human-readable success message
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[T] = None, message: Optional[str] = None) -> "ServiceResult[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str) -> "ServiceResult[T]":
        return cls(success=False, error=error)

    def __bool__(self) -> bool:
        return self.success
