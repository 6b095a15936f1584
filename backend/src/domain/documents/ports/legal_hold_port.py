"""Legal hold query port.

Legal-hold case management lives outside the records core; the core only
asks whether a document is currently held.
"""

from abc import ABC, abstractmethod
from uuid import UUID


class LegalHoldQueryPort(ABC):
    """Answers whether a document is under an active legal hold."""

    @abstractmethod
    def is_on_hold(self, document_id: UUID) -> bool:
        pass
