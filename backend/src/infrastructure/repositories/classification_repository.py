"""Classification repository for database operations"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from models.classification import Classification

logger = logging.getLogger(__name__)


class ClassificationRepository:
    """Repository for the classification tree."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, classification_id: UUID) -> Optional[Classification]:
        return self.db.get(Classification, classification_id)

    def find_default_policy_id(self, classification_id: UUID) -> Optional[UUID]:
        """Walk from a classification up to the root.

        The first node (inclusive) carrying a default retention policy wins.
        A cycle in the parent chain ends the walk.

        Returns:
            Policy ID, or None if no node in the chain defines one
        """
        visited = set()
        current_id = classification_id
        while current_id is not None and current_id not in visited:
            visited.add(current_id)
            node = self.get_by_id(current_id)
            if node is None:
                return None
            if node.default_retention_policy_id is not None:
                return node.default_retention_policy_id
            current_id = node.parent_id

        if current_id is not None:
            logger.warning(
                f"Cycle in classification hierarchy at {current_id}",
                extra={"classification_id": str(classification_id)},
            )
        return None
