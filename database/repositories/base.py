from typing import Any

from sqlalchemy.orm import Session

from core.matching.exceptions import NotFoundError


class BaseRepository:
    """Session-bound repository. Transactions are owned by matching_uow."""

    def __init__(self, db: Session):
        self.db = db

    def _one_or_not_found(self, stmt, message: str) -> Any:
        """Execute stmt and return its single row, raising NotFoundError if absent."""
        row = self.db.execute(stmt).scalar_one_or_none()
        if row is None:
            raise NotFoundError(message)
        return row
