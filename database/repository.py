import logging

from sqlalchemy.orm import Session

from database.repositories import ProfileRepository, MatchRepository

logger = logging.getLogger(__name__)


class MatchingRepository:
    """Session-bound facade over the profile (read-only) and match repositories."""

    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileRepository(db)
        self.matches = MatchRepository(db)
