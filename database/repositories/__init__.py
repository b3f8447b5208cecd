from database.repositories.base import BaseRepository
from database.repositories.profile import ProfileRepository
from database.repositories.match import MatchRepository, MatchFilter

__all__ = [
    'BaseRepository',
    'ProfileRepository',
    'MatchRepository',
    'MatchFilter',
]
