from .base import Base, JSONType
from .profile import FounderProfile, BuilderProfile
from .opening import Opening
from .scenario import ScenarioResponse
from .match import Match

__all__ = [
    'Base',
    'JSONType',
    'FounderProfile',
    'BuilderProfile',
    'Opening',
    'ScenarioResponse',
    'Match',
]
