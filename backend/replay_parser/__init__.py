from .parser import RoflParser, RoflHeader, RoflHeaderError, ReplayRecord, Participant, GameEvent
from .generator import ReplayGenerator, generate_replay

__all__ = [
    "RoflParser",
    "RoflHeader",
    "RoflHeaderError",
    "ReplayRecord",
    "Participant",
    "GameEvent",
    "ReplayGenerator",
    "generate_replay",
]
