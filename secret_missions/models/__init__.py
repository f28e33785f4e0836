from .user import User
from .game import Game, Player, Mission

__all__ = [
    "User",
    "Game",
    "Player",
    "Mission",
]
