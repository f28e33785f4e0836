"""
サービス層
"""

from .storage import GameStorage
from .broadcaster import Broadcaster, ConnectionRegistry

__all__ = ["GameStorage", "Broadcaster", "ConnectionRegistry"]
