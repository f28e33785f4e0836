"""
ルームコード生成
"""

import logging
import random

from ..core.config import settings
from ..errors import ConflictError, ResourceExhaustedError
from ..models.game import Game
from .storage import GameStorage

logger = logging.getLogger(__name__)

ROOM_CODE_LENGTH = 6


def generate_room_code() -> str:
    """100000〜999999 から一様に選んだ6桁の数字（一意性はストア側で保証）"""
    return str(random.randint(10 ** (ROOM_CODE_LENGTH - 1), 10**ROOM_CODE_LENGTH - 1))


def create_game_with_unique_code(
    storage: GameStorage,
    mode: str,
    timer_duration: int,
    attempts: int | None = None,
) -> Game:
    """
    ルームコードを生成してゲームを作成する。
    コードが衝突したら作り直し、attempts 回失敗したら ResourceExhaustedError。
    """
    if attempts is None:
        attempts = settings.ROOM_CODE_ATTEMPTS

    for attempt in range(1, attempts + 1):
        room_code = generate_room_code()
        try:
            return storage.create_game(room_code, mode, timer_duration)
        except ConflictError:
            logger.warning(
                "Room code %s collided (attempt %d/%d)", room_code, attempt, attempts
            )

    raise ResourceExhaustedError("Could not allocate a unique room code")
