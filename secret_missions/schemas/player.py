# secret_missions/schemas/player.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PlayerOut(BaseModel):
    """Player 行そのまま（キーは camelCase）"""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    game_id: str
    name: str
    avatar: Optional[str] = None
    socket_id: Optional[str] = None
    lives: int
    points: int
    is_host: bool
    is_eliminated: bool
    mission_completed: bool
    order_no: int
    joined_at: datetime


class PlayerEnvelope(BaseModel):
    player: PlayerOut
