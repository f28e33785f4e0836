# secret_missions/schemas/game.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .mission import MissionOut
from .player import PlayerOut

ModeLiteral = Literal["local", "online"]
StatusLiteral = Literal["lobby", "playing", "finished"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class GameCreate(_CamelModel):
    """POST /api/games/create 用"""

    mode: ModeLiteral
    host_name: str = Field(min_length=1)
    host_avatar: Optional[str] = None
    timer_duration: Optional[int] = Field(default=None, gt=0)


class GameJoin(_CamelModel):
    """POST /api/games/join 用"""

    room_code: str = Field(min_length=1)
    player_name: str = Field(min_length=1)
    player_avatar: Optional[str] = None


class GameOut(_CamelModel):
    id: str
    room_code: str
    mode: ModeLiteral
    status: StatusLiteral
    host_id: Optional[str] = None
    timer_duration: int
    timer_started_at: Optional[datetime] = None
    created_at: datetime
    finished_at: Optional[datetime] = None


class GameCreateOut(_CamelModel):
    game: GameOut
    player: PlayerOut
    room_code: str


class GameJoinOut(_CamelModel):
    game: GameOut
    player: PlayerOut


class GameStateOut(_CamelModel):
    """GET /api/games/{game_id}：クライアントが状態を取り直すための完全な読み出し"""

    game: GameOut
    players: list[PlayerOut]
    missions: list[MissionOut]


class GameLobbyOut(_CamelModel):
    game: GameOut
    players: list[PlayerOut]


class GameTimerOut(_CamelModel):
    game_id: str
    status: StatusLiteral
    timer_duration: int
    timer_started_at: Optional[datetime] = None
    remaining_seconds: Optional[int] = None
    expired: bool


class StandingItem(_CamelModel):
    rank: int
    result: Literal["winner", "survivor", "eliminated"]
    player: PlayerOut


class GameResultsOut(_CamelModel):
    game_id: str
    status: StatusLiteral
    standings: list[StandingItem]
    winner_ids: list[str]


class GameEndOut(BaseModel):
    success: bool
