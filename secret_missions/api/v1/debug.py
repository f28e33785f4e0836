# secret_missions/api/v1/debug.py

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...api.deps import get_db_dep
from ...core.config import settings
from ...db import Base, engine, init_db
from ...schemas.game import ModeLiteral
from ...services.mission_assignment import distribute_missions_if_ready
from ...services.room_code import create_game_with_unique_code
from ...services.storage import GameStorage

router = APIRouter(prefix="/debug", tags=["debug"])


class DebugSeedRequest(BaseModel):
    mode: ModeLiteral = "online"
    player_names: list[str] | None = None
    player_count: int | None = None
    submit_missions: bool = True


@router.post("/reset_and_seed")
def reset_and_seed(
    data: DebugSeedRequest,
    db: Session = Depends(get_db_dep),
):
    """
    ★開発専用★ DB を作り直し、ロビーとプレイヤーを一気に用意する。
    submit_missions=True なら全員分のミッションを提出して配布まで進める。
    """
    # DB 全消し（開発専用）
    db.close()
    Base.metadata.drop_all(bind=engine)
    init_db()

    # 参加者名を決定（先頭が司会）
    if data.player_names:
        names = data.player_names
    else:
        count = data.player_count or 4
        names = [f"Player{i+1}" for i in range(count)]

    storage = GameStorage(db)
    game = create_game_with_unique_code(
        storage, data.mode, settings.DEFAULT_TIMER_MINUTES
    )

    players = []
    for idx, name in enumerate(names):
        player = storage.create_player(game.id, name=name, is_host=(idx == 0))
        players.append(player)
    storage.set_game_host(game.id, players[0].id)

    if data.submit_missions:
        for player in players:
            storage.create_mission(game.id, player.id, f"Mission from {player.name}")
        distribute_missions_if_ready(storage, game.id)

    game = storage.get_game(game.id)
    return {
        "game_id": game.id,
        "room_code": game.room_code,
        "status": game.status,
        "player_ids": [p.id for p in players],
    }
