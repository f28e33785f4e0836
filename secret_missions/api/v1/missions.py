# secret_missions/api/v1/missions.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ...api.deps import get_broadcaster, get_storage
from ...errors import ValidationError
from ...models.game import STATUS_LOBBY
from ...schemas.mission import (
    MissionAssignment,
    MissionEnvelope,
    MissionOut,
    MissionSubmit,
)
from ...services.broadcaster import Broadcaster
from ...services.mission_assignment import distribute_missions_if_ready
from ...services.storage import GameStorage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/missions",
    tags=["missions"],
)


# -----------------------------
# 📝 ミッション提出（全員揃ったら配布）
# -----------------------------
def _submit_and_distribute(
    storage: GameStorage, data: MissionSubmit
) -> tuple[MissionOut, Optional[list[MissionAssignment]]]:
    # 1. ゲームとプレイヤーの存在チェック
    game = storage.get_game(data.game_id)
    player = storage.get_player(data.player_id)
    if player.game_id != game.id:
        raise ValidationError("Player is not in this game")

    if game.status != STATUS_LOBBY:
        raise ValidationError("Missions can only be submitted in the lobby")

    # 2. ミッション作成（同じプレイヤーの2回目は 409）
    mission = storage.create_mission(game.id, player.id, data.mission_text)
    mission_out = MissionOut.model_validate(mission)
    logger.info("Player %s submitted a mission in game %s", player.id, game.id)

    # 3. 全員分揃っていれば配布
    assignments = distribute_missions_if_ready(storage, game.id)
    return mission_out, assignments


@router.post("/submit", response_model=MissionEnvelope)
async def submit_mission(
    data: MissionSubmit,
    storage: GameStorage = Depends(get_storage),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    mission_out, assignments = await run_in_threadpool(
        _submit_and_distribute, storage, data
    )
    if assignments is not None:
        await broadcaster.broadcast_to_game(
            storage,
            mission_out.game_id,
            "missions_distributed",
            {"assignments": assignments},
        )

    return MissionEnvelope(mission=mission_out)


# -----------------------------
# 🎯 自分に割り当てられたミッション
# -----------------------------
def _assigned_mission(storage: GameStorage, player_id: str) -> MissionEnvelope:
    mission = storage.get_mission_assigned_to(player_id)
    if mission is None:
        return MissionEnvelope(mission=None)
    return MissionEnvelope(mission=MissionOut.model_validate(mission))


@router.get("/player/{player_id}", response_model=MissionEnvelope)
async def get_player_mission(
    player_id: str,
    storage: GameStorage = Depends(get_storage),
):
    return await run_in_threadpool(_assigned_mission, storage, player_id)
