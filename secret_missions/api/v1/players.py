# secret_missions/api/v1/players.py

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ...api.deps import get_broadcaster, get_storage
from ...schemas.action import PlayerActionRequest
from ...schemas.player import PlayerEnvelope, PlayerOut
from ...services.actions import apply_player_action
from ...services.broadcaster import Broadcaster
from ...services.storage import GameStorage

router = APIRouter(prefix="/players", tags=["players"])


def _player(storage: GameStorage, player_id: str) -> PlayerEnvelope:
    player = storage.get_player(player_id)
    return PlayerEnvelope(player=PlayerOut.model_validate(player))


@router.get("/{player_id}", response_model=PlayerEnvelope)
async def get_player(
    player_id: str,
    storage: GameStorage = Depends(get_storage),
):
    return await run_in_threadpool(_player, storage, player_id)


def _apply_action(
    storage: GameStorage, player_id: str, data: PlayerActionRequest
) -> tuple[PlayerOut, list[PlayerOut] | None]:
    outcome = apply_player_action(
        storage,
        player_id,
        data.action,
        guessing_player_id=data.guessing_player_id,
    )
    player_out = PlayerOut.model_validate(outcome.player)
    if not outcome.game_ended:
        return player_out, None
    return player_out, [PlayerOut.model_validate(p) for p in outcome.players]


@router.post("/{player_id}/action", response_model=PlayerEnvelope)
async def player_action(
    player_id: str,
    data: PlayerActionRequest,
    storage: GameStorage = Depends(get_storage),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """
    プレイヤーへのアクション。
    - 更新後のプレイヤーを player_updated で必ず通知
    - 生存者が1人以下になったら game_ended も通知
    """
    player_out, final_players = await run_in_threadpool(
        _apply_action, storage, player_id, data
    )
    game_id = player_out.game_id

    await broadcaster.broadcast_to_game(
        storage, game_id, "player_updated", {"player": player_out}
    )

    if final_players is not None:
        await broadcaster.broadcast_to_game(
            storage, game_id, "game_ended", {"players": final_players}
        )

    return PlayerEnvelope(player=player_out)
