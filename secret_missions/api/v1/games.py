# secret_missions/api/v1/games.py

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ...api.deps import get_broadcaster, get_storage
from ...core.config import settings
from ...errors import ConflictError, ValidationError
from ...models.game import Game, Player, STATUS_LOBBY, utcnow
from ...schemas.game import (
    GameCreate,
    GameCreateOut,
    GameEndOut,
    GameJoin,
    GameJoinOut,
    GameLobbyOut,
    GameOut,
    GameResultsOut,
    GameStateOut,
    GameTimerOut,
    StandingItem,
)
from ...schemas.mission import MissionOut
from ...schemas.player import PlayerOut
from ...services.actions import end_game
from ...services.broadcaster import Broadcaster
from ...services.room_code import create_game_with_unique_code
from ...services.storage import GameStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])

# DB アクセスは同期なので run_in_threadpool に逃がし、イベントループでは配信だけ await する


# -----------------------------
# 🎮 ゲーム作成（司会プレイヤーも同時に作る）
# -----------------------------
def _create_game_with_host(storage: GameStorage, payload: GameCreate) -> GameCreateOut:
    timer_duration = payload.timer_duration or settings.DEFAULT_TIMER_MINUTES
    game = create_game_with_unique_code(storage, payload.mode, timer_duration)

    host = storage.create_player(
        game.id,
        name=payload.host_name,
        avatar=payload.host_avatar,
        is_host=True,
    )
    storage.set_game_host(game.id, host.id)
    game = storage.get_game(game.id)

    logger.info("Game %s created with room code %s", game.id, game.room_code)
    return GameCreateOut(
        game=GameOut.model_validate(game),
        player=PlayerOut.model_validate(host),
        room_code=game.room_code,
    )


@router.post("/create", response_model=GameCreateOut)
async def create_game(
    payload: GameCreate,
    storage: GameStorage = Depends(get_storage),
):
    return await run_in_threadpool(_create_game_with_host, storage, payload)


# -----------------------------
# 🚪 ルームコードで参加
# -----------------------------
def _join_lobby(storage: GameStorage, payload: GameJoin) -> GameJoinOut:
    game = storage.get_game_by_room_code(payload.room_code)

    if game.status != STATUS_LOBBY:
        raise ValidationError("Game already started")

    if storage.count_players(game.id) >= settings.MAX_PLAYERS:
        raise ConflictError("Game is full")

    player = storage.create_player(
        game.id,
        name=payload.player_name,
        avatar=payload.player_avatar,
        is_host=False,
    )

    logger.info("Player %s joined game %s", player.id, game.id)
    return GameJoinOut(
        game=GameOut.model_validate(game),
        player=PlayerOut.model_validate(player),
    )


@router.post("/join", response_model=GameJoinOut)
async def join_game(
    payload: GameJoin,
    storage: GameStorage = Depends(get_storage),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    joined = await run_in_threadpool(_join_lobby, storage, payload)

    # 既存プレイヤーへ通知
    await broadcaster.broadcast_to_game(
        storage,
        joined.game.id,
        "player_joined",
        {"player": joined.player, "game": joined.game},
    )
    return joined


# -----------------------------
# 🔍 ルームコードからロビー情報取得
# -----------------------------
def _lobby_by_room_code(storage: GameStorage, room_code: str) -> GameLobbyOut:
    game = storage.get_game_by_room_code(room_code)
    players = storage.list_players_by_game(game.id)
    return GameLobbyOut(
        game=GameOut.model_validate(game),
        players=[PlayerOut.model_validate(p) for p in players],
    )


@router.get("/code/{room_code}", response_model=GameLobbyOut)
async def get_game_by_room_code(
    room_code: str,
    storage: GameStorage = Depends(get_storage),
):
    return await run_in_threadpool(_lobby_by_room_code, storage, room_code)


# -----------------------------
# 🔍 ゲーム情報取得（状態の取り直し用）
# -----------------------------
def _game_state(storage: GameStorage, game_id: str) -> GameStateOut:
    game = storage.get_game(game_id)
    players = storage.list_players_by_game(game.id)
    missions = storage.list_missions_by_game(game.id)
    return GameStateOut(
        game=GameOut.model_validate(game),
        players=[PlayerOut.model_validate(p) for p in players],
        missions=[MissionOut.model_validate(m) for m in missions],
    )


@router.get("/{game_id}", response_model=GameStateOut)
async def get_game(
    game_id: str,
    storage: GameStorage = Depends(get_storage),
):
    return await run_in_threadpool(_game_state, storage, game_id)


def _remaining_seconds(game: Game, now: datetime | None = None) -> int | None:
    """
    タイマー残り秒数。
    - 開始前（timer_started_at なし）は None
    - 時間切れ後は 0
    """
    if game.timer_started_at is None:
        return None
    now = now or utcnow()
    elapsed = (now - game.timer_started_at).total_seconds()
    return max(0, int(game.timer_duration * 60 - elapsed))


def _timer_state(storage: GameStorage, game_id: str) -> GameTimerOut:
    game = storage.get_game(game_id)
    remaining = _remaining_seconds(game)
    return GameTimerOut(
        game_id=game.id,
        status=game.status,
        timer_duration=game.timer_duration,
        timer_started_at=game.timer_started_at,
        remaining_seconds=remaining,
        expired=remaining == 0,
    )


@router.get("/{game_id}/timer", response_model=GameTimerOut)
async def get_game_timer(
    game_id: str,
    storage: GameStorage = Depends(get_storage),
):
    """
    ゲームタイマーの状態を返すAPI。
    残り 0 秒になってもステータスは変えない（終了はクライアントが /end を呼ぶ）。
    """
    return await run_in_threadpool(_timer_state, storage, game_id)


def _build_standings(players: list[Player]) -> tuple[list[StandingItem], list[str]]:
    """
    ポイント降順（同点なら生存者が先）に並べた順位表と、勝者（最多ポイント）の ID 一覧を返す。
    同点は同順位。
    """
    ordered = sorted(players, key=lambda p: (-p.points, p.is_eliminated, p.order_no))
    top_points = ordered[0].points if ordered else None

    items: list[StandingItem] = []
    rank = 0
    prev_points = None
    for position, p in enumerate(ordered, start=1):
        if p.points != prev_points:
            rank = position
            prev_points = p.points

        if p.points == top_points:
            result = "winner"
        elif not p.is_eliminated:
            result = "survivor"
        else:
            result = "eliminated"

        items.append(
            StandingItem(rank=rank, result=result, player=PlayerOut.model_validate(p))
        )

    winner_ids = [p.id for p in ordered if p.points == top_points]
    return items, winner_ids


def _results(storage: GameStorage, game_id: str) -> GameResultsOut:
    game = storage.get_game(game_id)
    players = storage.list_players_by_game(game.id)
    standings, winner_ids = _build_standings(players)
    return GameResultsOut(
        game_id=game.id,
        status=game.status,
        standings=standings,
        winner_ids=winner_ids,
    )


@router.get("/{game_id}/results", response_model=GameResultsOut)
async def get_game_results(
    game_id: str,
    storage: GameStorage = Depends(get_storage),
):
    return await run_in_threadpool(_results, storage, game_id)


# -----------------------------
# 🏁 ゲーム強制終了（司会／タイマー）
# -----------------------------
def _finish(storage: GameStorage, game_id: str) -> list[PlayerOut]:
    _game, players = end_game(storage, game_id)
    return [PlayerOut.model_validate(p) for p in players]


@router.post("/{game_id}/end", response_model=GameEndOut)
async def end_game_endpoint(
    game_id: str,
    storage: GameStorage = Depends(get_storage),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    players = await run_in_threadpool(_finish, storage, game_id)
    await broadcaster.broadcast_to_game(
        storage, game_id, "game_ended", {"players": players}
    )
    return GameEndOut(success=True)
