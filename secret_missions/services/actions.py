"""
アクション処理

プレイヤーへの4種類のアクション（eliminate / subtract_life / add_point /
mission_completed）を適用し、生存者数からゲーム終了を判定する。
ブロードキャストは呼び出し側（API 層）が ActionOutcome を見て行う。
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..errors import ConflictError, ValidationError
from ..models.game import Game, Player, STATUS_FINISHED
from .storage import GameStorage

logger = logging.getLogger(__name__)

ACTIONS = ("eliminate", "subtract_life", "add_point", "mission_completed")


@dataclass
class ActionOutcome:
    player: Player
    game_ended: bool = False
    players: list[Player] = field(default_factory=list)


def _eliminate(
    storage: GameStorage, player: Player, guessing_player_id: Optional[str]
) -> None:
    if player.is_eliminated:
        # 既に脱落済み → 何もしない（推理した側のポイントも二重に加算しない）
        logger.info("Player %s is already eliminated; ignoring", player.id)
        return

    storage.eliminate_player(player.id)

    if guessing_player_id:
        guesser = storage.find_player(guessing_player_id)
        if guesser is None or guesser.game_id != player.game_id:
            logger.warning(
                "Guessing player %s not found in game %s; no point awarded",
                guessing_player_id,
                player.game_id,
            )
        else:
            storage.update_player_points(guesser.id, guesser.points + 1)

    # 脱落者のミッションを公開
    mission = storage.get_mission_assigned_to(player.id)
    if mission is not None:
        storage.reveal_mission(mission.id)


def _subtract_life(storage: GameStorage, player: Player) -> None:
    new_lives = max(0, player.lives - 1)
    storage.update_player_lives(player.id, new_lives)

    # ライフ 0 で自動脱落（推理者へのポイントはなし）
    if new_lives == 0 and not player.is_eliminated:
        storage.eliminate_player(player.id)


def _mission_completed(storage: GameStorage, player: Player) -> None:
    if player.is_eliminated:
        raise ValidationError("Eliminated player cannot complete a mission")
    if player.mission_completed:
        raise ConflictError("Mission already completed")

    storage.mark_mission_completed(player.id)
    storage.update_player_points(player.id, player.points + 1)


def judge_game_end(storage: GameStorage, game_id: str) -> tuple[bool, list[Player]]:
    """
    生存者（未脱落）が1人以下なら True。
    戻り値は (終了すべきか, 全プレイヤー一覧)。
    """
    players = storage.list_players_by_game(game_id)
    active = [p for p in players if not p.is_eliminated]
    return len(active) <= 1, players


def apply_player_action(
    storage: GameStorage,
    player_id: str,
    action: str,
    guessing_player_id: Optional[str] = None,
) -> ActionOutcome:
    """
    アクションを適用して、更新後のプレイヤーと終了判定を返す。
    司会かどうかのチェックはしない（UI 側の前提）。
    """
    player = storage.get_player(player_id)
    game_id = player.game_id

    if action == "eliminate":
        _eliminate(storage, player, guessing_player_id)
    elif action == "subtract_life":
        _subtract_life(storage, player)
    elif action == "add_point":
        storage.update_player_points(player.id, player.points + 1)
    elif action == "mission_completed":
        _mission_completed(storage, player)
    else:
        raise ValidationError(f"Unknown action: {action}")

    logger.info("Applied %s to player %s in game %s", action, player_id, game_id)

    updated = storage.get_player(player_id)
    outcome = ActionOutcome(player=updated)

    should_end, players = judge_game_end(storage, game_id)
    outcome.players = players

    game = storage.get_game(game_id)
    if should_end and game.status != STATUS_FINISHED:
        storage.update_game_status(game_id, STATUS_FINISHED)
        outcome.game_ended = True
        logger.info("Game %s finished: %d active player(s) left", game_id,
                    sum(1 for p in players if not p.is_eliminated))

    return outcome


def end_game(storage: GameStorage, game_id: str) -> tuple[Game, list[Player]]:
    """司会／タイマーによる強制終了。終了済みならそのまま。"""
    game = storage.update_game_status(game_id, STATUS_FINISHED)
    players = storage.list_players_by_game(game_id)
    logger.info("Game %s ended by request", game_id)
    return game, players
