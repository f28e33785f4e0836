"""
ミッション配布エンジン

全員がミッションを提出したら、シャッフルして「自分が書いたミッション以外」を
1人1つずつ割り当て、ゲームを playing に進める。
"""

import logging
import random
from typing import Optional, Sequence

from ..core.config import settings
from ..models.game import Mission, Player
from ..schemas.mission import MissionAssignment
from .storage import GameStorage

logger = logging.getLogger(__name__)


def shuffle_missions(
    missions: Sequence[Mission], rng: Optional[random.Random] = None
) -> list[Mission]:
    """
    Fisher–Yates シャッフル（末尾から走査し、i 以下の位置と交換）。
    元のシーケンスは変更しない。
    """
    rng = rng or random
    shuffled = list(missions)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def pair_missions(
    players: Sequence[Player], shuffled: Sequence[Mission]
) -> list[tuple[Player, Mission]]:
    """
    参加順に players[i] と shuffled[i] を組ませる。

    - 自分が書いたミッション、または既に誰かに割り当てたミッションなら
      (i+1) % n, (i+2) % n ... と前方に探す
    - 残りが自分のミッションだけ（最後の1人でのみ起こる）なら、
      先に割り当て済みのプレイヤーと交換する

    1人1ミッションが提出されていれば、結果は必ず自己割り当てのない全単射になる。
    """
    n = len(shuffled)
    if len(players) != n:
        raise ValueError("players and missions must have the same length")

    assigned: list[Optional[int]] = [None] * n
    used: set[int] = set()

    for i, player in enumerate(players):
        chosen = None
        for step in range(n):
            idx = (i + step) % n
            if idx in used:
                continue
            if shuffled[idx].entered_by != player.id:
                chosen = idx
                break

        if chosen is None:
            # 残っているのは自分のミッションだけ
            own_idx = next(idx for idx in range(n) if idx not in used)
            swap_with = None
            for k in range(i):
                their_idx = assigned[k]
                if (
                    shuffled[their_idx].entered_by != player.id
                    and shuffled[own_idx].entered_by != players[k].id
                ):
                    swap_with = k
                    break

            if swap_with is None:
                # 1人ゲームなど、自己割り当てを避けられない
                logger.warning(
                    "Player %s could not avoid their own mission", player.id
                )
                chosen = own_idx
            else:
                chosen = assigned[swap_with]
                assigned[swap_with] = own_idx
                used.add(own_idx)
                used.discard(chosen)

        assigned[i] = chosen
        used.add(chosen)

    return [(players[i], shuffled[assigned[i]]) for i in range(n)]


def distribute_missions_if_ready(
    storage: GameStorage,
    game_id: str,
    rng: Optional[random.Random] = None,
) -> Optional[list[MissionAssignment]]:
    """
    ミッション提出のたびに呼ばれる。

    - 提出数 != 参加人数、または人数が下限未満 → None（まだ待つ）
    - 既に配布済み（status が lobby でない） → None
    - それ以外 → 割り当てを保存し、ゲームを playing にして割り当て一覧を返す
    """
    players = storage.list_players_by_game(game_id)
    missions = storage.list_missions_by_game(game_id)

    if len(missions) != len(players):
        return None
    if len(players) < settings.MIN_PLAYERS_FOR_DISTRIBUTION:
        logger.info(
            "Game %s has %d player(s); waiting for more before distributing",
            game_id,
            len(players),
        )
        return None

    # ★ 先に lobby → playing を確定させる（二重配布防止）
    if not storage.claim_distribution(game_id):
        logger.info("Missions for game %s were already distributed", game_id)
        return None

    shuffled = shuffle_missions(missions, rng)
    pairs = pair_missions(players, shuffled)

    assignments: list[MissionAssignment] = []
    for player, mission in pairs:
        storage.assign_mission(mission.id, player.id)
        assignments.append(
            MissionAssignment(player_id=player.id, mission_id=mission.id)
        )

    logger.info("Distributed %d missions in game %s", len(assignments), game_id)
    return assignments
