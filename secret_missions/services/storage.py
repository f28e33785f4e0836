"""
エンティティストア

Game / Player / Mission / User の CRUD をまとめたクラス。
1メソッド = 1行の更新 + commit。失敗はそのまま呼び出し元へ返し、再試行はしない。
"""

import logging
import uuid
from functools import wraps
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..errors import ConflictError, NotFoundError, UnavailableError
from ..models.game import (
    Game,
    Mission,
    Player,
    STATUS_FINISHED,
    STATUS_LOBBY,
    STATUS_ORDER,
    STATUS_PLAYING,
    utcnow,
)
from ..models.user import User

logger = logging.getLogger(__name__)


def _storage_call(method):
    """接続系の例外を UnavailableError に変換する"""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except OperationalError as e:
            self.db.rollback()
            logger.error("Storage unavailable in %s: %s", method.__name__, e)
            raise UnavailableError("Storage is unavailable") from e

    return wrapper


class GameStorage:
    """1リクエスト分の Session を包むストア"""

    def __init__(self, db: Session):
        self.db = db

    def _commit_or_conflict(self, message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(message) from e

    # -----------------------------
    # 👤 ユーザー
    # -----------------------------
    @_storage_call
    def create_user(self, username: str, password: str) -> User:
        user = User(id=str(uuid.uuid4()), username=username, password=password)
        self.db.add(user)
        self._commit_or_conflict("Username already taken")
        self.db.refresh(user)
        return user

    @_storage_call
    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    @_storage_call
    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    # -----------------------------
    # 🎮 ゲーム
    # -----------------------------
    @_storage_call
    def create_game(self, room_code: str, mode: str, timer_duration: int) -> Game:
        game = Game(
            id=str(uuid.uuid4()),
            room_code=room_code,
            mode=mode,
            status=STATUS_LOBBY,
            timer_duration=timer_duration,
        )
        self.db.add(game)
        self._commit_or_conflict("Room code already in use")
        self.db.refresh(game)
        return game

    @_storage_call
    def get_game(self, game_id: str) -> Game:
        game = self.db.get(Game, game_id)
        if not game:
            raise NotFoundError("Game not found")
        return game

    @_storage_call
    def find_game_by_room_code(self, room_code: str) -> Optional[Game]:
        return self.db.query(Game).filter(Game.room_code == room_code).first()

    def get_game_by_room_code(self, room_code: str) -> Game:
        game = self.find_game_by_room_code(room_code)
        if not game:
            raise NotFoundError("Game not found")
        return game

    @_storage_call
    def set_game_host(self, game_id: str, player_id: str) -> None:
        game = self.get_game(game_id)
        game.host_id = player_id
        self.db.commit()

    @_storage_call
    def update_game_status(self, game_id: str, status: str) -> Game:
        """
        ステータス更新。lobby → playing → finished の後戻りは ConflictError。
        同じステータスへの更新はそのまま成功扱い。
        """
        if status not in STATUS_ORDER:
            raise ValueError(f"unknown game status: {status}")

        game = self.get_game(game_id)
        if STATUS_ORDER[status] < STATUS_ORDER[game.status]:
            raise ConflictError(
                f"Cannot move game from {game.status} back to {status}"
            )

        if game.status != status:
            game.status = status
            if status == STATUS_PLAYING and game.timer_started_at is None:
                game.timer_started_at = utcnow()
            if status == STATUS_FINISHED:
                game.finished_at = utcnow()
            self.db.commit()
            self.db.refresh(game)
        return game

    @_storage_call
    def claim_distribution(self, game_id: str) -> bool:
        """
        lobby → playing の条件付き UPDATE。
        同時に2つの提出が「全員提出済み」を観測しても、勝つのは1つだけ。
        """
        result = self.db.execute(
            update(Game)
            .where(Game.id == game_id, Game.status == STATUS_LOBBY)
            .values(status=STATUS_PLAYING, timer_started_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        # commit で既存の Game インスタンスは expire されるので、次の参照で再読込される
        self.db.commit()
        return result.rowcount == 1

    @_storage_call
    def delete_game(self, game_id: str) -> None:
        game = self.get_game(game_id)
        self.db.delete(game)
        self.db.commit()

    # -----------------------------
    # 🧑 プレイヤー
    # -----------------------------
    @_storage_call
    def create_player(
        self,
        game_id: str,
        name: str,
        avatar: Optional[str] = None,
        is_host: bool = False,
    ) -> Player:
        self.get_game(game_id)
        order_no = self.count_players(game_id) + 1
        player = Player(
            id=str(uuid.uuid4()),
            game_id=game_id,
            name=name,
            avatar=avatar,
            lives=settings.DEFAULT_LIVES,
            points=0,
            is_host=is_host,
            is_eliminated=False,
            mission_completed=False,
            order_no=order_no,
        )
        self.db.add(player)
        self.db.commit()
        self.db.refresh(player)
        return player

    @_storage_call
    def get_player(self, player_id: str) -> Player:
        player = self.db.get(Player, player_id)
        if not player:
            raise NotFoundError("Player not found")
        return player

    @_storage_call
    def find_player(self, player_id: str) -> Optional[Player]:
        return self.db.get(Player, player_id)

    @_storage_call
    def list_players_by_game(self, game_id: str) -> list[Player]:
        """参加順（order_no, joined_at）で返す"""
        return (
            self.db.query(Player)
            .filter(Player.game_id == game_id)
            .order_by(Player.order_no.asc(), Player.joined_at.asc())
            .all()
        )

    @_storage_call
    def count_players(self, game_id: str) -> int:
        return (
            self.db.query(func.count(Player.id))
            .filter(Player.game_id == game_id)
            .scalar()
        )

    def _update_player(self, player_id: str, **values) -> Player:
        player = self.get_player(player_id)
        for key, value in values.items():
            setattr(player, key, value)
        self.db.commit()
        self.db.refresh(player)
        return player

    @_storage_call
    def update_player_socket_id(self, player_id: str, socket_id: Optional[str]) -> Player:
        return self._update_player(player_id, socket_id=socket_id)

    @_storage_call
    def update_player_lives(self, player_id: str, lives: int) -> Player:
        return self._update_player(player_id, lives=lives)

    @_storage_call
    def update_player_points(self, player_id: str, points: int) -> Player:
        return self._update_player(player_id, points=points)

    @_storage_call
    def eliminate_player(self, player_id: str) -> Player:
        return self._update_player(player_id, is_eliminated=True)

    @_storage_call
    def mark_mission_completed(self, player_id: str) -> Player:
        return self._update_player(player_id, mission_completed=True)

    # -----------------------------
    # 📜 ミッション
    # -----------------------------
    @_storage_call
    def create_mission(self, game_id: str, entered_by: str, text: str) -> Mission:
        mission = Mission(
            id=str(uuid.uuid4()),
            game_id=game_id,
            entered_by=entered_by,
            mission_text=text,
            is_revealed=False,
        )
        self.db.add(mission)
        self._commit_or_conflict("Mission already submitted")
        self.db.refresh(mission)
        return mission

    @_storage_call
    def get_mission(self, mission_id: str) -> Mission:
        mission = self.db.get(Mission, mission_id)
        if not mission:
            raise NotFoundError("Mission not found")
        return mission

    @_storage_call
    def list_missions_by_game(self, game_id: str) -> list[Mission]:
        return (
            self.db.query(Mission)
            .filter(Mission.game_id == game_id)
            .order_by(Mission.created_at.asc())
            .all()
        )

    @_storage_call
    def count_missions(self, game_id: str) -> int:
        return (
            self.db.query(func.count(Mission.id))
            .filter(Mission.game_id == game_id)
            .scalar()
        )

    @_storage_call
    def assign_mission(self, mission_id: str, player_id: str) -> Mission:
        mission = self.get_mission(mission_id)
        mission.assigned_to = player_id
        self.db.commit()
        self.db.refresh(mission)
        return mission

    @_storage_call
    def reveal_mission(self, mission_id: str) -> Mission:
        mission = self.get_mission(mission_id)
        mission.is_revealed = True
        self.db.commit()
        self.db.refresh(mission)
        return mission

    @_storage_call
    def get_mission_assigned_to(self, player_id: str) -> Optional[Mission]:
        return (
            self.db.query(Mission)
            .filter(Mission.assigned_to == player_id)
            .first()
        )
