# secret_missions/models/game.py
from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    ForeignKey,
    DateTime,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from ..db import Base

GAME_MODES = ("local", "online")

STATUS_LOBBY = "lobby"
STATUS_PLAYING = "playing"
STATUS_FINISHED = "finished"

# lobby → playing → finished の順にしか進まない
STATUS_ORDER = {
    STATUS_LOBBY: 0,
    STATUS_PLAYING: 1,
    STATUS_FINISHED: 2,
}


def utcnow() -> datetime:
    """DB には naive な UTC で保存する"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Game(Base):
    __tablename__ = "games"

    id = Column(String, primary_key=True)
    room_code = Column(String(6), nullable=False, unique=True, index=True)
    mode = Column(String, nullable=False)  # 'local' or 'online'
    status = Column(String, nullable=False, default=STATUS_LOBBY)

    # 司会（作成者）の Player.id
    host_id = Column(String, nullable=True)

    timer_duration = Column(Integer, nullable=False, default=30)  # 分
    timer_started_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    finished_at = Column(DateTime, nullable=True)

    players = relationship(
        "Player",
        back_populates="game",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Player.order_no",
    )
    missions = relationship(
        "Mission",
        back_populates="game",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Player(Base):
    __tablename__ = "players"

    id = Column(String, primary_key=True)
    game_id = Column(
        String, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name = Column(String, nullable=False)
    avatar = Column(Text, nullable=True)

    # 最後に登録されたリアルタイム接続ID（古くなっている可能性あり）
    socket_id = Column(String, nullable=True)

    lives = Column(Integer, nullable=False, default=3)
    points = Column(Integer, nullable=False, default=0)

    is_host = Column(Boolean, nullable=False, default=False)
    is_eliminated = Column(Boolean, nullable=False, default=False)
    mission_completed = Column(Boolean, nullable=False, default=False)

    order_no = Column(Integer, nullable=False, default=0)
    joined_at = Column(DateTime, default=utcnow, nullable=False)

    game = relationship("Game", back_populates="players")


class Mission(Base):
    __tablename__ = "missions"

    id = Column(String, primary_key=True)
    game_id = Column(
        String, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )

    entered_by = Column(
        String, ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    # 配布前は NULL。Player からは assigned_to で問い合わせる（直接参照は持たない）
    assigned_to = Column(
        String, ForeignKey("players.id", ondelete="CASCADE"), nullable=True, index=True
    )

    mission_text = Column(Text, nullable=False)
    is_revealed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    game = relationship("Game", back_populates="missions")

    # 1人1ミッションまで
    __table_args__ = (
        UniqueConstraint("game_id", "entered_by", name="uq_mission_one_per_player"),
    )
