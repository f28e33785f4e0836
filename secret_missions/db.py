# secret_missions/db.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from .core.config import settings

DATABASE_URL = settings.DATABASE_URL

_connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    _connect_args = {"check_same_thread": False}  # SQLite用

engine = create_engine(DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        """
        SQLite は接続ごとに外部キー制約を有効化しないと ON DELETE CASCADE が効かない。
        """
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db() -> None:
    """モデルからテーブル作成（開発用）"""
    from . import models  # noqa: F401  Base にモデルを登録

    Base.metadata.create_all(bind=engine)
