# secret_missions/api/deps.py

from collections.abc import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from secret_missions.db import SessionLocal
from secret_missions.services.broadcaster import Broadcaster
from secret_missions.services.storage import GameStorage


def get_db_dep() -> Generator[Session, None, None]:
    """
    FastAPI の Depends で使う DB セッション依存関数。
    エンドポイント側では `db: Session = Depends(get_db_dep)` で利用。
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_storage(db: Session = Depends(get_db_dep)) -> GameStorage:
    return GameStorage(db)


def get_broadcaster(request: Request) -> Broadcaster:
    """lifespan で app.state に作った Broadcaster を返す"""
    return request.app.state.broadcaster
