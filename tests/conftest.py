# tests/conftest.py
import os

# アプリの engine が作られる前にテスト用 DB を指定しておく
os.environ.setdefault(
    "SECRET_MISSIONS_DATABASE_URL", "sqlite:///./test_secret_missions.db"
)

import pytest
from sqlalchemy.orm import Session
from fastapi.testclient import TestClient

from secret_missions.db import Base, engine, SessionLocal
from secret_missions.main import app
from secret_missions.services.storage import GameStorage

# Game / Player / Mission / User を Base に登録しておく
import secret_missions.models  # noqa: F401


@pytest.fixture(scope="function")
def db() -> Session:
    """
    テストごとにクリーンな DB を用意するフィクスチャ。
    アプリ本体と同じ engine を使う。
    """
    # 既存テーブルを全部削除してから、再作成
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def storage(db: Session) -> GameStorage:
    return GameStorage(db)


@pytest.fixture(scope="function")
def client(db: Session) -> TestClient:
    """
    通常の FastAPI app をそのまま使う TestClient。
    DI の上書きは行わない。
    """
    with TestClient(app) as c:
        yield c
