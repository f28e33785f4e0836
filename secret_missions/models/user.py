# secret_missions/models/user.py

from sqlalchemy import Column, String, Text
import uuid

from ..db import Base


class User(Base):
    """ユーザー表（ゲーム進行では未使用）"""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(Text, nullable=False, unique=True)
    password = Column(Text, nullable=False)
