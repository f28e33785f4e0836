"""
アプリ設定モジュール
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """アプリ設定（環境変数 SECRET_MISSIONS_* / .env で上書き可）"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SECRET_MISSIONS_",
        case_sensitive=True,
        extra="ignore",
    )

    # 基本設定
    APP_NAME: str = "Secret Missions API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # サーバー設定
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # DB 設定
    DATABASE_URL: str = "sqlite:///./secret_missions.db"

    # ゲーム設定
    DEFAULT_LIVES: int = 3
    DEFAULT_TIMER_MINUTES: int = 30
    ROOM_CODE_ATTEMPTS: int = 5
    MAX_PLAYERS: int = 10
    MIN_PLAYERS_FOR_DISTRIBUTION: int = 2

    # 開発用 API（/api/debug/*）
    ENABLE_DEBUG_ROUTES: bool = False


settings = Settings()
