import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .db import init_db
from .errors import SecretMissionsError
from .api.v1 import api_router as api_v1_router, debug_router, realtime_router
from .services.broadcaster import Broadcaster, ConnectionRegistry

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # モデルからテーブル作成（開発用）
    init_db()

    # 接続表はアプリが所有する（モジュール変数にはしない）
    app.state.broadcaster = Broadcaster(ConnectionRegistry())
    logger.info("%s %s started", settings.APP_NAME, settings.VERSION)
    yield
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SecretMissionsError)
async def handle_domain_error(request: Request, exc: SecretMissionsError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# API ルーター
app.include_router(api_v1_router, prefix="/api")
app.include_router(realtime_router)

if settings.ENABLE_DEBUG_ROUTES:
    app.include_router(debug_router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "Secret Missions API is running"}


if __name__ == "__main__":
    uvicorn.run(
        "secret_missions.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
