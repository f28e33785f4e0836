# secret_missions/api/v1/__init__.py

from fastapi import APIRouter

from . import games, missions, players, debug, realtime

api_router = APIRouter()

# それぞれの router 側で prefix を持っている前提にする
api_router.include_router(games.router)     # games.router 内で prefix="/games"
api_router.include_router(missions.router)  # missions.router 内で prefix="/missions"
api_router.include_router(players.router)   # players.router 内で prefix="/players"

# 開発用は設定で有効にしたときだけ main.py から登録する
debug_router = debug.router

# WebSocket は /api の外（/ws）に置く
realtime_router = realtime.router
