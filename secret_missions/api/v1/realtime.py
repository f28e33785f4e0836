# secret_missions/api/v1/realtime.py
"""
WebSocket エンドポイント

クライアント → サーバー:
  {"event": "register_player", "data": {"playerId": ...}}
  {"event": "player_ready", "data": {"gameId": ..., "playerId": ...}}
  {"event": "game_update", "data": {"gameId": ..., ...}}
  {"event": "ping"}

サーバー → クライアント:
  接続直後に {"event": "connected", "socketId": ...}
  以降は broadcast_to_game による {"event": ..., "data": ...}
"""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from ...db import SessionLocal
from ...errors import SecretMissionsError
from ...services.broadcaster import Broadcaster
from ...services.storage import GameStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _handle_message(
    broadcaster: Broadcaster,
    websocket: WebSocket,
    socket_id: str,
    event: str,
    data: dict,
) -> None:
    with SessionLocal() as db:
        storage = GameStorage(db)

        if event == "register_player":
            player_id = data.get("playerId")
            if not player_id:
                await broadcaster.send_personal(
                    websocket, "error", {"message": "playerId is required"}
                )
                return
            await run_in_threadpool(
                storage.update_player_socket_id, player_id, socket_id
            )
            logger.info("Socket %s registered for player %s", socket_id, player_id)
            await broadcaster.send_personal(
                websocket, "registered", {"playerId": player_id}
            )

        elif event == "player_ready":
            await broadcaster.broadcast_to_game(
                storage,
                data["gameId"],
                "player_ready",
                {"playerId": data.get("playerId")},
            )

        elif event == "game_update":
            # 中身は解釈せずにそのまま同じゲームへ流す
            await broadcaster.broadcast_to_game(
                storage, data["gameId"], "game_update", data
            )

        elif event == "ping":
            await broadcaster.send_personal(websocket, "pong", data or None)

        else:
            logger.warning("Unknown realtime event from %s: %s", socket_id, event)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    registry = broadcaster.registry

    await websocket.accept()
    socket_id = await registry.register(websocket)

    try:
        await broadcaster.send_personal(websocket, "connected", socketId=socket_id)

        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON from socket %s: %r", socket_id, raw[:200])
                continue

            if not isinstance(message, dict):
                logger.warning("Ignoring non-object message from socket %s", socket_id)
                continue

            event = message.get("event")
            data = message.get("data") or {}
            if not isinstance(data, dict):
                data = {}

            try:
                await _handle_message(broadcaster, websocket, socket_id, event, data)
            except SecretMissionsError as e:
                await broadcaster.send_personal(
                    websocket, "error", {"event": event, "message": e.message}
                )
            except KeyError as e:
                await broadcaster.send_personal(
                    websocket, "error", {"event": event, "message": f"missing {e}"}
                )
            except Exception:
                # 1通の失敗で接続は切らない
                logger.exception(
                    "Failed to handle %s from socket %s", event, socket_id
                )
                await broadcaster.send_personal(
                    websocket, "error", {"event": event, "message": "Internal error"}
                )

    except WebSocketDisconnect:
        logger.info("Socket %s closed by client", socket_id)
    finally:
        await registry.unregister(socket_id)
