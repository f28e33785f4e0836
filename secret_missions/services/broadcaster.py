"""
WebSocket 接続管理とゲーム単位のブロードキャスト
"""

import asyncio
import json
import logging
import secrets
import string
from typing import Any, Optional

from fastapi import WebSocket
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from .storage import GameStorage

logger = logging.getLogger(__name__)

SOCKET_ID_ALPHABET = string.ascii_lowercase + string.digits
SOCKET_ID_LENGTH = 8


def to_payload(value: Any) -> Any:
    """pydantic モデル（とそのリスト／dict）を JSON 化できる形に変換する"""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    return value


class ConnectionRegistry:
    """
    socket_id → WebSocket の対応表。
    アプリ（app.state）が1つ所有し、接続ハンドラ間の同時更新は Lock で守る。
    """

    def __init__(self):
        self._connections: dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()

    def _new_socket_id(self) -> str:
        while True:
            socket_id = "".join(
                secrets.choice(SOCKET_ID_ALPHABET) for _ in range(SOCKET_ID_LENGTH)
            )
            if socket_id not in self._connections:
                return socket_id

    async def register(self, websocket: WebSocket) -> str:
        async with self._lock:
            socket_id = self._new_socket_id()
            self._connections[socket_id] = websocket
        logger.info("Socket %s connected (%d open)", socket_id, len(self._connections))
        return socket_id

    async def unregister(self, socket_id: str) -> None:
        async with self._lock:
            removed = self._connections.pop(socket_id, None)
        if removed is not None:
            logger.info(
                "Socket %s disconnected (%d open)", socket_id, len(self._connections)
            )

    async def get(self, socket_id: Optional[str]) -> Optional[WebSocket]:
        if not socket_id:
            return None
        async with self._lock:
            return self._connections.get(socket_id)

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, socket_id: str) -> bool:
        return socket_id in self._connections


class Broadcaster:
    """
    ゲームの全プレイヤーの登録済みソケットへ {event, data} を送る。
    配信はベストエフォート：失敗は握りつぶしてログのみ、再送もしない。
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    async def send_personal(
        self, websocket: WebSocket, event: str, data: Any = None, **extra: Any
    ) -> bool:
        message = {"event": event}
        if data is not None:
            message["data"] = to_payload(data)
        message.update(extra)
        try:
            await websocket.send_text(json.dumps(message, ensure_ascii=False))
            return True
        except Exception as e:  # 切断済みソケットなど
            logger.warning("Failed to send %s: %s", event, e)
            return False

    async def broadcast_to_game(
        self, storage: GameStorage, game_id: str, event: str, data: Any = None
    ) -> int:
        """配信できたソケット数を返す"""
        players = await run_in_threadpool(storage.list_players_by_game, game_id)
        message_text = json.dumps(
            {"event": event, "data": to_payload(data)}, ensure_ascii=False
        )

        delivered = 0
        sent: set[str] = set()
        for player in players:
            socket_id = player.socket_id
            # ローカルモードでは1台の端末に複数プレイヤーが登録される
            if socket_id in sent:
                continue
            websocket = await self.registry.get(socket_id)
            if websocket is None:
                continue
            sent.add(socket_id)
            try:
                await websocket.send_text(message_text)
                delivered += 1
            except Exception as e:  # 閉じたソケットは登録から外す
                logger.warning(
                    "Broadcast %s to player %s failed: %s", event, player.id, e
                )
                await self.registry.unregister(socket_id)

        logger.debug(
            "Broadcast %s to game %s: %d/%d delivered",
            event,
            game_id,
            delivered,
            len(players),
        )
        return delivered
