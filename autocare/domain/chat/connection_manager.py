"""In-process registry of WebSocket subscribers per chat"""

import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self.active: dict[int, set[WebSocket]] = defaultdict(set)

    async def connect(self, chat_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active[chat_id].add(websocket)
        logger.info(f"🔌 WebSocket joined chat {chat_id} ({len(self.active[chat_id])} connected)")

    def disconnect(self, chat_id: int, websocket: WebSocket) -> None:
        sockets = self.active.get(chat_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self.active[chat_id]

    async def broadcast(self, chat_id: int, event: str, payload: dict) -> None:
        """Send an event to every subscriber; dead sockets are dropped"""
        for websocket in list(self.active.get(chat_id, ())):
            try:
                await websocket.send_json({"event": event, "data": payload})
            except Exception as e:
                logger.warning(f"⚠️ Dropping WebSocket on chat {chat_id}: {e}")
                self.disconnect(chat_id, websocket)


manager = ConnectionManager()
