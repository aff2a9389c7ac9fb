"""
WebSocket connection manager for the change-event stream.
Tracks open sockets per user and fans messages out to all of them.
"""

import asyncio
import logging
from typing import Dict, Set
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Keeps every open change-stream socket, grouped by user."""

    def __init__(self):
        # {user_id: {websocket1, websocket2, ...}}
        self.active_connections: Dict[UUID, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: UUID):
        await websocket.accept()
        async with self._lock:
            self.active_connections.setdefault(user_id, set()).add(websocket)
            count = len(self.active_connections[user_id])
        logger.info(f"WebSocket connected: user_id={user_id}, user_connections={count}")

    async def disconnect(self, websocket: WebSocket, user_id: UUID):
        async with self._lock:
            sockets = self.active_connections.get(user_id)
            if sockets is not None:
                sockets.discard(websocket)
                if not sockets:
                    del self.active_connections[user_id]
        logger.info(f"WebSocket disconnected: user_id={user_id}")

    async def _send(self, websocket: WebSocket, user_id: UUID, message: dict) -> bool:
        try:
            await websocket.send_json(message)
            return True
        except Exception as e:
            logger.warning(f"Dropping socket of user {user_id} after send error: {e}")
            return False

    async def broadcast(self, message: dict):
        """Send a message to every open socket; dead sockets are dropped."""
        async with self._lock:
            targets = [
                (user_id, websocket)
                for user_id, sockets in self.active_connections.items()
                for websocket in sockets
            ]

        if not targets:
            return

        results = await asyncio.gather(
            *(self._send(websocket, user_id, message) for user_id, websocket in targets)
        )
        logger.debug(f"Broadcast {message.get('type')} to {sum(results)}/{len(targets)} sockets")

        dead = [target for target, ok in zip(targets, results) if not ok]
        for user_id, websocket in dead:
            await self.disconnect(websocket, user_id)

    def get_active_users(self) -> Set[UUID]:
        return set(self.active_connections.keys())

    def get_connection_count(self) -> int:
        return sum(len(sockets) for sockets in self.active_connections.values())


# Global instance
manager = ConnectionManager()
