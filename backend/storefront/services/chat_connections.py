"""
WebSocket connection registry for live chat

Visitors are keyed by their visitor id (one browser may open several tabs);
admins share one broadcast group.

Events sent to clients are JSON objects: {"event": name, "data": payload}

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, Set, Any, Optional

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks open visitor and admin sockets"""

    def __init__(self):
        self.visitors: Dict[str, Set[WebSocket]] = {}
        self.admins: Set[WebSocket] = set()

    @property
    def online_visitors(self) -> int:
        return len(self.visitors)

    @property
    def online_admins(self) -> int:
        return len(self.admins)

    def stats(self) -> Dict[str, int]:
        return {"onlineVisitors": self.online_visitors, "onlineAdmins": self.online_admins}

    def is_visitor_online(self, visitor_id: Optional[str]) -> bool:
        return bool(visitor_id) and visitor_id in self.visitors

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def connect_visitor(self, visitor_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.visitors.setdefault(visitor_id, set()).add(websocket)
        logger.info(f"Visitor connected: {visitor_id} ({self.online_visitors} online)")

    def disconnect_visitor(self, visitor_id: str, websocket: WebSocket) -> None:
        sockets = self.visitors.get(visitor_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self.visitors[visitor_id]
        logger.info(f"Visitor disconnected: {visitor_id} ({self.online_visitors} online)")

    async def connect_admin(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.admins.add(websocket)
        logger.info(f"Admin connected ({self.online_admins} online)")

    def disconnect_admin(self, websocket: WebSocket) -> None:
        self.admins.discard(websocket)
        logger.info(f"Admin disconnected ({self.online_admins} online)")

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _send(self, websocket: WebSocket, event: str, data: Any) -> bool:
        try:
            await websocket.send_json(jsonable_encoder({"event": event, "data": data}))
            return True
        except Exception as e:
            logger.warning(f"Dropping socket after failed send of {event}: {str(e)}")
            return False

    async def send_to_visitor(self, visitor_id: str, event: str, data: Any) -> None:
        for websocket in list(self.visitors.get(visitor_id, ())):
            if not await self._send(websocket, event, data):
                self.disconnect_visitor(visitor_id, websocket)

    async def broadcast_admins(self, event: str, data: Any, exclude: Optional[WebSocket] = None) -> None:
        for websocket in list(self.admins):
            if websocket is exclude:
                continue
            if not await self._send(websocket, event, data):
                self.disconnect_admin(websocket)

    async def send(self, websocket: WebSocket, event: str, data: Any) -> None:
        await self._send(websocket, event, data)


# Singleton instance for easy import
_connection_manager: Optional[ConnectionManager] = None

def get_connection_manager() -> ConnectionManager:
    """Get the singleton connection manager"""
    global _connection_manager
    if _connection_manager is None:
        _connection_manager = ConnectionManager()
    return _connection_manager
