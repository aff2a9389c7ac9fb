"""WebSocket endpoint streaming booking and availability changes."""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from booking_calendar.api.deps import user_id_from_token
from booking_calendar.services.websocket_manager import manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/changes")
async def websocket_changes(
    websocket: WebSocket,
    token: str = Query(...),
):
    """
    Stream of change events for bookings and availability windows.

    Client connects with: ws://<host>/api/v1/ws/changes?token=ACCESS_TOKEN
    (browsers cannot set headers on WebSocket requests).

    Messages format:
    {
        "type": "change",
        "data": {
            "entity_type": "booking",
            "action": "update",
            "entity_id": "uuid",
            "entity": {...},
            "actor_id": "uuid",
            "occurred_at": "2024-06-10T10:00:00"
        }
    }
    """
    try:
        user_id = user_id_from_token(token)
    except ValueError as e:
        logger.warning(f"WebSocket auth error: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, user_id)
    try:
        await websocket.send_json({
            "type": "connected",
            "message": "WebSocket connected successfully",
            "user_id": str(user_id),
        })

        # Clients only send keepalive pings
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected gracefully for user {user_id}")
    finally:
        await manager.disconnect(websocket, user_id)
