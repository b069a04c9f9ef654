"""
Real-time event stream.

Dashboard clients connect here and receive every {"event", "data", "ts"}
message published by the notifier. Messages from clients are ignored.
"""

import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from backend.app.services.notifier import connection_manager

router = APIRouter(tags=["Events"])
logger = logging.getLogger("fleetops.events")


@router.websocket("/events")
async def event_stream(websocket: WebSocket):
    await connection_manager.connect(websocket)
    logger.info("Event client connected (%s open)", len(connection_manager.active))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        connection_manager.disconnect(websocket)
        logger.info("Event client disconnected")
