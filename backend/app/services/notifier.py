"""
Real-time notification fan-out.

Controllers and the status engine publish named events through a Notifier
handed to them at construction time. Delivery is best-effort: a failed push
is logged and dropped, it never fails the request that caused it.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, List, Optional

from fastapi import WebSocket

from backend.app.core.config import settings
from backend.app.core.redis_client import redis_client

logger = logging.getLogger("fleetops.notifier")


class Events:
    """Event names pushed to dashboard clients."""
    VEHICLE_CREATED = "vehicleCreated"
    VEHICLE_UPDATED = "vehicleUpdated"
    VEHICLE_DELETED = "vehicleDeleted"
    DRIVER_CREATED = "driverCreated"
    DRIVER_UPDATED = "driverUpdated"
    DRIVER_DELETED = "driverDeleted"
    TRIP_CREATED = "tripCreated"
    TRIP_UPDATED = "tripUpdated"
    TRIP_DELETED = "tripDeleted"
    MAINTENANCE_CREATED = "maintenanceCreated"
    FUEL_CREATED = "fuelCreated"
    INCIDENT_CREATED = "incidentCreated"


class Notifier:
    """Publish port. Implementations must not raise."""

    async def publish(self, event: str, payload: Any = None) -> None:
        raise NotImplementedError


class ConnectionManager:
    """Tracks connected WebSocket clients."""

    def __init__(self, send_timeout: float = settings.websocket_send_timeout):
        self.active: List[WebSocket] = []
        self.send_timeout = send_timeout

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active:
            self.active.remove(websocket)

    async def _send(self, connection: WebSocket, message: dict):
        try:
            await asyncio.wait_for(connection.send_json(message), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.info("Dropping stalled websocket client")
            self.disconnect(connection)
        except Exception:
            logger.info("Dropping dead websocket client")
            self.disconnect(connection)

    async def broadcast(self, message: dict):
        # Sends run concurrently, each bounded by send_timeout
        await asyncio.gather(*(self._send(connection, message) for connection in list(self.active)))


class BroadcastNotifier(Notifier):
    """
    Pushes events to local WebSocket clients and to a Redis channel, so
    other API workers can relay them to their own clients.
    """

    def __init__(self, manager: ConnectionManager, redis=None, channel: str = settings.events_channel):
        self.manager = manager
        self.redis = redis
        self.channel = channel

    async def publish(self, event: str, payload: Any = None) -> None:
        message = {
            "event": event,
            "data": payload,
            "ts": datetime.utcnow().isoformat()
        }

        try:
            await self.manager.broadcast(message)
        except Exception:
            logger.warning("WebSocket broadcast of %s failed", event, exc_info=True)

        if self.redis is None:
            return

        try:
            await self.redis.publish(self.channel, json.dumps(message, default=str))
        except Exception:
            logger.warning("Redis publish of %s failed", event, exc_info=True)


connection_manager = ConnectionManager()
notifier = BroadcastNotifier(
    connection_manager,
    redis=redis_client if settings.redis_events_enabled else None
)


def get_notifier() -> Notifier:
    """
    FastAPI dependency returning the process-wide notifier.

    Overridden in tests with a recording implementation.
    """
    return notifier


def serialize(schema, obj) -> Optional[dict]:
    """Render an ORM object as the JSON payload of an event."""
    if obj is None:
        return None
    return schema.model_validate(obj).model_dump(mode="json")
