from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

BroadcastType = Literal[
    "emergency_created",
    "emergency_updated",
    "emergency_status_changed",
    "emergency_rerouted",
    "hospital_updated",
]


class EventHub:
    """Fan-out of dispatch events to every connected WebSocket client."""

    def __init__(self) -> None:
        self.clients: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        logger.info("New WebSocket client connected (%s total)", len(self.clients))
        await websocket.send_json(
            {"type": "connected", "message": "WebSocket connection established"}
        )

    def disconnect(self, websocket: WebSocket) -> None:
        self.clients.discard(websocket)
        logger.info("WebSocket client disconnected (%s remaining)", len(self.clients))

    async def acknowledge(self, websocket: WebSocket, message: str) -> None:
        try:
            data = json.loads(message)
        except json.JSONDecodeError as exc:
            logger.error("WebSocket message parse error: %s", exc)
            return
        logger.debug("Received WebSocket message: %s", data)
        await websocket.send_json({"type": "ack", "data": data})

    async def broadcast(self, event_type: BroadcastType, data: Any) -> int:
        message = json.dumps(
            {
                "type": event_type,
                "data": jsonable_encoder(data),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )
        sent = 0
        failed = 0
        for client in list(self.clients):
            try:
                await client.send_text(message)
                sent += 1
            except Exception as exc:
                logger.error("Failed to send to client: %s", exc)
                self.clients.discard(client)
                failed += 1
        logger.info("Broadcast %s: sent to %s clients, %s failed", event_type, sent, failed)
        return sent

    def connected_count(self) -> int:
        return len(self.clients)
