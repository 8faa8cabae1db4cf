"""WebSocket push of presence registry changes."""

import asyncio
import logging
import time

from fastapi import WebSocket

from solarshare.presence.models import (
    ClearResponse,
    ParticipantView,
    RegistryEvent,
    RegistrySnapshot,
)

logger = logging.getLogger(__name__)

# Registry event name -> wire model for its payload
EVENT_PAYLOADS = {
    "participant_joined": ParticipantView,
    "participant_left": ParticipantView,
    "registry_cleared": ClearResponse,
}


class ConnectionManager:
    """
    Tracks WebSocket clients and pushes registry changes to them.

    A new client first receives a `snapshot` of the live participants, then
    one message per `participant_joined`, `participant_left` and
    `registry_cleared` event. Each message is
    `{"event": ..., "data": ..., "timestamp": <epoch ms>}` with camelCase
    payloads matching the REST responses.
    """

    def __init__(self, registry=None, wall_clock=time.time) -> None:
        self._registry = registry
        self._wall_clock = wall_clock
        self._connections: list[WebSocket] = []
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        if self._registry is not None:
            participants = await self._registry.list_live()
            snapshot = RegistrySnapshot(
                users=[p.to_view() for p in participants],
                total_users=len(participants),
            )
            await websocket.send_text(self._encode("snapshot", snapshot))
        async with self._lock:
            self._connections.append(websocket)
        logger.info(f"Registry watcher connected. Total: {len(self._connections)}")

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            if websocket in self._connections:
                self._connections.remove(websocket)
        logger.info(f"Registry watcher disconnected. Total: {len(self._connections)}")

    async def handle_event(self, event_type: str, data: dict) -> None:
        """Callback for PresenceRegistry.on_change()."""
        model = EVENT_PAYLOADS.get(event_type)
        if model is None:
            logger.debug(f"Not forwarding unknown registry event {event_type!r}")
            return
        if model is ClearResponse:
            cleared = data.get("cleared", 0)
            payload = ClearResponse(message=f"Cleared {cleared} users", cleared=cleared)
        else:
            payload = model.model_validate(data)
        await self.broadcast(self._encode(event_type, payload))

    async def broadcast(self, message: str) -> None:
        """Send an encoded message to every client, dropping the ones that are gone."""
        async with self._lock:
            dead: list[WebSocket] = []
            for ws in self._connections:
                try:
                    await ws.send_text(message)
                except Exception as e:
                    logger.debug(f"Dropping registry watcher: {e}")
                    dead.append(ws)
            for ws in dead:
                self._connections.remove(ws)

    def _encode(self, event: str, payload) -> str:
        return RegistryEvent(
            event=event,
            data=payload,
            timestamp=int(self._wall_clock() * 1000),
        ).model_dump_json(by_alias=True)
