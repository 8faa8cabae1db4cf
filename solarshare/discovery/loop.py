"""
Client discovery loop.

Keeps the local participant's heartbeat fresh and mirrors the server's live
participant list into a display list. Visual parameters are handed out by
list position, so a participant's look can change when others join or leave.
"""

import asyncio
import logging

from solarshare.config import COLOR_PALETTE, HEARTBEAT_INTERVAL, ORBITAL_CONFIG
from solarshare.discovery.identity import default_display_name
from solarshare.discovery.models import DisplayParticipant
from solarshare.presence.models import ParticipantView

logger = logging.getLogger(__name__)


def build_display_list(participants: list[ParticipantView]) -> list[DisplayParticipant]:
    """Assign orbit and colour by position in the (id-sorted) list."""
    display = []
    for index, p in enumerate(participants):
        distance, size, speed = ORBITAL_CONFIG[index % len(ORBITAL_CONFIG)]
        display.append(DisplayParticipant(
            id=p.id,
            name=p.user_name or default_display_name(p.id),
            ip_address=p.ip_address,
            distance=distance,
            size=size,
            speed=speed,
            color=COLOR_PALETTE[index % len(COLOR_PALETTE)],
        ))
    return display


class DiscoveryLoop:
    """Periodic heartbeat plus participant refresh for one local participant."""

    def __init__(
        self,
        client,
        participant_id: int,
        display_name: str | None = None,
        ip_address: str | None = None,
        interval: float = HEARTBEAT_INTERVAL,
    ) -> None:
        self._client = client
        self.participant_id = participant_id
        self.display_name = display_name or default_display_name(participant_id)
        self.ip_address = ip_address
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._on_update: list = []  # callbacks: async def fn(participants)
        self.participants: list[DisplayParticipant] = []
        self.error: str | None = None

    @property
    def others(self) -> list[DisplayParticipant]:
        """Everyone on the display list except the local participant."""
        return [p for p in self.participants if p.id != self.participant_id]

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_update(self, callback) -> None:
        """Register a callback invoked with the new display list after each refresh."""
        self._on_update.append(callback)

    async def start(self) -> None:
        """Announce ourselves once, then keep refreshing in the background."""
        logger.info(f"Starting discovery as {self.display_name} (ID: {self.participant_id})")
        await self.tick()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Discovery stopped")

    async def tick(self) -> bool:
        """One heartbeat-and-refresh cycle. Returns False if it failed."""
        try:
            await asyncio.to_thread(
                self._client.heartbeat,
                self.participant_id,
                self.display_name,
                self.ip_address,
            )
            views = await asyncio.to_thread(self._client.list_participants)
        except Exception as e:
            # Keep the last good list; the next tick retries
            self.error = str(e)
            logger.warning(f"Discovery refresh failed: {e}")
            return False

        self.participants = build_display_list(views)
        self.error = None
        logger.debug(f"Discovered {len(self.participants)} connected participant(s)")

        for cb in self._on_update:
            try:
                await cb(self.participants)
            except Exception as e:
                logger.error(f"Discovery callback error: {e}")
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.tick()
