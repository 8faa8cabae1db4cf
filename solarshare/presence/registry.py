"""
In-memory presence registry.

Participants announce themselves with periodic heartbeats. Anyone who has
been silent for longer than the inactivity timeout is dropped the next time
the registry is read or written; there is no background reaper.
"""

import asyncio
import logging
import time

from solarshare.config import INACTIVITY_TIMEOUT
from solarshare.errors import ValidationError
from solarshare.presence.models import Participant, RegistrationResult

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Process-wide map of participant id to Participant."""

    def __init__(
        self,
        inactivity_timeout: float = INACTIVITY_TIMEOUT,
        clock=time.monotonic,
        wall_clock=time.time,
    ) -> None:
        self._participants: dict[int, Participant] = {}
        self._lock = asyncio.Lock()
        self._on_change: list = []  # callbacks: async def fn(event, data)
        self._inactivity_timeout = inactivity_timeout
        self._clock = clock
        self._wall_clock = wall_clock

    @property
    def inactivity_timeout(self) -> float:
        return self._inactivity_timeout

    def on_change(self, callback) -> None:
        """Register a callback for participant joined/left/cleared events."""
        self._on_change.append(callback)

    async def register_or_heartbeat(
        self, user_id, user_name, ip_address: str | None = None
    ) -> RegistrationResult:
        """Create or refresh a participant and return the live count."""
        if isinstance(user_id, bool) or not isinstance(user_id, int) or not user_id:
            raise ValidationError("Missing userId or userName")
        if not isinstance(user_name, str) or not user_name.strip():
            raise ValidationError("Missing userId or userName")

        address = ip_address or "unknown"

        async with self._lock:
            now = self._clock()
            expired = self._sweep(now)
            existing = self._participants.get(user_id)
            is_new = existing is None

            if is_new:
                participant = Participant(
                    id=user_id,
                    display_name=user_name,
                    network_address=address,
                    first_seen_at=now,
                    last_heartbeat_at=now,
                    connected_at=int(self._wall_clock() * 1000),
                )
            else:
                participant = existing.model_copy(update={
                    "display_name": user_name,
                    "network_address": address,
                    "last_heartbeat_at": now,
                })
            # Replace the record wholesale so readers never see a partial update
            self._participants[user_id] = participant
            live_count = len(self._participants)

        await self._emit_expired(expired)
        if is_new:
            logger.info(f"New participant registered: {user_name} (ID: {user_id}) from {address}")
            await self._emit("participant_joined", participant.to_view().model_dump(by_alias=True))
        else:
            logger.debug(f"Heartbeat: {user_name} (ID: {user_id})")

        return RegistrationResult(
            is_new_participant=is_new,
            live_count=live_count,
            participant=participant,
        )

    async def list_live(self) -> list[Participant]:
        """Return live participants sorted by id, dropping stale ones first."""
        async with self._lock:
            expired = self._sweep(self._clock())
            participants = sorted(self._participants.values(), key=lambda p: p.id)

        await self._emit_expired(expired)
        return participants

    async def clear_all(self) -> int:
        """Remove every participant. Returns how many were removed."""
        async with self._lock:
            count = len(self._participants)
            self._participants.clear()

        logger.info(f"Cleared {count} participants from registry")
        await self._emit("registry_cleared", {"cleared": count})
        return count

    def _sweep(self, now: float) -> list[Participant]:
        """Drop participants whose last heartbeat is too old. Caller holds the lock."""
        stale = [
            p for p in self._participants.values()
            if now - p.last_heartbeat_at > self._inactivity_timeout
        ]
        for participant in stale:
            del self._participants[participant.id]
            logger.info(
                f"Participant {participant.display_name} (ID: {participant.id}) "
                f"disconnected (inactive)"
            )
        return stale

    async def _emit_expired(self, expired: list[Participant]) -> None:
        for participant in expired:
            await self._emit("participant_left", participant.to_view().model_dump(by_alias=True))

    async def _emit(self, event: str, data: dict) -> None:
        for cb in self._on_change:
            try:
                await cb(event, data)
            except Exception as e:
                logger.error(f"Registry callback error: {e}")
