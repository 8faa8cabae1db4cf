"""Pydantic models for the presence registry."""

from pydantic import BaseModel, ConfigDict, Field


class Participant(BaseModel):
    """A device currently known to the registry."""
    id: int
    display_name: str
    network_address: str
    first_seen_at: float  # monotonic clock
    last_heartbeat_at: float  # monotonic clock
    connected_at: int  # epoch milliseconds, captured with first_seen_at

    def to_view(self) -> "ParticipantView":
        return ParticipantView(
            id=self.id,
            user_name=self.display_name,
            ip_address=self.network_address,
            connected_at=self.connected_at,
        )


class RegistrationResult(BaseModel):
    is_new_participant: bool
    live_count: int
    participant: Participant


# --- Wire models ---

class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class HeartbeatRequest(WireModel):
    """Body of POST /api/transfer. Required fields are checked by the registry."""
    user_id: int | None = Field(default=None, alias="userId")
    user_name: str | None = Field(default=None, alias="userName")
    ip_address: str | None = Field(default=None, alias="ipAddress")


class HeartbeatResponse(WireModel):
    success: bool = True
    message: str
    user_id: int = Field(alias="userId")
    is_new_user: bool = Field(alias="isNewUser")
    active_users: int = Field(alias="activeUsers")


class ParticipantView(WireModel):
    id: int
    user_name: str = Field(alias="userName")
    ip_address: str = Field(alias="ipAddress")
    connected_at: int = Field(alias="connectedAt")


class ParticipantListResponse(WireModel):
    success: bool = True
    users: list[ParticipantView]
    total_users: int = Field(alias="totalUsers")
    timestamp: int


class ClearResponse(WireModel):
    success: bool = True
    message: str
    cleared: int


class RegistrySnapshot(WireModel):
    """First message on a fresh WebSocket: who is live right now."""
    users: list[ParticipantView]
    total_users: int = Field(alias="totalUsers")


class RegistryEvent(WireModel):
    """One registry change pushed to WebSocket clients."""
    event: str
    data: ParticipantView | RegistrySnapshot | ClearResponse
    timestamp: int  # epoch milliseconds
