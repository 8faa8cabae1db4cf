"""Pydantic models for the client-side participant display."""

from pydantic import BaseModel


class DisplayParticipant(BaseModel):
    """A live participant plus the visual parameters of its list slot."""
    id: int
    name: str
    ip_address: str
    distance: int
    size: int
    speed: int
    color: str
    is_online: bool = True
