"""
Persisted user state models.
"""
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from iptv_viewer.models.channel import PlaylistRecord


class Preferences(BaseModel):
    """Presentation preferences kept alongside the catalog state."""
    theme: Literal["dark", "light"] = "dark"
    volume: float = Field(default=1.0, ge=0.0, le=1.0)


class UserState(BaseModel):
    """Everything the state store round-trips between runs."""
    favorites: list[str] = Field(default_factory=list)
    history: list[str] = Field(default_factory=list)  # Most recent first
    saved_playlists: list[PlaylistRecord] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)


class XtreamCredentials(BaseModel):
    """Authenticated Xtream Codes account."""
    server_url: str
    username: str
    password: str
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
