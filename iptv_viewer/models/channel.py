"""
Channel, playlist record and parse result models.
Both the M3U and the Xtream ingestion paths produce the same Channel shape.
"""
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CHANNEL_NAME = "Unnamed Channel"
DEFAULT_GROUP = "General"

PlaylistSource = Literal["url", "text", "file", "sample", "xtream"]


class Channel(BaseModel):
    """A playable entry. Immutable; use model_copy(update=...) to change it."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = DEFAULT_CHANNEL_NAME
    logo: str = ""
    group: str = DEFAULT_GROUP
    url: str
    tvg_id: str = ""
    is_favorite: bool = False

    # Xtream only
    stream_id: Optional[int] = None
    num: int = 0
    type: Optional[Literal["live"]] = None

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value):
        if value is None or not str(value).strip():
            return DEFAULT_CHANNEL_NAME
        return value

    @field_validator("group", mode="before")
    @classmethod
    def _default_group(cls, value):
        if value is None or not str(value).strip():
            return DEFAULT_GROUP
        return value

    @field_validator("logo", "tvg_id", mode="before")
    @classmethod
    def _empty_if_missing(cls, value):
        return value or ""

    @field_validator("url")
    @classmethod
    def _require_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("channel url must not be empty")
        return value

    @property
    def key(self) -> tuple[str, str]:
        """The (name, url) pair used for duplicate detection."""
        return (self.name, self.url)


class PlaylistRecord(BaseModel):
    """A saved list of channels, the unit persisted by the state store."""
    id: str
    name: str
    channels: list[Channel] = Field(default_factory=list)
    source: PlaylistSource
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    count: int = 0

    @model_validator(mode="after")
    def _sync_count(self):
        # count is a display cache of len(channels)
        if self.count != len(self.channels):
            self.count = len(self.channels)
        return self


class ParseResult(BaseModel):
    """Outcome of a single M3U parse call."""
    channels: list[Channel] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    dropped: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.channels


class ChannelListResponse(BaseModel):
    """Filtered channel list response."""
    channels: list[Channel]
    total: int
    category: str
    search: str
