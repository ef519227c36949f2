"""
Xtream Codes normalizer.
Maps raw player_api.php stream and category records onto the Channel model.
"""
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from iptv_viewer.models.channel import DEFAULT_GROUP, Channel

logger = logging.getLogger(__name__)


class XtreamPayloadError(ValueError):
    """Raised when an Xtream API payload does not have the expected shape."""


class XtreamStream(BaseModel):
    """Raw live stream record as returned by action=get_live_streams."""
    model_config = ConfigDict(extra="ignore")

    stream_id: int
    name: Optional[str] = None
    stream_icon: Optional[str] = None
    category_name: Optional[str] = None
    epg_channel_id: Optional[str] = None
    num: Optional[int] = None


class XtreamCategory(BaseModel):
    """Raw category record as returned by action=get_live_categories."""
    model_config = ConfigDict(extra="ignore")

    category_name: str


def normalize_server_url(server_url: str) -> str:
    """Trim the server URL, drop a trailing slash and default to http://."""
    url = server_url.strip()
    if url.endswith('/'):
        url = url[:-1]
    if not url.startswith('http://') and not url.startswith('https://'):
        url = f"http://{url}"
    return url


def stream_url(base_url: str, username: str, password: str, stream_id: int) -> str:
    """Build the HLS URL of a live stream."""
    return f"{base_url}/live/{username}/{password}/{stream_id}.m3u8"


def _require_list(payload: Any, what: str) -> list:
    if not isinstance(payload, list):
        raise XtreamPayloadError(
            f"Expected a list of {what}, got {type(payload).__name__}"
        )
    return payload


def normalize_streams(
    streams: Any,
    base_url: str,
    username: str,
    password: str,
) -> list[Channel]:
    """
    Convert raw live stream records into channels.

    No deduplication happens here; the server listing is taken as is.

    Raises:
        XtreamPayloadError: if the payload is not a list of stream objects
    """
    records = _require_list(streams, "stream records")

    try:
        parsed = [XtreamStream.model_validate(record) for record in records]
    except ValidationError as e:
        raise XtreamPayloadError(f"Malformed stream record: {e}") from e

    channels = []
    for stream in parsed:
        channels.append(Channel(
            id=f"xtream_{stream.stream_id}",
            name=(stream.name or "").strip() or f"Channel {stream.stream_id}",
            logo=stream.stream_icon or "",
            group=stream.category_name or DEFAULT_GROUP,
            url=stream_url(base_url, username, password, stream.stream_id),
            tvg_id=stream.epg_channel_id or "",
            is_favorite=False,
            stream_id=stream.stream_id,
            num=stream.num or 0,
            type="live",
        ))

    logger.info(f"Normalized {len(channels)} Xtream streams")
    return channels


def normalize_categories(categories: Any) -> list[str]:
    """
    Map raw category records to their names.

    Server order is preserved; unlike the M3U path the result is not sorted,
    the panel already orders its categories.
    """
    records = _require_list(categories, "category records")

    try:
        return [XtreamCategory.model_validate(record).category_name for record in records]
    except ValidationError as e:
        raise XtreamPayloadError(f"Malformed category record: {e}") from e
