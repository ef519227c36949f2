"""
Playlist ingestion.
Parses or normalizes incoming content, merges it into the catalog and saves
it as a playlist record.
"""
import logging
from datetime import date
from typing import Any, Optional, Union

from iptv_viewer.models.channel import PlaylistRecord, PlaylistSource
from iptv_viewer.services.catalog import PlaylistCatalog
from iptv_viewer.services.m3u_parser import M3UParser
from iptv_viewer.services.xtream import normalize_streams

logger = logging.getLogger(__name__)

SAMPLE_PLAYLIST_NAME = "Sample Playlist"

SAMPLE_PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-id="" tvg-name="Big Buck Bunny" tvg-logo="https://upload.wikimedia.org/wikipedia/commons/thumb/c/c5/Big_buck_bunny_poster_big.jpg/300px-Big_buck_bunny_poster_big.jpg" group-title="Movies",Big Buck Bunny
https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4
#EXTINF:-1 tvg-id="" tvg-name="Elephant Dream" tvg-logo="https://upload.wikimedia.org/wikipedia/commons/thumb/7/70/Elephants_Dream_%282006%29.jpg/300px-Elephants_Dream_%282006%29.jpg" group-title="Documentaries",Elephant Dream
https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ElephantsDream.mp4
#EXTINF:-1 tvg-id="" tvg-name="For Bigger Blazes" tvg-logo="https://images.unsplash.com/photo-1574267432553-4b4628081c31?w=300" group-title="Music",For Bigger Blazes
https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ForBiggerBlazes.mp4
#EXTINF:-1 tvg-id="" tvg-name="For Bigger Escape" tvg-logo="https://images.unsplash.com/photo-1519681393784-d120267933ba?w=300" group-title="Adventure",For Bigger Escape
https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ForBiggerEscapes.mp4
"""


class EmptyPlaylistError(ValueError):
    """Raised when content yields no valid channels."""


def default_playlist_name() -> str:
    return f"Playlist {date.today().isoformat()}"


def ingest_playlist(
    catalog: PlaylistCatalog,
    parser: M3UParser,
    content: Union[str, bytes],
    source: PlaylistSource,
    name: Optional[str] = None,
) -> PlaylistRecord:
    """
    Parse M3U text or uploaded bytes, add its channels to the catalog and save it.

    Raises:
        PlaylistParseError: if content is neither text nor bytes
        EmptyPlaylistError: if no valid channel was found
    """
    if isinstance(content, (bytes, bytearray)):
        result = parser.parse_bytes(content)
    else:
        result = parser.parse(content)
    if result.is_empty:
        raise EmptyPlaylistError("No valid channels found in playlist")

    catalog.add_channels(result.channels)
    return catalog.save_playlist(name or default_playlist_name(), result.channels, source)


def ingest_xtream(
    catalog: PlaylistCatalog,
    streams: Any,
    base_url: str,
    username: str,
    password: str,
    name: Optional[str] = None,
) -> PlaylistRecord:
    """
    Normalize Xtream live streams, add them to the catalog and save them.

    Raises:
        XtreamPayloadError: if the payload is not a list of stream records
        EmptyPlaylistError: if the account has no live streams
    """
    channels = normalize_streams(streams, base_url, username, password)
    if not channels:
        raise EmptyPlaylistError("No live streams returned by the server")

    catalog.add_channels(channels)
    return catalog.save_playlist(name or f"Xtream {username}", channels, "xtream")


def ingest_sample(catalog: PlaylistCatalog, parser: M3UParser) -> PlaylistRecord:
    """Load the bundled sample playlist."""
    return ingest_playlist(catalog, parser, SAMPLE_PLAYLIST, "sample", SAMPLE_PLAYLIST_NAME)
