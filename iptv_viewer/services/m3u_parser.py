"""
M3U Parser Service.
Parses M3U/M3U8 playlist text into Channel entries.
"""
import hashlib
import logging
import re
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlsplit

from iptv_viewer.models.channel import (
    DEFAULT_CHANNEL_NAME,
    DEFAULT_GROUP,
    Channel,
    ParseResult,
)

logger = logging.getLogger(__name__)

EXTINF_PREFIX = "#EXTINF:"
HEADER_PREFIX = "#EXTM3U"

# Leading duration of an EXTINF line, e.g. "-1" or "10.5"
DURATION_PATTERN = re.compile(r'^\s*-?\d+(?:\.\d+)?')

# key="value" attribute pairs, keys may contain hyphens
ATTRIBUTE_PATTERN = re.compile(r'([A-Za-z][\w-]*)\s*=\s*"([^"]*)"')

# Line breaks only; str.splitlines also breaks on U+2028, \x85 and friends
LINE_BREAK_PATTERN = re.compile(r'\r\n|\r|\n')

# Quoted spans are skipped when looking for the name separator
SEPARATOR_PATTERN = re.compile(r'"[^"]*"|,')

STREAM_PREFIX_PATTERN = re.compile(r'^(https?|rtmp|rtsp|mms)://', re.IGNORECASE)

DEFAULT_STREAM_SCHEMES = ("http", "https", "rtmp", "rtmps", "rtsp", "mms", "mmsh", "udp", "rtp")


class PlaylistParseError(ValueError):
    """Raised when playlist content cannot be read as text at all."""


def channel_id_for(name: str, url: str) -> str:
    """Deterministic id for an M3U channel, stable across re-parses."""
    digest = hashlib.md5(f"{name}|{url}".encode()).hexdigest()[:12]
    return f"ch_{digest}"


class M3UParser:
    """Parse M3U playlist content."""

    def __init__(self, stream_schemes: Optional[Iterable[str]] = None):
        schemes = stream_schemes or DEFAULT_STREAM_SCHEMES
        self.stream_schemes = frozenset(s.lower() for s in schemes)

    def parse(self, content: str) -> ParseResult:
        """
        Parse M3U text and return the emitted channels and their categories.

        Args:
            content: Full playlist text

        Returns:
            ParseResult with channels in playlist order and sorted categories
        """
        if not isinstance(content, str):
            raise PlaylistParseError(
                f"Playlist content must be text, got {type(content).__name__}"
            )

        channels: list[Channel] = []
        categories: set[str] = set()
        seen: set[tuple[str, str]] = set()
        pending: Optional[dict] = None
        dropped = 0

        for raw_line in LINE_BREAK_PATTERN.split(content):
            line = raw_line.strip()

            if line.startswith(HEADER_PREFIX):
                continue

            if line.startswith(EXTINF_PREFIX):
                if pending is not None:
                    logger.debug(f"Dropping EXTINF without URL: {pending['name']}")
                    dropped += 1
                pending = self.parse_extinf(line)

            elif line and not line.startswith('#') and pending is not None:
                entry, pending = pending, None

                if not self.is_valid_url(line):
                    logger.debug(f"Invalid URL for channel {entry['name']}: {line}")
                    dropped += 1
                    continue

                key = (entry['name'], line)
                if key in seen:
                    logger.debug(f"Skipping duplicate channel: {entry['name']}")
                    dropped += 1
                    continue

                seen.add(key)
                channel = Channel(id=channel_id_for(entry['name'], line), url=line, **entry)
                channels.append(channel)
                categories.add(channel.group)

        if pending is not None:
            logger.debug(f"Dropping trailing EXTINF without URL: {pending['name']}")
            dropped += 1

        logger.info(f"Parsed {len(channels)} channels ({dropped} dropped)")

        return ParseResult(
            channels=channels,
            categories=sorted(categories),
            dropped=dropped,
        )

    def parse_bytes(self, data: bytes) -> ParseResult:
        """Decode uploaded playlist bytes as UTF-8 and parse them."""
        if not isinstance(data, (bytes, bytearray)):
            raise PlaylistParseError(
                f"Playlist data must be bytes, got {type(data).__name__}"
            )
        return self.parse(bytes(data).decode('utf-8-sig', errors='ignore'))

    def parse_file(self, filepath: str | Path) -> ParseResult:
        """
        Parse a local M3U file.

        Args:
            filepath: Path to the M3U file

        Returns:
            ParseResult for the file content
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"M3U file not found: {filepath}")

        logger.info(f"Parsing M3U file: {filepath}")
        return self.parse_bytes(filepath.read_bytes())

    def parse_extinf(self, line: str) -> dict:
        """
        Extract channel fields from an #EXTINF line.

        Attributes are read from the part before the last comma outside a
        quoted value; the text after that comma is the display name fallback.
        """
        body = line[len(EXTINF_PREFIX):]
        body = DURATION_PATTERN.sub('', body, count=1)

        separator = None
        for match in SEPARATOR_PATTERN.finditer(body):
            if match.group() == ',':
                separator = match.start()

        if separator is None:
            attributes, display_name = body, ''
        else:
            attributes, display_name = body[:separator], body[separator + 1:]

        entry = {
            'name': DEFAULT_CHANNEL_NAME,
            'logo': '',
            'group': DEFAULT_GROUP,
            'tvg_id': '',
        }
        named = False

        for key, value in ATTRIBUTE_PATTERN.findall(attributes):
            key = key.lower()
            if key == 'tvg-name':
                if value.strip():
                    entry['name'] = value.strip()
                    named = True
            elif key == 'tvg-logo':
                entry['logo'] = value.strip()
            elif key == 'group-title':
                if value.strip():
                    entry['group'] = value.strip()
            elif key == 'tvg-id':
                entry['tvg_id'] = value.strip()

        if not named and display_name.strip():
            entry['name'] = display_name.strip()

        return entry

    def is_valid_url(self, url: str) -> bool:
        """Check whether a line is a usable stream URL."""
        if url.startswith('//'):
            return True
        if STREAM_PREFIX_PATTERN.match(url):
            return True

        try:
            parts = urlsplit(url)
        except ValueError:
            return False
        return parts.scheme.lower() in self.stream_schemes and bool(parts.netloc)
