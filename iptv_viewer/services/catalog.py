"""
Playlist catalog.
Holds the live channel collection, its category index, favorites, watch
history and saved playlists for one application instance.
"""
import logging
import uuid
from collections import Counter
from typing import Iterable, Optional

from iptv_viewer.models.channel import Channel, PlaylistRecord, PlaylistSource
from iptv_viewer.models.state import UserState

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"
DEFAULT_HISTORY_LIMIT = 20


def dedupe_channels(channels: Iterable[Channel], existing: Iterable[Channel] = ()) -> list[Channel]:
    """
    Drop channels whose (name, url) pair is already in `existing` or earlier
    in `channels`. First occurrence wins.
    """
    seen = {channel.key for channel in existing}
    unique = []
    for channel in channels:
        if channel.key in seen:
            continue
        seen.add(channel.key)
        unique.append(channel)
    return unique


class PlaylistCatalog:
    """In-memory aggregate of loaded channels and user state."""

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.history_limit = history_limit
        self._channels: list[Channel] = []
        self._categories: list[str] = []
        self._favorite_ids: set[str] = set()
        self._history: list[str] = []
        self._playlists: list[PlaylistRecord] = []

    # ==================== CHANNELS ====================

    @property
    def channels(self) -> list[Channel]:
        """Snapshot of the live collection in insertion order."""
        return list(self._channels)

    @property
    def categories(self) -> list[str]:
        """Distinct channel groups, sorted."""
        return list(self._categories)

    def _reindex(self):
        self._categories = sorted({channel.group for channel in self._channels})

    def _apply_favorites(self, channels: Iterable[Channel]) -> list[Channel]:
        return [
            channel.model_copy(update={"is_favorite": channel.id in self._favorite_ids})
            if channel.is_favorite != (channel.id in self._favorite_ids) else channel
            for channel in channels
        ]

    def add_channels(self, new_channels: Iterable[Channel]) -> int:
        """
        Append channels to the live collection and rebuild the category index.

        No cross-source deduplication is applied; use dedupe_channels() first
        when merging sources that may overlap.
        """
        added = self._apply_favorites(new_channels)
        self._channels.extend(added)
        self._reindex()
        logger.info(f"Added {len(added)} channels ({len(self._channels)} total)")
        return len(added)

    def clear(self):
        """Drop every live channel. Favorites, history and saved lists stay."""
        self._channels = []
        self._reindex()

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        """Get a live channel by id."""
        for channel in self._channels:
            if channel.id == channel_id:
                return channel
        return None

    def filter(self, category: str = ALL_CATEGORIES, search_query: str = "") -> list[Channel]:
        """
        Filter the live collection.

        Args:
            category: Exact group to keep, or "all" for every group
            search_query: Case-insensitive substring matched against name or group

        Returns:
            New list in insertion order
        """
        results = self._channels

        if category != ALL_CATEGORIES:
            results = [ch for ch in results if ch.group == category]

        query = (search_query or "").strip().lower()
        if query:
            results = [
                ch for ch in results
                if query in ch.name.lower() or query in ch.group.lower()
            ]

        return list(results)

    def category_counts(self) -> dict[str, int]:
        """Channel count per category, in category order."""
        counts = Counter(channel.group for channel in self._channels)
        return {category: counts[category] for category in self._categories}

    @staticmethod
    def sort_channels(channels: Iterable[Channel]) -> list[Channel]:
        """Favorites first, then by name ignoring case."""
        return sorted(channels, key=lambda ch: (not ch.is_favorite, ch.name.lower()))

    # ==================== FAVORITES ====================

    def toggle_favorite(self, channel_id: str) -> Optional[Channel]:
        """
        Flip the favorite flag of a channel.

        Returns:
            The updated channel, or None if no live channel has this id
        """
        if self.get_channel(channel_id) is None:
            return None

        if channel_id in self._favorite_ids:
            self._favorite_ids.discard(channel_id)
        else:
            self._favorite_ids.add(channel_id)

        # Deterministic ids mean a duplicated stream shares its id
        self._channels = [
            self._apply_favorites([ch])[0] if ch.id == channel_id else ch
            for ch in self._channels
        ]
        return self.get_channel(channel_id)

    def favorites(self) -> list[Channel]:
        """Live channels marked as favorite."""
        return [ch for ch in self._channels if ch.is_favorite]

    # ==================== HISTORY ====================

    @property
    def history(self) -> list[str]:
        """Recently played channel ids, most recent first."""
        return list(self._history)

    def record_history(self, channel_id: str) -> list[str]:
        """Move a channel id to the front of the play history."""
        if channel_id in self._history:
            self._history.remove(channel_id)
        self._history.insert(0, channel_id)
        del self._history[self.history_limit:]
        return self.history

    def history_channels(self) -> list[Channel]:
        """Live channels from the history, most recent first."""
        channels = []
        for channel_id in self._history:
            channel = self.get_channel(channel_id)
            if channel:
                channels.append(channel)
        return channels

    # ==================== SAVED PLAYLISTS ====================

    @property
    def playlists(self) -> list[PlaylistRecord]:
        return list(self._playlists)

    def get_playlist(self, playlist_id: str) -> Optional[PlaylistRecord]:
        for record in self._playlists:
            if record.id == playlist_id:
                return record
        return None

    def save_playlist(self, name: str, channels: Iterable[Channel], source: PlaylistSource) -> PlaylistRecord:
        """Store a channel list as a new saved playlist."""
        channels = list(channels)
        record = PlaylistRecord(
            id=f"list_{uuid.uuid4().hex[:12]}",
            name=name,
            channels=channels,
            source=source,
            count=len(channels),
        )
        self._playlists.append(record)
        logger.info(f"Saved playlist '{name}' with {record.count} channels")
        return record

    def delete_playlist(self, playlist_id: str) -> bool:
        """Remove a saved playlist. Returns False if it does not exist."""
        record = self.get_playlist(playlist_id)
        if record is None:
            return False
        self._playlists.remove(record)
        return True

    def load_playlist(self, playlist_id: str) -> Optional[list[Channel]]:
        """
        Replace the live collection with a saved playlist's channels.

        Returns:
            The loaded channels, or None if the playlist does not exist
        """
        record = self.get_playlist(playlist_id)
        if record is None:
            return None

        self._channels = self._apply_favorites(record.channels)
        self._reindex()
        logger.info(f"Loaded playlist '{record.name}' with {record.count} channels")
        return self.channels

    # ==================== PERSISTENCE ====================

    def export_state(self, state: Optional[UserState] = None) -> UserState:
        """Build the persisted state, keeping preferences from `state`."""
        base = state or UserState()
        return base.model_copy(update={
            "favorites": sorted(self._favorite_ids),
            "history": self.history,
            "saved_playlists": self.playlists,
        })

    def restore_state(self, state: UserState):
        """Load favorites, history and saved playlists from persisted state."""
        self._favorite_ids = set(state.favorites)
        self._history = list(state.history)[:self.history_limit]
        self._playlists = list(state.saved_playlists)
        self._channels = self._apply_favorites(self._channels)
