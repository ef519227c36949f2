"""
SQLite-backed state store.
Persists favorites, history, saved playlists, preferences and Xtream
credentials as JSON values in a key-value table.
"""
import aiosqlite
import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Any

from pydantic import ValidationError

from iptv_viewer.models.state import UserState, XtreamCredentials

logger = logging.getLogger(__name__)

STATE_KEY = "user_state"
CREDENTIALS_KEY = "xtream_credentials"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StateStore:
    """Async SQLite key-value store for user state."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._ensure_directory()

    def _ensure_directory(self):
        """Create data directory if it doesn't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self):
        """Create the key-value table if it doesn't exist."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at TIMESTAMP,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            await db.execute("CREATE INDEX IF NOT EXISTS idx_kv_expires ON kv(expires_at)")
            await db.commit()

    async def get(self, key: str) -> Optional[Any]:
        """Get stored value if present and not expired."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT value FROM kv WHERE key = ? AND (expires_at IS NULL OR expires_at > ?)",
                (key, _now())
            )
            row = await cursor.fetchone()
            if row:
                return json.loads(row[0])
            return None

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None):
        """Store a JSON-serializable value, optionally with a TTL."""
        expires_at = None
        if ttl_seconds is not None:
            expires_at = (datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)).isoformat()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT OR REPLACE INTO kv (key, value, expires_at)
                   VALUES (?, ?, ?)""",
                (key, json.dumps(value), expires_at)
            )
            await db.commit()

    async def delete(self, key: str) -> bool:
        """Remove a key. Returns False if it was not stored."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM kv WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0

    async def clear_expired(self):
        """Remove expired entries."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "DELETE FROM kv WHERE expires_at IS NOT NULL AND expires_at < ?",
                (_now(),)
            )
            await db.commit()

    # ==================== USER STATE ====================

    async def load_state(self) -> UserState:
        """Load persisted user state; a missing or unreadable blob yields defaults."""
        data = await self.get(STATE_KEY)
        if data is None:
            return UserState()
        try:
            return UserState.model_validate(data)
        except ValidationError as e:
            logger.error(f"Stored user state is invalid, starting fresh: {e}")
            return UserState()

    async def save_state(self, state: UserState):
        """Persist user state."""
        await self.set(STATE_KEY, state.model_dump(mode="json"))

    # ==================== XTREAM CREDENTIALS ====================

    async def load_credentials(self) -> Optional[XtreamCredentials]:
        """Get saved Xtream credentials unless they have expired."""
        data = await self.get(CREDENTIALS_KEY)
        if data is None:
            return None
        try:
            return XtreamCredentials.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding invalid stored credentials: {e}")
            await self.clear_credentials()
            return None

    async def save_credentials(self, credentials: XtreamCredentials, max_age_days: int = 30):
        """Persist Xtream credentials with an expiry."""
        await self.set(
            CREDENTIALS_KEY,
            credentials.model_dump(mode="json"),
            ttl_seconds=max_age_days * 86400,
        )

    async def clear_credentials(self) -> bool:
        """Forget saved Xtream credentials."""
        return await self.delete(CREDENTIALS_KEY)
