"""
Xtream Codes API client.
Authenticates against player_api.php and retrieves raw live listings for
the normalizer.
"""
import httpx
import logging
from typing import Any, Optional

from iptv_viewer.services.fetcher import FetchError
from iptv_viewer.services.xtream import normalize_server_url

logger = logging.getLogger(__name__)


class XtreamAuthError(Exception):
    """Raised when the panel rejects the credentials."""


class XtreamClient:
    """Client for a single Xtream Codes account."""

    API_PATH = "/player_api.php"

    def __init__(
        self,
        server_url: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = normalize_server_url(server_url)
        self.username = username
        self.password = password
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self.user_info: Optional[dict] = None

    async def _get(self, action: Optional[str] = None, **params) -> Any:
        query = {"username": self.username, "password": self.password, **params}
        if action:
            query["action"] = action

        headers = {"Accept": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        url = f"{self.base_url}{self.API_PATH}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=query, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Xtream request {action or 'auth'} failed: HTTP {e.response.status_code}")
            raise FetchError(f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Xtream request {action or 'auth'} failed: {e}")
            raise FetchError(str(e) or type(e).__name__) from e
        except ValueError as e:
            # Body was not JSON
            logger.error(f"Xtream request {action or 'auth'} returned invalid JSON")
            raise FetchError("Invalid JSON response") from e

    async def authenticate(self) -> dict:
        """
        Check the credentials.

        Returns:
            The panel's user_info block

        Raises:
            XtreamAuthError: if the account is invalid or expired
        """
        data = await self._get()
        user_info = data.get("user_info") if isinstance(data, dict) else None
        if not user_info or str(user_info.get("auth")) != "1":
            logger.warning(f"Xtream authentication rejected for {self.username}@{self.base_url}")
            raise XtreamAuthError("Invalid credentials or expired account")

        self.user_info = user_info
        logger.info(f"Authenticated {self.username} on {self.base_url}")
        return user_info

    async def get_live_streams(self) -> Any:
        """Raw live stream records."""
        return await self._get("get_live_streams")

    async def get_live_categories(self) -> Any:
        """Raw live category records."""
        return await self._get("get_live_categories")

    async def get_short_epg(self, stream_id: int, limit: int = 5) -> Any:
        """Raw short EPG listing for a stream, passed through untouched."""
        return await self._get("get_short_epg", stream_id=stream_id, limit=limit)
