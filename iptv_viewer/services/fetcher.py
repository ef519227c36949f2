"""
Remote playlist fetching.
Downloads playlist text and tags each request with a generation number so
callers can tell when a slower request has been superseded by a newer one.
"""
import httpx
import logging
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

M3U_ACCEPT = "application/x-mpegurl, application/vnd.apple.mpegurl, text/plain"


class FetchError(Exception):
    """Raised when remote content could not be retrieved."""


class FetchResult(BaseModel):
    """Downloaded playlist text and the request generation that produced it."""
    url: str
    content: str
    generation: int


class PlaylistFetcher:
    """Fetch M3U playlists over HTTP."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of the most recently started request."""
        return self._generation

    def begin(self) -> int:
        """Start a new request generation and return its number."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        """True if no newer request has started since `generation`."""
        return generation == self._generation

    def _headers(self, accept: str) -> dict:
        headers = {"Accept": accept}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers

    async def fetch_text(self, url: str) -> FetchResult:
        """
        Download a playlist as text.

        Raises:
            FetchError: on network errors or non-2xx responses
        """
        generation = self.begin()
        logger.info(f"Fetching playlist from {url} (request {generation})")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url, headers=self._headers(M3U_ACCEPT))
                response.raise_for_status()
                content = response.text
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to fetch {url}: HTTP {e.response.status_code}")
            raise FetchError(f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise FetchError(str(e) or type(e).__name__) from e

        logger.info(f"Fetched {len(content)} characters from {url}")
        return FetchResult(url=url, content=content, generation=generation)
