"""
Request-scoped accessors for the objects owned by the application instance.
"""
from fastapi import HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from iptv_viewer.config import get_settings
from iptv_viewer.models.state import UserState, XtreamCredentials
from iptv_viewer.services.catalog import PlaylistCatalog
from iptv_viewer.services.fetcher import PlaylistFetcher
from iptv_viewer.services.m3u_parser import M3UParser
from iptv_viewer.services.storage import StateStore
from iptv_viewer.services.xtream_client import XtreamClient

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


def fetch_rate_limit() -> str:
    return get_settings().fetch_rate_limit


def get_catalog(request: Request) -> PlaylistCatalog:
    return request.app.state.catalog


def get_parser(request: Request) -> M3UParser:
    return request.app.state.parser


def get_store(request: Request) -> StateStore:
    return request.app.state.store


def get_fetcher(request: Request) -> PlaylistFetcher:
    return request.app.state.fetcher


def get_user_state(request: Request) -> UserState:
    return request.app.state.user_state


def make_xtream_client(request: Request, credentials: XtreamCredentials) -> XtreamClient:
    """Build a client for the given account using the app's HTTP settings."""
    settings = get_settings()
    return XtreamClient(
        credentials.server_url,
        credentials.username,
        credentials.password,
        timeout=settings.fetch_timeout_seconds,
        user_agent=settings.user_agent,
        transport=request.app.state.http_transport,
    )


async def require_credentials(request: Request) -> XtreamCredentials:
    """Saved Xtream credentials, or 401 if there are none."""
    credentials = await get_store(request).load_credentials()
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not connected to an Xtream server")
    return credentials


async def persist_state(request: Request) -> UserState:
    """Write the catalog's current state to the store."""
    state = get_catalog(request).export_state(get_user_state(request))
    request.app.state.user_state = state
    await get_store(request).save_state(state)
    return state
