"""
Xtream Codes account API endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from iptv_viewer.config import get_settings
from iptv_viewer.dependencies import (
    fetch_rate_limit,
    get_catalog,
    get_store,
    limiter,
    make_xtream_client,
    persist_state,
    require_credentials,
)
from iptv_viewer.models.state import XtreamCredentials
from iptv_viewer.services.fetcher import FetchError
from iptv_viewer.services.ingest import EmptyPlaylistError, ingest_xtream
from iptv_viewer.services.xtream import (
    XtreamPayloadError,
    normalize_categories,
    normalize_server_url,
)
from iptv_viewer.services.xtream_client import XtreamAuthError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/xtream", tags=["xtream"])


class ConnectRequest(BaseModel):
    server_url: str
    username: str
    password: str


class LoadRequest(BaseModel):
    name: Optional[str] = None


@router.post("/connect")
@limiter.limit(fetch_rate_limit)
async def connect(request: Request, body: ConnectRequest):
    """Authenticate an Xtream account and remember it."""
    credentials = XtreamCredentials(
        server_url=normalize_server_url(body.server_url),
        username=body.username,
        password=body.password,
    )
    client = make_xtream_client(request, credentials)
    try:
        user_info = await client.authenticate()
    except XtreamAuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Could not reach server: {e}")

    settings = get_settings()
    await get_store(request).save_credentials(
        credentials, max_age_days=settings.xtream_credentials_max_age_days
    )
    return {"connected": True, "server_url": credentials.server_url, "user_info": user_info}


@router.get("/status")
async def status(request: Request):
    """Whether Xtream credentials are saved."""
    credentials = await get_store(request).load_credentials()
    if credentials is None:
        return {"connected": False}
    return {
        "connected": True,
        "server_url": credentials.server_url,
        "username": credentials.username,
        "saved_at": credentials.saved_at,
    }


@router.post("/load")
@limiter.limit(fetch_rate_limit)
async def load_channels(request: Request, body: Optional[LoadRequest] = None):
    """Fetch live streams of the connected account into the catalog."""
    credentials = await require_credentials(request)
    client = make_xtream_client(request, credentials)

    try:
        streams = await client.get_live_streams()
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Failed to load channels: {e}")

    catalog = get_catalog(request)
    try:
        record = ingest_xtream(
            catalog,
            streams,
            client.base_url,
            credentials.username,
            credentials.password,
            name=body.name if body else None,
        )
    except XtreamPayloadError as e:
        logger.error(f"Unexpected Xtream stream payload: {e}")
        raise HTTPException(status_code=502, detail="Server returned an invalid stream list")
    except EmptyPlaylistError as e:
        raise HTTPException(status_code=422, detail=str(e))

    await persist_state(request)
    return {
        "playlist": {"id": record.id, "name": record.name, "count": record.count},
        "categories": catalog.categories,
        "total_channels": len(catalog.channels),
    }


@router.get("/categories")
async def list_categories(request: Request):
    """Live categories of the connected account in server order."""
    credentials = await require_credentials(request)
    client = make_xtream_client(request, credentials)

    try:
        categories = normalize_categories(await client.get_live_categories())
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Failed to load categories: {e}")
    except XtreamPayloadError as e:
        logger.error(f"Unexpected Xtream category payload: {e}")
        raise HTTPException(status_code=502, detail="Server returned an invalid category list")

    return {"categories": categories}


@router.get("/epg/{channel_id}")
async def short_epg(channel_id: str, request: Request):
    """Short EPG of an Xtream channel, passed through from the server."""
    stream_id = channel_id.removeprefix("xtream_")
    if not stream_id.isdigit():
        raise HTTPException(status_code=404, detail="Not an Xtream channel")

    credentials = await require_credentials(request)
    client = make_xtream_client(request, credentials)
    try:
        return await client.get_short_epg(int(stream_id))
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Failed to load EPG: {e}")


@router.delete("/credentials")
async def disconnect(request: Request):
    """Forget the saved Xtream account."""
    removed = await get_store(request).clear_credentials()
    return {"disconnected": removed}
