"""
Playlist ingestion and saved-list API endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from iptv_viewer.dependencies import (
    fetch_rate_limit,
    get_catalog,
    get_fetcher,
    get_parser,
    limiter,
    persist_state,
)
from iptv_viewer.models.channel import PlaylistRecord
from iptv_viewer.services.fetcher import FetchError
from iptv_viewer.services.ingest import (
    EmptyPlaylistError,
    ingest_playlist,
    ingest_sample,
)
from iptv_viewer.services.m3u_parser import PlaylistParseError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/playlists", tags=["playlists"])


class TextPlaylistRequest(BaseModel):
    content: str
    name: Optional[str] = None


class UrlPlaylistRequest(BaseModel):
    url: str
    name: Optional[str] = None


def _summary(record: PlaylistRecord) -> dict:
    return {
        "id": record.id,
        "name": record.name,
        "source": record.source,
        "created_at": record.created_at,
        "count": record.count,
    }


async def _ingest(request: Request, content, source: str, name: Optional[str]) -> dict:
    catalog = get_catalog(request)
    try:
        record = ingest_playlist(catalog, get_parser(request), content, source, name)
    except PlaylistParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EmptyPlaylistError as e:
        raise HTTPException(status_code=422, detail=str(e))

    await persist_state(request)
    return {
        "playlist": _summary(record),
        "categories": catalog.categories,
        "total_channels": len(catalog.channels),
    }


@router.get("")
async def list_playlists(request: Request):
    """List saved playlists without their channels."""
    records = get_catalog(request).playlists
    return {"playlists": [_summary(r) for r in records], "count": len(records)}


@router.post("/text")
async def load_from_text(body: TextPlaylistRequest, request: Request):
    """Parse pasted M3U text."""
    return await _ingest(request, body.content, "text", body.name)


@router.post("/file")
async def load_from_file(
    request: Request,
    name: Optional[str] = Query(None, description="Name for the saved playlist"),
):
    """Parse an uploaded M3U file sent as the raw request body."""
    data = await request.body()
    return await _ingest(request, data, "file", name)


@router.post("/url")
@limiter.limit(fetch_rate_limit)
async def load_from_url(request: Request, body: UrlPlaylistRequest):
    """Download and parse a remote M3U playlist."""
    fetcher = get_fetcher(request)
    try:
        result = await fetcher.fetch_text(body.url)
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Failed to load playlist: {e}")

    if not fetcher.is_current(result.generation):
        logger.info(f"Discarding superseded playlist fetch {result.generation} for {body.url}")
        raise HTTPException(status_code=409, detail="Superseded by a newer playlist request")

    return await _ingest(request, result.content, "url", body.name)


@router.post("/sample")
async def load_sample(request: Request):
    """Load the bundled sample playlist."""
    catalog = get_catalog(request)
    record = ingest_sample(catalog, get_parser(request))
    await persist_state(request)
    return {
        "playlist": _summary(record),
        "categories": catalog.categories,
        "total_channels": len(catalog.channels),
    }


@router.get("/{playlist_id}")
async def get_playlist(playlist_id: str, request: Request):
    """Get a saved playlist with its channels."""
    record = get_catalog(request).get_playlist(playlist_id)
    if not record:
        raise HTTPException(status_code=404, detail="Playlist not found")
    return record


@router.post("/{playlist_id}/load")
async def load_saved_playlist(playlist_id: str, request: Request):
    """Replace the live channels with a saved playlist."""
    catalog = get_catalog(request)
    channels = catalog.load_playlist(playlist_id)
    if channels is None:
        raise HTTPException(status_code=404, detail="Playlist not found")
    return {"count": len(channels), "categories": catalog.categories}


@router.delete("/{playlist_id}")
async def delete_playlist(playlist_id: str, request: Request):
    """Delete a saved playlist."""
    if not get_catalog(request).delete_playlist(playlist_id):
        raise HTTPException(status_code=404, detail="Playlist not found")

    await persist_state(request)
    return {"deleted": True, "playlist_id": playlist_id}
