"""
Channel browsing API endpoints.
"""
from fastapi import APIRouter, Query, HTTPException, Request

from iptv_viewer.dependencies import get_catalog, persist_state
from iptv_viewer.models.channel import ChannelListResponse
from iptv_viewer.services.catalog import ALL_CATEGORIES

router = APIRouter(prefix="/api", tags=["channels"])


@router.get("/channels", response_model=ChannelListResponse)
async def list_channels(
    request: Request,
    category: str = Query(ALL_CATEGORIES, description="Exact category, or 'all'"),
    search: str = Query("", description="Search in channel names and categories"),
    sort: bool = Query(False, description="Favorites first, then alphabetical"),
):
    """
    List live channels.

    - **category**: Category name from /api/categories, or `all`
    - **search**: Case-insensitive term matched against name and category
    - **sort**: Sort favorites first and by name instead of playlist order
    """
    catalog = get_catalog(request)
    channels = catalog.filter(category, search)
    if sort:
        channels = catalog.sort_channels(channels)

    return ChannelListResponse(
        channels=channels,
        total=len(channels),
        category=category,
        search=search,
    )


@router.delete("/channels")
async def clear_channels(request: Request):
    """Remove every live channel. Saved playlists are kept."""
    get_catalog(request).clear()
    return {"cleared": True}


@router.get("/channels/{channel_id}")
async def get_channel(channel_id: str, request: Request):
    """Get a single live channel."""
    channel = get_catalog(request).get_channel(channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    return channel


@router.post("/channels/{channel_id}/favorite")
async def toggle_favorite(channel_id: str, request: Request):
    """Add or remove a channel from favorites."""
    channel = get_catalog(request).toggle_favorite(channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")

    await persist_state(request)
    return {"channel_id": channel_id, "is_favorite": channel.is_favorite}


@router.post("/channels/{channel_id}/play")
async def play_channel(channel_id: str, request: Request):
    """
    Record a play of a channel and return its stream URL for the player.
    """
    catalog = get_catalog(request)
    channel = catalog.get_channel(channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")

    history = catalog.record_history(channel_id)
    await persist_state(request)
    return {"channel": channel, "url": channel.url, "history": history}


@router.get("/categories")
async def list_categories(request: Request):
    """List categories of the live channels with counts."""
    catalog = get_catalog(request)
    counts = catalog.category_counts()
    return {
        "categories": [{"name": name, "channel_count": count} for name, count in counts.items()],
        "total_channels": len(catalog.channels),
    }


@router.get("/favorites")
async def list_favorites(request: Request):
    """Live channels marked as favorite."""
    channels = get_catalog(request).favorites()
    return {"channels": channels, "count": len(channels)}


@router.get("/history")
async def get_history(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
):
    """Recently played channels, most recent first."""
    catalog = get_catalog(request)
    channels = catalog.history_channels()[:limit]
    return {"history": catalog.history[:limit], "channels": channels, "count": len(channels)}
