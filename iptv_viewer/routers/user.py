"""
User preference API endpoints.
"""
from fastapi import APIRouter, Request

from iptv_viewer.dependencies import get_catalog, get_user_state, persist_state
from iptv_viewer.models.state import Preferences

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/preferences")
async def get_preferences(request: Request) -> Preferences:
    """Get theme and volume."""
    return get_user_state(request).preferences


@router.put("/preferences")
async def update_preferences(preferences: Preferences, request: Request) -> Preferences:
    """Replace theme and volume."""
    state = get_user_state(request)
    request.app.state.user_state = state.model_copy(update={"preferences": preferences})
    saved = await persist_state(request)
    return saved.preferences


@router.get("/export")
async def export_data(request: Request):
    """Export current user data for backup."""
    return get_catalog(request).export_state(get_user_state(request))
