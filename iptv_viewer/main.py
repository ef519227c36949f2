"""
IPTV Playlist Viewer - FastAPI Backend

Loads M3U playlists and Xtream Codes accounts into a browsable channel
catalog with favorites, history and saved lists.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from iptv_viewer.config import get_settings
from iptv_viewer.dependencies import get_catalog, limiter
from iptv_viewer.routers import channels, playlists, user, xtream
from iptv_viewer.services.catalog import PlaylistCatalog
from iptv_viewer.services.fetcher import PlaylistFetcher
from iptv_viewer.services.ingest import SAMPLE_PLAYLIST
from iptv_viewer.services.m3u_parser import M3UParser
from iptv_viewer.services.storage import StateStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Starting IPTV Playlist Viewer...")
    settings = get_settings()

    store = StateStore(settings.database_path)
    await store.initialize()
    await store.clear_expired()
    state = await store.load_state()
    logger.info(
        f"State loaded: {len(state.saved_playlists)} saved playlists, "
        f"{len(state.favorites)} favorites"
    )

    catalog = PlaylistCatalog(history_limit=settings.history_limit)
    catalog.restore_state(state)
    parser = M3UParser(settings.stream_schemes)

    if settings.load_sample_on_startup and not catalog.channels:
        catalog.add_channels(parser.parse(SAMPLE_PLAYLIST).channels)
        logger.info("Catalog empty, loaded sample channels")

    app.state.store = store
    app.state.catalog = catalog
    app.state.parser = parser
    app.state.user_state = state
    app.state.http_transport = None
    app.state.fetcher = PlaylistFetcher(
        timeout=settings.fetch_timeout_seconds,
        user_agent=settings.user_agent,
    )

    yield

    await store.save_state(catalog.export_state(app.state.user_state))
    logger.info("Shutting down IPTV Playlist Viewer...")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Browse and play channels from M3U playlists and Xtream Codes accounts",
        lifespan=lifespan
    )

    # Add rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(channels.router)
    app.include_router(playlists.router)
    app.include_router(xtream.router)
    app.include_router(user.router)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    @app.get("/api/stats")
    async def get_stats(request: Request):
        """Get catalog statistics."""
        catalog = get_catalog(request)
        return {
            "total_channels": len(catalog.channels),
            "total_categories": len(catalog.categories),
            "favorites": len(catalog.favorites()),
            "saved_playlists": len(catalog.playlists),
        }

    # Error handlers
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "iptv_viewer.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
