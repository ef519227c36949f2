"""
Configuration management for the IPTV playlist viewer.
Uses pydantic-settings for environment variable loading.
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    app_name: str = "IPTV Playlist Viewer"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS Configuration
    # Default allows all origins for development; set IPTV_VIEWER_CORS_ORIGINS for production
    cors_origins: list[str] = ["*"]

    # Rate limit for endpoints that fetch remote playlists or Xtream APIs
    fetch_rate_limit: str = "30/minute"

    # Remote fetch
    fetch_timeout_seconds: float = 30.0
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

    # Channel parsing
    stream_schemes: list[str] = [
        "http", "https", "rtmp", "rtmps", "rtsp", "mms", "mmsh", "udp", "rtp"
    ]

    # Catalog
    history_limit: int = 20
    load_sample_on_startup: bool = True

    # Persistence
    database_path: str = "data/iptv_viewer.db"
    xtream_credentials_max_age_days: int = 30

    # Pydantic V2 configuration
    model_config = SettingsConfigDict(env_prefix="IPTV_VIEWER_", env_file=".env")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
