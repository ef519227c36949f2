"""
Pytest configuration and fixtures for IPTV viewer tests.
"""
import pytest
from fastapi.testclient import TestClient

from iptv_viewer.config import get_settings


@pytest.fixture
def sample_m3u_content():
    """Sample M3U content for testing."""
    return """#EXTM3U
#EXTINF:-1 tvg-id="ABC.us" tvg-name="ABC East" tvg-logo="https://example.com/abc.png" group-title="News",ABC
http://example.com/abc-east.m3u8
#EXTINF:-1 tvg-id="CNN.us" group-title="News",CNN (1080p)
http://example.com/cnn.m3u8
#EXTINF:-1 group-title="Movies",Movie Channel
https://example.com/movies.m3u8
#EXTINF:-1,Channel Without Group
rtmp://example.com/live/nogroup
"""


@pytest.fixture
def sample_m3u_file(sample_m3u_content, tmp_path):
    """Create a temporary M3U file for testing."""
    m3u_file = tmp_path / "news.m3u"
    m3u_file.write_text(sample_m3u_content, encoding="utf-8")
    return m3u_file


@pytest.fixture
def xtream_streams():
    """Raw get_live_streams payload."""
    return [
        {
            "num": 1,
            "name": "Sports One",
            "stream_type": "live",
            "stream_id": 101,
            "stream_icon": "http://panel.example.com/logos/s1.png",
            "epg_channel_id": "sports1.uk",
            "category_name": "Sports",
            "category_id": "5",
        },
        {
            "num": 2,
            "name": "",
            "stream_id": 102,
            "stream_icon": None,
            "epg_channel_id": None,
            "category_name": None,
        },
    ]


@pytest.fixture
def xtream_categories():
    """Raw get_live_categories payload, in server order."""
    return [
        {"category_id": "5", "category_name": "Sports", "parent_id": 0},
        {"category_id": "2", "category_name": "Documentaries", "parent_id": 0},
        {"category_id": "9", "category_name": "Kids", "parent_id": 0},
    ]


@pytest.fixture
def app_client(tmp_path, monkeypatch):
    """Test client for a fresh app with its own state database."""
    monkeypatch.setenv("IPTV_VIEWER_DATABASE_PATH", str(tmp_path / "state.db"))
    monkeypatch.setenv("IPTV_VIEWER_LOAD_SAMPLE_ON_STARTUP", "false")
    get_settings.cache_clear()

    from iptv_viewer.main import create_app

    with TestClient(create_app()) as client:
        yield client

    get_settings.cache_clear()
