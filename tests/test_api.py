"""
Integration tests for the HTTP API.
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from iptv_viewer.config import get_settings
from iptv_viewer.services.fetcher import PlaylistFetcher


def load_text(client, content, name="Test List"):
    return client.post("/api/playlists/text", json={"content": content, "name": name})


class TestHealth:

    def test_health(self, app_client):
        response = app_client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_starts_empty_without_sample(self, app_client):
        stats = app_client.get("/api/stats").json()
        assert stats["total_channels"] == 0


class TestPlaylistEndpoints:
    """Test playlist ingestion and saved lists."""

    def test_load_text(self, app_client, sample_m3u_content):
        response = load_text(app_client, sample_m3u_content)
        assert response.status_code == 200

        data = response.json()
        assert data["playlist"]["name"] == "Test List"
        assert data["playlist"]["source"] == "text"
        assert data["playlist"]["count"] == 4
        assert data["categories"] == ["General", "Movies", "News"]

        saved = app_client.get("/api/playlists").json()
        assert saved["count"] == 1

    def test_empty_playlist_rejected(self, app_client):
        response = load_text(app_client, "#EXTM3U\n#EXTINF:-1,Bad\nnot a url\n")
        assert response.status_code == 422
        assert app_client.get("/api/playlists").json()["count"] == 0

    def test_load_file_body(self, app_client, sample_m3u_content):
        response = app_client.post(
            "/api/playlists/file?name=upload.m3u",
            content=sample_m3u_content.encode("utf-8"),
            headers={"Content-Type": "audio/x-mpegurl"},
        )
        assert response.status_code == 200
        assert response.json()["playlist"]["source"] == "file"
        assert response.json()["playlist"]["name"] == "upload.m3u"

    def test_load_file_body_with_bom(self, app_client):
        body = "\ufeff#EXTM3U\n#EXTINF:-1 group-title=\"News\",Bom News\nhttp://example.com/bom.m3u8\n"
        response = app_client.post("/api/playlists/file", content=body.encode("utf-8"))
        assert response.status_code == 200
        assert response.json()["categories"] == ["News"]

        channel = app_client.get("/api/channels").json()["channels"][0]
        assert channel["name"] == "Bom News"

    def test_load_sample(self, app_client):
        response = app_client.post("/api/playlists/sample")
        assert response.status_code == 200
        assert response.json()["playlist"]["source"] == "sample"
        assert response.json()["total_channels"] == 4

    def test_load_url(self, app_client, sample_m3u_content):
        def handler(request):
            return httpx.Response(200, text=sample_m3u_content)

        app_client.app.state.fetcher = PlaylistFetcher(transport=httpx.MockTransport(handler))
        response = app_client.post(
            "/api/playlists/url",
            json={"url": "http://lists.example.com/news.m3u"},
        )
        assert response.status_code == 200
        assert response.json()["playlist"]["source"] == "url"
        assert response.json()["playlist"]["name"].startswith("Playlist ")

    def test_load_url_upstream_failure(self, app_client):
        def handler(request):
            return httpx.Response(503)

        app_client.app.state.fetcher = PlaylistFetcher(transport=httpx.MockTransport(handler))
        response = app_client.post("/api/playlists/url", json={"url": "http://down.example.com/x.m3u"})
        assert response.status_code == 502

    def test_superseded_fetch_discarded(self, app_client, sample_m3u_content):
        def handler(request):
            # A newer request starts while this one is in flight
            fetcher.begin()
            return httpx.Response(200, text=sample_m3u_content)

        fetcher = PlaylistFetcher(transport=httpx.MockTransport(handler))
        app_client.app.state.fetcher = fetcher

        response = app_client.post("/api/playlists/url", json={"url": "http://slow.example.com/x.m3u"})
        assert response.status_code == 409
        assert app_client.get("/api/stats").json()["total_channels"] == 0

    def test_saved_playlist_lifecycle(self, app_client, sample_m3u_content):
        first = load_text(app_client, sample_m3u_content, name="First").json()["playlist"]
        load_text(app_client, "#EXTINF:-1 group-title=\"Extra\",Extra\nhttp://example.com/extra\n", name="Second")
        assert app_client.get("/api/stats").json()["total_channels"] == 5

        detail = app_client.get(f"/api/playlists/{first['id']}").json()
        assert len(detail["channels"]) == 4

        loaded = app_client.post(f"/api/playlists/{first['id']}/load").json()
        assert loaded["count"] == 4
        assert "Extra" not in loaded["categories"]

        assert app_client.delete(f"/api/playlists/{first['id']}").status_code == 200
        assert app_client.delete(f"/api/playlists/{first['id']}").status_code == 404
        assert app_client.post(f"/api/playlists/{first['id']}/load").status_code == 404


class TestChannelEndpoints:
    """Test browsing, favorites and history."""

    def test_filter(self, app_client, sample_m3u_content):
        load_text(app_client, sample_m3u_content)

        everything = app_client.get("/api/channels").json()
        assert everything["total"] == 4

        news = app_client.get("/api/channels", params={"category": "News", "search": "cnn"}).json()
        assert [c["name"] for c in news["channels"]] == ["CNN (1080p)"]

        categories = app_client.get("/api/categories").json()["categories"]
        assert {"name": "News", "channel_count": 2} in categories

    def test_favorite_and_history(self, app_client, sample_m3u_content):
        load_text(app_client, sample_m3u_content)
        channel_id = app_client.get("/api/channels").json()["channels"][2]["id"]

        response = app_client.post(f"/api/channels/{channel_id}/favorite")
        assert response.json() == {"channel_id": channel_id, "is_favorite": True}
        assert app_client.get("/api/favorites").json()["count"] == 1

        sorted_channels = app_client.get("/api/channels", params={"sort": True}).json()["channels"]
        assert sorted_channels[0]["id"] == channel_id

        played = app_client.post(f"/api/channels/{channel_id}/play").json()
        assert played["url"] == "https://example.com/movies.m3u8"
        assert app_client.get("/api/history").json()["history"] == [channel_id]

    def test_unknown_channel(self, app_client):
        assert app_client.post("/api/channels/ch_missing/favorite").status_code == 404
        assert app_client.post("/api/channels/ch_missing/play").status_code == 404
        assert app_client.get("/api/channels/ch_missing").status_code == 404

    def test_clear(self, app_client, sample_m3u_content):
        load_text(app_client, sample_m3u_content)
        assert app_client.delete("/api/channels").status_code == 200
        assert app_client.get("/api/channels").json()["total"] == 0
        assert app_client.get("/api/playlists").json()["count"] == 1


class TestPersistence:
    """Test that state survives an application restart."""

    def test_state_survives_restart(self, tmp_path, monkeypatch, sample_m3u_content):
        monkeypatch.setenv("IPTV_VIEWER_DATABASE_PATH", str(tmp_path / "state.db"))
        monkeypatch.setenv("IPTV_VIEWER_LOAD_SAMPLE_ON_STARTUP", "false")
        get_settings.cache_clear()
        from iptv_viewer.main import create_app

        with TestClient(create_app()) as client:
            playlist_id = load_text(client, sample_m3u_content).json()["playlist"]["id"]
            channel_id = client.get("/api/channels").json()["channels"][0]["id"]
            client.post(f"/api/channels/{channel_id}/favorite")
            client.put("/api/user/preferences", json={"theme": "light", "volume": 0.4})

        with TestClient(create_app()) as client:
            assert client.get("/api/channels").json()["total"] == 0
            client.post(f"/api/playlists/{playlist_id}/load")

            channel = client.get(f"/api/channels/{channel_id}").json()
            assert channel["is_favorite"] is True
            assert client.get("/api/user/preferences").json() == {"theme": "light", "volume": 0.4}

        get_settings.cache_clear()

    def test_sample_loaded_on_startup(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IPTV_VIEWER_DATABASE_PATH", str(tmp_path / "state.db"))
        monkeypatch.setenv("IPTV_VIEWER_LOAD_SAMPLE_ON_STARTUP", "true")
        get_settings.cache_clear()
        from iptv_viewer.main import create_app

        with TestClient(create_app()) as client:
            assert client.get("/api/stats").json()["total_channels"] == 4
            assert client.get("/api/playlists").json()["count"] == 0

        get_settings.cache_clear()

    def test_export_does_not_write(self, app_client, sample_m3u_content):
        load_text(app_client, sample_m3u_content)
        channel_id = app_client.get("/api/channels").json()["channels"][0]["id"]
        app_client.app.state.catalog.toggle_favorite(channel_id)

        exported = app_client.get("/api/user/export").json()
        assert exported["favorites"] == [channel_id]

        stored = app_client.portal.call(app_client.app.state.store.load_state)
        assert stored.favorites == []

    def test_invalid_preferences_rejected(self, app_client):
        response = app_client.put("/api/user/preferences", json={"theme": "neon", "volume": 2})
        assert response.status_code == 422


class TestXtreamEndpoints:
    """Test the Xtream account flow against a mocked panel."""

    @pytest.fixture
    def panel(self, app_client, xtream_streams, xtream_categories):
        def handler(request):
            params = request.url.params
            if params["password"] != "s3cret":
                return httpx.Response(200, json={"user_info": {"auth": 0}})
            action = params.get("action")
            if action == "get_live_streams":
                return httpx.Response(200, json=xtream_streams)
            if action == "get_live_categories":
                return httpx.Response(200, json=xtream_categories)
            if action == "get_short_epg":
                return httpx.Response(200, json={"epg_listings": []})
            return httpx.Response(200, json={"user_info": {"auth": 1}})

        app_client.app.state.http_transport = httpx.MockTransport(handler)
        return app_client

    def connect(self, client, password="s3cret"):
        return client.post("/api/xtream/connect", json={
            "server_url": "panel.example.com:8080/",
            "username": "alice",
            "password": password,
        })

    def test_not_connected(self, panel):
        assert panel.get("/api/xtream/status").json() == {"connected": False}
        assert panel.post("/api/xtream/load").status_code == 401

    def test_bad_credentials(self, panel):
        assert self.connect(panel, password="nope").status_code == 401
        assert panel.get("/api/xtream/status").json()["connected"] is False

    def test_connect_and_load(self, panel):
        response = self.connect(panel)
        assert response.status_code == 200
        assert response.json()["server_url"] == "http://panel.example.com:8080"

        loaded = panel.post("/api/xtream/load", json={"name": "My Panel"}).json()
        assert loaded["playlist"]["count"] == 2
        assert loaded["playlist"]["name"] == "My Panel"

        channel = panel.get("/api/channels/xtream_101").json()
        assert channel["url"] == "http://panel.example.com:8080/live/alice/s3cret/101.m3u8"

        categories = panel.get("/api/xtream/categories").json()["categories"]
        assert categories == ["Sports", "Documentaries", "Kids"]

        assert panel.get("/api/xtream/epg/xtream_101").json() == {"epg_listings": []}
        assert panel.get("/api/xtream/epg/ch_abc").status_code == 404

    def test_disconnect(self, panel):
        self.connect(panel)
        assert panel.delete("/api/xtream/credentials").json() == {"disconnected": True}
        assert panel.get("/api/xtream/status").json() == {"connected": False}
