#!/usr/bin/env python3
"""
Flask Server Tests

Exercises the JSON API through Flask's test client. The tile proxy is
tested with a stub archive so no network access is needed.

Run with: python -m pytest _tests/test_server.py -v
"""

from collections import OrderedDict

import pytest

from map_viewer import server
from map_viewer.map_view import resolution_for_zoom
from map_viewer.source_lifecycle import SourceLoadError
from map_viewer.theme import DARK, LIGHT
from map_viewer.viewer_config_types import VIEWER_CONFIG, ViewerConfig


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def client():
    server.app.config["TESTING"] = True
    with server.app.test_client() as client:
        yield client


class StubArchive:
    def __init__(self, tiles=None, exc=None):
        self.tiles = tiles or {}
        self.exc = exc

    def get_tile(self, z, x, y):
        if self.exc is not None:
            raise self.exc
        return self.tiles.get((z, x, y))


# ============================================================================
# METADATA ROUTES
# ============================================================================


class TestMetadataRoutes:
    def test_config(self, client):
        data = client.get("/api/config").get_json()
        assert data["map"]["max_zoom"] == 28
        assert data["map"]["viewport_px"] == [1024, 512]
        assert data["basemap"]["attribution"] == "© OpenStreetMap"
        assert data["hitTolerancePx"] == 3

    def test_viewer(self, client):
        assert client.get("/api/viewer").get_json() == {
            "title": "Map Viewer",
            "description": "A map viewer.",
        }

    def test_compatibility(self, client):
        data = client.get("/api/compatibility?filename=World.PMTiles").get_json()
        assert data == {"compatible": True, "source_type": "pmtiles"}

        data = client.get("/api/compatibility?filename=a.csv").get_json()
        assert data == {"compatible": False, "source_type": None}

    def test_compatibility_needs_filename(self, client):
        assert client.get("/api/compatibility").status_code == 400

    def test_palette(self, client):
        light = client.get("/api/palette?color_mode=light").get_json()
        assert light["palette"]["water"] == LIGHT.water
        assert light["data_layer_style"]["fill"]["color"] == "rgba(0,0,0,0.7)"

        dark = client.get("/api/palette").get_json()
        assert dark["palette"]["name"] == DARK.name


# ============================================================================
# STYLE ROUTES
# ============================================================================


class TestStyle:
    def test_country_label(self, client):
        response = client.post(
            "/api/style",
            json={
                "layer": "places",
                "properties": {"pmap:kind": "country", "name:en": "france"},
                "zoom": 4,
                "color_mode": "light",
            },
        )
        assert response.status_code == 200
        style = response.get_json()
        assert style["kind"] == "text"
        assert style["text"]["text"] == "FRANCE"
        assert style["text"]["font"] == "800 11px monospace"
        assert style["text"]["fill_color"] == "#555555"
        assert style["text"]["halo_color"] == "white"

    def test_layer_from_properties_and_resolution(self, client):
        response = client.post(
            "/api/style",
            json={
                "properties": {"layer": "roads"},
                "resolution": resolution_for_zoom(16),
                "color_mode": "dark",
            },
        )
        style = response.get_json()
        assert style["stroke"] == {"color": DARK.roads, "width": 2, "line_dash": None}

    def test_landuse_is_null(self, client):
        response = client.post(
            "/api/style", json={"layer": "landuse", "properties": {}, "zoom": 12}
        )
        assert response.status_code == 200
        assert response.get_json() is None

    @pytest.mark.parametrize(
        "body",
        [
            {"layer": "roads", "properties": {}},
            {"layer": "roads", "properties": {}, "zoom": "high"},
            {"layer": "roads", "properties": {}, "resolution": 0},
            {"layer": "roads", "properties": [], "zoom": 3},
        ],
    )
    def test_bad_request(self, client, body):
        response = client.post("/api/style", json=body)
        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_missing_body(self, client):
        assert client.post("/api/style").status_code == 400

    def test_batch_keeps_order(self, client):
        response = client.post(
            "/api/style/batch",
            json={
                "color_mode": "light",
                "features": [
                    {"layer": "water", "properties": {}, "zoom": 3},
                    {"layer": "landuse", "properties": {}, "zoom": 3},
                    {"layer": "boundaries", "properties": {"pmap:min_admin_level": 4}, "zoom": 3},
                ],
            },
        )
        styles = response.get_json()["styles"]
        assert styles[0]["fill"]["color"] == LIGHT.water
        assert styles[1] is None
        assert styles[2]["stroke"]["width"] == 0.5
        assert styles[2]["stroke"]["line_dash"] == [2, 2]

    def test_batch_rejects_bad_item(self, client):
        response = client.post(
            "/api/style/batch", json={"features": [{"layer": "roads", "properties": {}}]}
        )
        assert response.status_code == 400

    def test_batch_needs_features(self, client):
        assert client.post("/api/style/batch", json={}).status_code == 400


# ============================================================================
# TILE PROXY
# ============================================================================


class TestTiles:
    BASEMAP_URL = VIEWER_CONFIG.basemap.url

    @pytest.fixture(autouse=True)
    def fresh_archives(self, monkeypatch):
        monkeypatch.setattr(server, "_archives", OrderedDict())

    def test_tile(self, client, monkeypatch):
        archive = StubArchive(tiles={(1, 0, 1): b"\x1a\x02pb"})
        monkeypatch.setattr(server, "_get_archive", lambda url: archive)

        response = client.get("/api/tiles/1/0/1", query_string={"url": self.BASEMAP_URL})
        assert response.status_code == 200
        assert response.mimetype == "application/x-protobuf"
        assert response.data == b"\x1a\x02pb"

    def test_absent_tile(self, client, monkeypatch):
        monkeypatch.setattr(server, "_get_archive", lambda url: StubArchive())
        response = client.get("/api/tiles/9/9/9", query_string={"url": self.BASEMAP_URL})
        assert response.status_code == 404

    def test_archive_failure(self, client, monkeypatch):
        failing = StubArchive(exc=SourceLoadError("u", "Range request failed"))
        monkeypatch.setattr(server, "_get_archive", lambda url: failing)
        response = client.get("/api/tiles/0/0/0", query_string={"url": self.BASEMAP_URL})
        assert response.status_code == 502

    def test_url_required(self, client):
        assert client.get("/api/tiles/0/0/0").status_code == 400

    def test_url_outside_allow_list_rejected(self, client, monkeypatch):
        opened = []
        monkeypatch.setattr(server, "_get_archive", opened.append)

        response = client.get(
            "/api/tiles/0/0/0", query_string={"url": "http://169.254.169.254/latest"}
        )
        assert response.status_code == 400
        assert response.get_json() == {"error": "Archive url not allowed"}
        assert opened == []
        assert len(server._archives) == 0

    def test_configured_archive_allowed(self, client, monkeypatch):
        config = ViewerConfig.from_dict(
            {"tiles": {"proxy_allowed_urls": ["https://example.org/w.pmtiles"]}}
        )
        monkeypatch.setattr(server, "VIEWER_CONFIG", config)
        monkeypatch.setattr(server, "_get_archive", lambda url: StubArchive())

        response = client.get(
            "/api/tiles/0/0/0", query_string={"url": "https://example.org/w.pmtiles"}
        )
        assert response.status_code == 404

    def test_opened_archives_are_bounded(self, monkeypatch):
        urls = [f"https://example.org/{name}.pmtiles" for name in "abc"]
        config = ViewerConfig.from_dict(
            {"tiles": {"proxy_allowed_urls": urls, "proxy_cache_size": 2}}
        )
        monkeypatch.setattr(server, "VIEWER_CONFIG", config)

        first = server._get_archive(urls[0])
        server._get_archive(urls[1])
        assert server._get_archive(urls[0]) is first
        server._get_archive(urls[2])

        assert list(server._archives) == [urls[0], urls[2]]
