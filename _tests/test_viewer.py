#!/usr/bin/env python3
"""
Viewer Shell Tests

Tests:
1. Compatibility check and viewer metadata
2. Document load-end fits the view to the data
3. Loading / error overlay text
4. Popup rows and color mode switching
5. Archive tiles under a click and styled basemap tiles
6. Disposal

Run with: python -m pytest _tests/test_viewer.py -v
"""

import json

import mapbox_vector_tile
import pytest

from map_viewer.data_sources import TiledArchiveSource
from map_viewer.selection import SelectionStatus
from map_viewer.source_lifecycle import SourceEvent, SourceLoadError
from map_viewer.theme import DARK, LIGHT
from map_viewer.viewer import (
    ERROR_MESSAGE,
    LOADING_MESSAGE,
    VIEWER_METADATA,
    MapViewer,
    compatibility_check,
)


# ============================================================================
# FIXTURES
# ============================================================================


SQUARE = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[-10, -10], [10, -10], [10, 10], [-10, 10], [-10, -10]]],
            },
            "properties": {"name": "square", "code": None, "area": 400},
        }
    ],
}


ARCHIVE_URL = "https://example.org/world.pmtiles"


class TileArchive:
    def __init__(self, tiles, max_zoom=0, exc=None):
        self.tiles = tiles
        self.max_zoom = max_zoom
        self.exc = exc

    def header(self):
        return {"min_zoom": 0, "max_zoom": self.max_zoom}

    def get_tile(self, z, x, y):
        if self.exc is not None:
            raise self.exc
        return self.tiles.get((z, x, y))


def encode_tile(layers):
    return mapbox_vector_tile.encode(
        [{"name": name, "features": features} for name, features in layers.items()]
    )


@pytest.fixture
def document(tmp_path):
    path = tmp_path / "square.geojson"
    path.write_text(json.dumps(SQUARE), encoding="utf-8")
    return path


@pytest.fixture
def viewer(document):
    viewer = MapViewer(str(document), document.name, color_mode="light")
    yield viewer
    viewer.dispose()


# ============================================================================
# METADATA
# ============================================================================


class TestMetadata:
    @pytest.mark.parametrize(
        "name,ok",
        [("a.pmtiles", True), ("A.GEOJSON", True), ("a.json", False), ("a.shp", False)],
    )
    def test_compatibility(self, name, ok):
        assert compatibility_check(name) is ok
        assert VIEWER_METADATA.compatibility_check(name) is ok

    def test_metadata(self):
        assert VIEWER_METADATA.to_dict() == {
            "title": "Map Viewer",
            "description": "A map viewer.",
        }

    def test_incompatible_file_rejected(self):
        with pytest.raises(ValueError):
            MapViewer("u", "notes.txt")


# ============================================================================
# LOADING
# ============================================================================


class TestDocumentLoading:
    @pytest.mark.asyncio
    async def test_load_end_fits_view(self, viewer):
        assert viewer.view.zoom == 0
        await viewer.open()

        assert not viewer.loading
        assert not viewer.error
        assert viewer.status_message is None
        lon, lat = viewer.view.center
        assert lon == pytest.approx(0.0, abs=1e-6)
        assert lat == pytest.approx(0.0, abs=1e-6)
        assert 5.0 < viewer.view.zoom < 5.3

    @pytest.mark.asyncio
    async def test_missing_file_shows_error(self, tmp_path):
        viewer = MapViewer(str(tmp_path / "gone.geojson"), "gone.geojson")
        await viewer.open()
        assert viewer.error
        assert viewer.status_message == ERROR_MESSAGE
        assert viewer.view.zoom == 0

    def test_loading_message(self, viewer):
        viewer.source.emit(SourceEvent.LOAD_START)
        assert viewer.loading
        assert viewer.status_message == LOADING_MESSAGE

    def test_error_wins_over_loading(self, viewer):
        viewer.source.emit(SourceEvent.LOAD_START)
        viewer.source.emit(SourceEvent.LOAD_ERROR, error=SourceLoadError("u", "x"))
        assert viewer.status_message == ERROR_MESSAGE

    def test_archive_source_has_nothing_to_open(self):
        viewer = MapViewer("https://example.org/world.pmtiles", "world.pmtiles")
        assert viewer.status_message is None
        assert not viewer.loading


# ============================================================================
# INTERACTION
# ============================================================================


class TestInteraction:
    @pytest.mark.asyncio
    async def test_click_fills_popup_rows(self, viewer):
        await viewer.open()
        width, height = viewer.view.viewport_px

        viewer.click((width / 2, height / 2))
        await viewer.selection.settle()

        assert viewer.selection.status is SelectionStatus.SELECTED
        assert viewer.popup_rows == ["name:square", "code:", "area:400"]
        assert viewer.overlay.visible

    @pytest.mark.asyncio
    async def test_popup_shows_only_clicked_feature_properties(self, tmp_path):
        cities = {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [-5.0, 0.0]},
                    "properties": {"name": "Paris"},
                },
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [5.0, 0.0]},
                    "properties": {"name": "Lyon", "population": 516092},
                },
            ],
        }
        path = tmp_path / "cities.geojson"
        path.write_text(json.dumps(cities), encoding="utf-8")
        viewer = MapViewer(str(path), path.name)
        await viewer.open()

        viewer.click(viewer.view.coordinate_to_pixel((-5.0, 0.0)))
        await viewer.selection.settle()
        assert viewer.selected == (("name", "Paris"),)
        assert viewer.popup_rows == ["name:Paris"]

        viewer.click(viewer.view.coordinate_to_pixel((5.0, 0.0)))
        await viewer.selection.settle()
        assert viewer.popup_rows == ["name:Lyon", "population:516092"]
        viewer.dispose()

    @pytest.mark.asyncio
    async def test_click_outside_hides_popup(self, viewer):
        await viewer.open()
        viewer.click((1, 1))
        await viewer.selection.settle()
        assert viewer.selected is None
        assert viewer.popup_rows == []
        assert not viewer.overlay.visible

    def test_zoom_controls(self, viewer):
        viewer.zoom_in()
        viewer.zoom_in()
        viewer.zoom_out()
        assert viewer.view.zoom == 1

    def test_attribution(self, viewer):
        assert viewer.attribution == "© OpenStreetMap"


class TestColorMode:
    def test_switch_swaps_data_layer_style(self, viewer):
        assert viewer.palette is LIGHT
        assert viewer.source.layer.style.fill.color == "rgba(0,0,0,0.7)"

        assert viewer.set_color_mode("dark") is DARK
        assert viewer.source.layer.style.fill.color == "rgba(255,255,255,0.5)"

    def test_switch_swaps_basemap_style(self, viewer):
        water = {"layer": "water"}
        assert viewer.basemap_style(water, 1000.0).fill.color == LIGHT.water
        viewer.set_color_mode(None)
        assert viewer.basemap_style(water, 1000.0).fill.color == DARK.water


# ============================================================================
# ARCHIVE AND BASEMAP TILES
# ============================================================================


class TestArchiveTiles:
    @pytest.mark.asyncio
    async def test_click_hits_feature_from_fetched_tile(self):
        tile = encode_tile(
            {"places": [{"geometry": "POINT(2048 2048)", "properties": {"name": "Null Island"}}]}
        )
        source = TiledArchiveSource(ARCHIVE_URL, archive=TileArchive({(0, 0, 0): tile}))
        viewer = MapViewer(ARCHIVE_URL, "world.pmtiles", source=source)
        await viewer.open()

        width, height = viewer.view.viewport_px
        viewer.click((width / 2, height / 2))
        await viewer.selection.settle()

        assert viewer.selected == (("name", "Null Island"), ("layer", "places"))
        assert viewer.popup_rows == ["name:Null Island", "layer:places"]
        assert not viewer.error
        viewer.dispose()

    @pytest.mark.asyncio
    async def test_refresh_after_zoom_loads_new_tiles(self):
        tile = encode_tile(
            {"roads": [{"geometry": "POINT(2048 2048)", "properties": {"name": "A1"}}]}
        )
        archive = TileArchive({(1, 1, 0): tile}, max_zoom=1)
        source = TiledArchiveSource(ARCHIVE_URL, archive=archive)
        viewer = MapViewer(ARCHIVE_URL, "world.pmtiles", source=source)
        await viewer.open()
        assert len(source.layer) == 0

        viewer.zoom_in()
        await viewer.refresh()
        assert [r.feature.get("name") for r in source.layer.features] == ["A1"]
        viewer.dispose()


class TestBasemapTiles:
    @pytest.mark.asyncio
    async def test_tile_styled_with_palette(self, viewer):
        tile = encode_tile(
            {
                "water": [
                    {"geometry": "POLYGON((0 0, 4096 0, 4096 4096, 0 4096, 0 0))", "properties": {}}
                ],
                "landuse": [
                    {"geometry": "POLYGON((0 0, 100 0, 100 100, 0 100, 0 0))", "properties": {}}
                ],
            }
        )
        viewer.basemap = TiledArchiveSource(
            ARCHIVE_URL, layer_name="basemap", archive=TileArchive({(0, 0, 0): tile})
        )

        styled = await viewer.basemap_tile(0, 0, 0)
        assert len(styled) == 1
        geometry, style = styled[0]
        assert geometry.geom_type == "Polygon"
        assert style.fill.color == LIGHT.water

        viewer.set_color_mode("dark")
        [(_, style)] = await viewer.basemap_tile(0, 0, 0)
        assert style.fill.color == DARK.water

    @pytest.mark.asyncio
    async def test_failed_basemap_read_is_reported(self, document):
        failing = TileArchive({}, exc=SourceLoadError(ARCHIVE_URL, "Range request failed"))
        basemap = TiledArchiveSource(ARCHIVE_URL, layer_name="basemap", archive=failing)
        viewer = MapViewer(str(document), document.name, basemap=basemap)

        assert not viewer.basemap_error
        assert await viewer.basemap_tile(0, 0, 0) == []
        assert viewer.basemap_error
        assert not viewer.error
        viewer.dispose()

    @pytest.mark.asyncio
    async def test_absent_basemap_tile(self, viewer):
        viewer.basemap = TiledArchiveSource(
            ARCHIVE_URL, layer_name="basemap", archive=TileArchive({})
        )
        assert await viewer.basemap_tile(5, 3, 3) == []
        assert not viewer.basemap_error


# ============================================================================
# DISPOSAL
# ============================================================================


class TestDispose:
    @pytest.mark.asyncio
    async def test_click_after_dispose_is_ignored(self, viewer):
        await viewer.open()
        viewer.dispose()
        assert viewer.click((10, 10)) is None
        assert viewer.selection.disposed

    @pytest.mark.asyncio
    async def test_load_end_after_dispose_does_not_move_view(self, viewer):
        viewer.dispose()
        await viewer.open()
        assert viewer.view.zoom == 0
