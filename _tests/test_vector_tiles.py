#!/usr/bin/env python3
"""
Vector Tile Tests

Tests:
1. Tile bounds and the tiles covering a Web-Mercator box
2. MVT decoding to lon/lat features with the "layer" attribute

Run with: python -m pytest _tests/test_vector_tiles.py -v
"""

import mapbox_vector_tile
import pytest
from google.protobuf.message import DecodeError

from map_viewer.vector_tiles import (
    HALF_WORLD_M,
    count_tiles,
    decode_tile,
    tile_bounds_m,
    tiles_for_bounds,
)


def encode(layers):
    return mapbox_vector_tile.encode(
        [{"name": name, "features": features} for name, features in layers.items()]
    )


# ============================================================================
# TILE ADDRESSING
# ============================================================================


class TestTileAddressing:
    def test_world_tile(self):
        assert tile_bounds_m(0, 0, 0) == pytest.approx(
            (-HALF_WORLD_M, -HALF_WORLD_M, HALF_WORLD_M, HALF_WORLD_M)
        )

    def test_rows_count_from_the_top(self):
        assert tile_bounds_m(1, 1, 0) == pytest.approx((0, 0, HALF_WORLD_M, HALF_WORLD_M))
        assert tile_bounds_m(1, 0, 1) == pytest.approx((-HALF_WORLD_M, -HALF_WORLD_M, 0, 0))

    def test_tiles_for_world(self):
        world = (-HALF_WORLD_M, -HALF_WORLD_M, HALF_WORLD_M, HALF_WORLD_M)
        assert sorted(tiles_for_bounds(world, 1)) == [
            (1, 0, 0),
            (1, 0, 1),
            (1, 1, 0),
            (1, 1, 1),
        ]

    def test_tiles_for_small_box(self):
        north_east = (1000.0, 1000.0, 2000.0, 2000.0)
        assert list(tiles_for_bounds(north_east, 1)) == [(1, 1, 0)]
        assert count_tiles(north_east, 1) == 1

    def test_box_beyond_world_is_clipped(self):
        huge = (-4 * HALF_WORLD_M, -4 * HALF_WORLD_M, 4 * HALF_WORLD_M, 4 * HALF_WORLD_M)
        assert count_tiles(huge, 0) == 1
        assert count_tiles(huge, 2) == 16


# ============================================================================
# DECODING
# ============================================================================


class TestDecodeTile:
    def test_point_at_tile_center(self):
        data = encode(
            {"places": [{"geometry": "POINT(2048 2048)", "properties": {"name": "Null Island"}}]}
        )
        [(geometry, attributes)] = decode_tile(data, 0, 0, 0)

        assert geometry.x == pytest.approx(0.0, abs=1e-6)
        assert geometry.y == pytest.approx(0.0, abs=1e-6)
        assert attributes == {"name": "Null Island", "layer": "places"}

    def test_point_in_child_tile(self):
        data = encode({"places": [{"geometry": "POINT(2048 2048)", "properties": {}}]})
        [(geometry, _)] = decode_tile(data, 1, 1, 0)

        assert geometry.x == pytest.approx(90.0, abs=1e-6)
        assert geometry.y == pytest.approx(66.51326, abs=1e-4)

    def test_polygon_covers_tile(self):
        data = encode(
            {
                "water": [
                    {
                        "geometry": "POLYGON((0 0, 4096 0, 4096 4096, 0 4096, 0 0))",
                        "properties": {"kind": "ocean"},
                    }
                ]
            }
        )
        [(geometry, attributes)] = decode_tile(data, 0, 0, 0)

        assert geometry.geom_type == "Polygon"
        assert geometry.bounds == pytest.approx((-180.0, -85.05113, 180.0, 85.05113), abs=1e-4)
        assert attributes == {"kind": "ocean", "layer": "water"}

    def test_layer_order_kept(self):
        data = encode(
            {
                "water": [{"geometry": "POINT(10 10)", "properties": {"id": 1}}],
                "places": [
                    {"geometry": "POINT(20 20)", "properties": {"id": 2}},
                    {"geometry": "POINT(30 30)", "properties": {"id": 3}},
                ],
            }
        )
        decoded = decode_tile(data, 0, 0, 0)
        assert [(a["layer"], a["id"]) for _, a in decoded] == [
            ("water", 1),
            ("places", 2),
            ("places", 3),
        ]

    def test_empty_tile(self):
        assert decode_tile(b"", 0, 0, 0) == []

    def test_truncated_tile(self):
        with pytest.raises(DecodeError):
            decode_tile(b"\x1a\x05ab", 0, 0, 0)
