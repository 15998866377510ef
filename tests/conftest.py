"""Pytest bootstrap helpers shared by all test domains."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Sequence

import pytest
from shapely.geometry import Polygon


def _append_repo_root() -> None:
    """Ensure repository root is present in import path."""
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_text = str(repo_root)
    if repo_root_text in sys.path:
        return
    sys.path.insert(0, repo_root_text)


_append_repo_root()

from fieldmesh.utils.mesh_generate.projection import (  # noqa: E402
    METERS_PER_DEGREE_LAT,
    meters_per_degree,
)

ORIGIN_LNG = 139.70
ORIGIN_LAT = 35.68


def _meters_to_lng_lat(
    rings_m: Sequence[Sequence[tuple[float, float]]],
) -> list[list[list[float]]]:
    """Convert metric rings to lng/lat using the scale at the shape centroid."""
    centroid_y = Polygon(rings_m[0], list(rings_m[1:])).centroid.y
    scale = meters_per_degree(ORIGIN_LAT + centroid_y / METERS_PER_DEGREE_LAT)
    return [
        [
            [ORIGIN_LNG + x / scale.lng_factor, ORIGIN_LAT + y / scale.lat_factor]
            for x, y in ring
        ]
        for ring in rings_m
    ]


@pytest.fixture
def meter_field() -> Callable[..., dict]:
    """Build a GeoJSON polygon Feature from rings given in local meters.

    The first ring is the exterior, the rest are holes. Longitudes use the
    meters-per-degree factor at the shape's centroid latitude so metric
    extents map exactly onto the mesh grid.
    """

    def _build(exterior_m, *holes_m) -> dict:
        coordinates = _meters_to_lng_lat([exterior_m, *holes_m])
        return {
            "type": "Feature",
            "properties": {"name": "field"},
            "geometry": {"type": "Polygon", "coordinates": coordinates},
        }

    return _build


@pytest.fixture
def square_field(meter_field) -> dict:
    """100 m x 100 m square field."""
    return meter_field([(0, 0), (100, 0), (100, 100), (0, 100), (0, 0)])


@pytest.fixture
def triangle_field(meter_field) -> dict:
    """Right triangle inscribed in a 100 m x 100 m box."""
    return meter_field([(0, 0), (100, 0), (0, 100), (0, 0)])


@pytest.fixture
def u_field(meter_field) -> dict:
    """30 m x 60 m field with a 10 m wide notch open to the north."""
    return meter_field(
        [(0, 0), (30, 0), (30, 60), (20, 60), (20, 10), (10, 10), (10, 60), (0, 60), (0, 0)]
    )


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    from loguru import logger

    messages: list[str] = []
    handler_id = logger.add(lambda msg: messages.append(str(msg)), level="DEBUG")
    yield messages
    logger.remove(handler_id)
