"""Tests for the planar projector."""

import math

import numpy as np
import pytest

from fieldmesh.errors import InvalidCoordinateError
from fieldmesh.utils.mesh_generate.projection import (
    LocalProjector,
    meters_per_degree,
    validate_lng_lat,
)


def test_meters_per_degree_at_equator_and_sixty() -> None:
    """Longitude factor shrinks with cos(lat); latitude factor is fixed."""
    equator = meters_per_degree(0.0)
    assert equator.lng_factor == pytest.approx(111320.0)
    assert equator.lat_factor == 110540.0

    sixty = meters_per_degree(60.0)
    assert sixty.lng_factor == pytest.approx(55660.0)
    assert sixty.lat_factor == 110540.0


def test_cell_deltas_and_area_conversion_are_consistent() -> None:
    """A cell built from degree deltas measures back to its metric size."""
    scale = meters_per_degree(35.68)
    d_lng, d_lat = scale.cell_deltas(5.0)
    assert d_lat == pytest.approx(5.0 / 110540.0)
    assert scale.area_to_square_meters(d_lng * d_lat) == pytest.approx(25.0)


@pytest.mark.parametrize("latitude", [90.0001, -91.0, math.nan, math.inf])
def test_meters_per_degree_rejects_invalid_latitude(latitude: float) -> None:
    """Out-of-range or non-finite latitude raises InvalidCoordinateError."""
    with pytest.raises(InvalidCoordinateError):
        meters_per_degree(latitude)


def test_validate_lng_lat_rejects_out_of_range_longitude() -> None:
    """Longitudes beyond +-180 are rejected."""
    with pytest.raises(InvalidCoordinateError):
        validate_lng_lat(np.asarray([[181.0, 0.0], [0.0, 0.0]]))
    with pytest.raises(InvalidCoordinateError):
        validate_lng_lat(np.asarray([1.0, 2.0]))


def test_local_projector_round_trip() -> None:
    """Projecting to local meters and back returns the input."""
    projector = LocalProjector(139.70, 35.68)
    coords = np.asarray([[139.70, 35.68], [139.701, 35.681]])
    local_xy = projector.to_local(coords)
    assert np.allclose(local_xy[0], [0.0, 0.0])
    assert local_xy[1, 1] == pytest.approx(110.54)
    assert np.allclose(projector.to_geographic(local_xy), coords)
