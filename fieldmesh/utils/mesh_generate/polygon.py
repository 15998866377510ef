"""Boundary ring normalization and planar polygon measures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from shapely.geometry import Polygon

from fieldmesh.errors import InvalidPolygonError
from fieldmesh.utils.mesh_generate.projection import (
    DegreeScale,
    meters_per_degree,
    validate_lng_lat,
)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned lng/lat rectangle ``(west, south, east, north)``."""

    west: float
    south: float
    east: float
    north: float

    @property
    def width(self) -> float:
        return self.east - self.west

    @property
    def height(self) -> float:
        return self.north - self.south

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.west, self.south, self.east, self.north)

    def contains_point(self, lng: float, lat: float) -> bool:
        """Closed-interval point containment."""
        return self.west <= lng <= self.east and self.south <= lat <= self.north

    def intersects(self, other: Bounds) -> bool:
        """Closed-interval rectangle overlap; shared edges count."""
        return not (
            other.east < self.west
            or other.west > self.east
            or other.north < self.south
            or other.south > self.north
        )


def make_bounds(values: Sequence[float] | Bounds) -> Bounds:
    """Build validated bounds from ``(west, south, east, north)``.

    Raises
    ------
    ValueError
        Raised when the sequence length is wrong or the rectangle is inverted.
    """
    if isinstance(values, Bounds):
        return values
    value_list = [float(v) for v in values]
    if len(value_list) != 4:
        raise ValueError("bounds must be (west, south, east, north)")
    west, south, east, north = value_list
    if west > east or south > north:
        raise ValueError(f"bounds are inverted: {tuple(value_list)}")
    return Bounds(west, south, east, north)


@dataclass(frozen=True, eq=False)
class ClosedPolygon:
    """Validated polygon with closed rings and cached planar measures.

    Parameters
    ----------
    exterior : numpy.ndarray
        Closed exterior ring with shape ``(N, 2)``, first row == last row.
    holes : tuple[numpy.ndarray, ...]
        Closed interior rings.
    bounds : Bounds
        Bounding box of the exterior ring.
    signed_area : float
        Shoelace area of the exterior in degree^2, positive when CCW.
    area_deg2 : float
        Unsigned area net of holes in degree^2.
    centroid : tuple[float, float]
        Area centroid ``(lng, lat)``.
    """

    exterior: np.ndarray
    holes: tuple[np.ndarray, ...]
    bounds: Bounds
    signed_area: float
    area_deg2: float
    centroid: tuple[float, float]
    _geometry: Polygon = field(repr=False, compare=False, default=None)

    @property
    def is_ccw(self) -> bool:
        return self.signed_area > 0

    @property
    def rings(self) -> tuple[np.ndarray, ...]:
        return (self.exterior,) + self.holes

    @property
    def geometry(self) -> Polygon:
        """Shapely polygon for the same rings."""
        return self._geometry

    @property
    def scale(self) -> DegreeScale:
        """Meters-per-degree factors at the centroid latitude."""
        return meters_per_degree(self.centroid[1])

    @property
    def area_square_meters(self) -> float:
        return self.scale.area_to_square_meters(self.area_deg2)


def shoelace_area(ring: np.ndarray) -> float:
    """Signed planar area of a closed ring.

    Parameters
    ----------
    ring : numpy.ndarray
        Closed ring with shape ``(N, 2)``.

    Returns
    -------
    float
        Area in squared input units, positive when counter-clockwise.
    """
    local = ring - ring[0]
    x_arr = local[:-1, 0]
    y_arr = local[:-1, 1]
    x_next = local[1:, 0]
    y_next = local[1:, 1]
    return float(0.5 * np.sum(x_arr * y_next - x_next * y_arr))


def _ring_centroid(ring: np.ndarray, signed_area: float) -> tuple[float, float]:
    """Area-weighted centroid of one closed ring."""
    # Shift to the first vertex; raw lng/lat cross products cancel badly.
    local = ring - ring[0]
    x_arr, y_arr = local[:-1, 0], local[:-1, 1]
    x_next, y_next = local[1:, 0], local[1:, 1]
    cross = x_arr * y_next - x_next * y_arr
    factor = 1.0 / (6.0 * signed_area)
    cx = factor * float(np.sum((x_arr + x_next) * cross))
    cy = factor * float(np.sum((y_arr + y_next) * cross))
    return cx + float(ring[0, 0]), cy + float(ring[0, 1])


def normalize_ring(ring: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Close a ring and drop consecutive duplicate vertices.

    Parameters
    ----------
    ring : Sequence[Sequence[float]] | numpy.ndarray
        Ordered ``(lng, lat)`` vertices, closed or open. Extra ordinates
        (e.g. altitude) are ignored.

    Returns
    -------
    numpy.ndarray
        Closed ring with shape ``(N, 2)``, ``N >= 4``.

    Raises
    ------
    InvalidPolygonError
        Raised when fewer than 3 distinct vertices remain.

    Examples
    --------
    >>> normalize_ring([(0, 0), (1, 0), (1, 1)]).shape
    (4, 2)
    """
    try:
        ring_array = np.asarray(ring, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidPolygonError(f"ring is not a coordinate sequence: {exc}") from exc
    if ring_array.ndim != 2 or ring_array.shape[0] == 0 or ring_array.shape[1] < 2:
        raise InvalidPolygonError("ring must have shape (N, 2)")
    ring_array = validate_lng_lat(ring_array[:, :2])

    keep_mask = np.ones(ring_array.shape[0], dtype=bool)
    keep_mask[1:] = np.any(ring_array[1:] != ring_array[:-1], axis=1)
    deduped = ring_array[keep_mask]
    if deduped.shape[0] > 1 and np.array_equal(deduped[0], deduped[-1]):
        deduped = deduped[:-1]

    distinct_count = np.unique(deduped, axis=0).shape[0]
    if distinct_count < 3:
        raise InvalidPolygonError(
            f"ring needs at least 3 distinct vertices, got {distinct_count}"
        )
    return np.vstack([deduped, deduped[:1]])


def normalize_polygon(
    exterior: Sequence[Sequence[float]] | np.ndarray,
    holes: Sequence[Sequence[Sequence[float]]] = (),
) -> ClosedPolygon:
    """Validate rings and compute bounds, area and centroid.

    Parameters
    ----------
    exterior : Sequence[Sequence[float]] | numpy.ndarray
        Outer boundary ring.
    holes : Sequence
        Optional interior rings.

    Returns
    -------
    ClosedPolygon
        Closed polygon; the caller's input is never modified.

    Raises
    ------
    InvalidPolygonError
        Raised for too few distinct vertices or a zero-area ring.
    InvalidCoordinateError
        Raised for out-of-range coordinates.
    """
    exterior_ring = normalize_ring(exterior)
    hole_rings = tuple(normalize_ring(hole) for hole in holes)

    signed_area = shoelace_area(exterior_ring)
    span = np.ptp(exterior_ring, axis=0)
    if signed_area == 0 or abs(signed_area) <= 1e-12 * float(span[0] * span[1]):
        raise InvalidPolygonError("polygon has zero area (collinear vertices)")

    hole_areas = []
    for hole in hole_rings:
        hole_area = abs(shoelace_area(hole))
        hole_span = np.ptp(hole, axis=0)
        if hole_area == 0 or hole_area <= 1e-12 * float(hole_span[0] * hole_span[1]):
            raise InvalidPolygonError("hole has zero area (collinear vertices)")
        hole_areas.append(hole_area)
    net_area = abs(signed_area) - sum(hole_areas)
    if net_area <= 0:
        raise InvalidPolygonError("holes cover the whole polygon")

    cx, cy = _ring_centroid(exterior_ring, signed_area)
    if hole_rings:
        # Subtract hole moments from the exterior moment.
        moment_x = cx * abs(signed_area)
        moment_y = cy * abs(signed_area)
        for hole, hole_area in zip(hole_rings, hole_areas):
            hx, hy = _ring_centroid(hole, shoelace_area(hole))
            moment_x -= hx * hole_area
            moment_y -= hy * hole_area
        cx, cy = moment_x / net_area, moment_y / net_area

    bounds = Bounds(
        west=float(exterior_ring[:, 0].min()),
        south=float(exterior_ring[:, 1].min()),
        east=float(exterior_ring[:, 0].max()),
        north=float(exterior_ring[:, 1].max()),
    )
    geometry = Polygon(exterior_ring, [hole for hole in hole_rings])
    return ClosedPolygon(
        exterior=exterior_ring,
        holes=hole_rings,
        bounds=bounds,
        signed_area=signed_area,
        area_deg2=net_area,
        centroid=(cx, cy),
        _geometry=geometry,
    )
