"""Local planar approximation of WGS84 longitude/latitude.

Distances are approximated with fixed meters-per-degree factors evaluated at a
reference latitude. This is accurate enough for field-sized polygons and keeps
the mesh engine free of a full CRS stack.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from fieldmesh.errors import InvalidCoordinateError

METERS_PER_DEGREE_LNG_EQUATOR = 111320.0
METERS_PER_DEGREE_LAT = 110540.0


@dataclass(frozen=True)
class DegreeScale:
    """Meters per degree along each axis at one latitude."""

    lng_factor: float
    lat_factor: float

    def cell_deltas(self, cell_size_meters: float) -> tuple[float, float]:
        """Convert a metric cell edge into ``(d_lng, d_lat)`` degree deltas."""
        return cell_size_meters / self.lng_factor, cell_size_meters / self.lat_factor

    def area_to_square_meters(self, area_deg2: float) -> float:
        """Convert planar degree-squared area to square meters."""
        return abs(area_deg2) * self.lng_factor * self.lat_factor


def _validate_latitude(latitude: float) -> float:
    """Validate one latitude value in degrees."""
    lat_value = float(latitude)
    if not math.isfinite(lat_value) or abs(lat_value) > 90.0:
        raise InvalidCoordinateError(f"latitude out of range: {latitude}")
    return lat_value


def meters_per_degree(latitude: float) -> DegreeScale:
    """Compute meters-per-degree factors at a latitude.

    Parameters
    ----------
    latitude : float
        Reference latitude in degrees.

    Returns
    -------
    DegreeScale
        ``lng_factor = 111320 * cos(lat)`` and fixed ``lat_factor = 110540``.

    Raises
    ------
    InvalidCoordinateError
        Raised when ``|latitude| > 90`` or the value is not finite.

    Examples
    --------
    >>> meters_per_degree(0.0).lng_factor
    111320.0
    """
    lat_value = _validate_latitude(latitude)
    lng_factor = METERS_PER_DEGREE_LNG_EQUATOR * math.cos(math.radians(lat_value))
    return DegreeScale(lng_factor=lng_factor, lat_factor=METERS_PER_DEGREE_LAT)


def validate_lng_lat(coords: np.ndarray) -> np.ndarray:
    """Validate a coordinate array in ``(lng, lat)`` order.

    Parameters
    ----------
    coords : numpy.ndarray
        Coordinates with shape ``(N, 2)``.

    Returns
    -------
    numpy.ndarray
        Float64 copy with shape ``(N, 2)``.

    Raises
    ------
    InvalidCoordinateError
        Raised for non-finite values, longitude outside ``[-180, 180]`` or
        latitude outside ``[-90, 90]``.
    """
    coord_array = np.asarray(coords, dtype=np.float64)
    if coord_array.ndim != 2 or coord_array.shape[1] != 2:
        raise InvalidCoordinateError("coordinates must have shape (N, 2)")
    if not np.isfinite(coord_array).all():
        raise InvalidCoordinateError("coordinates contain non-finite values")
    if (np.abs(coord_array[:, 0]) > 180.0).any():
        raise InvalidCoordinateError("longitude out of range [-180, 180]")
    if (np.abs(coord_array[:, 1]) > 90.0).any():
        raise InvalidCoordinateError("latitude out of range [-90, 90]")
    return coord_array.copy()


class LocalProjector:
    """Equirectangular projection around a fixed origin.

    Parameters
    ----------
    origin_lng, origin_lat : float
        Projection origin; x/y are meters east/north of it.

    Examples
    --------
    >>> proj = LocalProjector(139.83, 36.0)
    >>> proj.to_local(np.asarray([[139.83, 36.0]]))
    array([[0., 0.]])
    """

    def __init__(self, origin_lng: float, origin_lat: float) -> None:
        self.origin = np.asarray([origin_lng, origin_lat], dtype=np.float64)
        self.scale = meters_per_degree(origin_lat)
        self._factors = np.asarray(
            [self.scale.lng_factor, self.scale.lat_factor], dtype=np.float64
        )
        if self._factors[0] <= 1e-9:
            raise InvalidCoordinateError("cannot project around a pole")

    def to_local(self, coords: np.ndarray) -> np.ndarray:
        """Convert ``(N, 2)`` lng/lat coordinates to local meters."""
        coord_array = np.asarray(coords, dtype=np.float64)
        return (coord_array - self.origin) * self._factors

    def to_geographic(self, coords_xy: np.ndarray) -> np.ndarray:
        """Convert ``(N, 2)`` local meters back to lng/lat."""
        xy_array = np.asarray(coords_xy, dtype=np.float64)
        return xy_array / self._factors + self.origin
