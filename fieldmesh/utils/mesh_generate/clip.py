"""Cell-against-boundary clipping with full/partial/empty outcomes.

The boundary may be concave and may carry holes, so the general case is
delegated to GEOS through shapely. Even-odd ray casting on the cell corners and
centre is used first to settle the common fully-inside and fully-outside cases
without building an intersection.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np
from loguru import logger
from shapely.geometry import MultiPolygon, Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep

from fieldmesh.errors import DegenerateClipWarning
from fieldmesh.utils.mesh_generate.polygon import Bounds, ClosedPolygon

# Relative area tolerance for treating an intersection as the whole cell.
FULL_AREA_TOLERANCE = 1e-9


class ClipKind(str, Enum):
    """Outcome of clipping one cell."""

    FULL = "full"
    PARTIAL = "partial"
    EMPTY = "empty"


@dataclass(frozen=True)
class ClipResult:
    """Clip outcome for one cell rectangle.

    Parameters
    ----------
    kind : ClipKind
        Full, partial or empty.
    geometry : BaseGeometry | None
        Unclipped square for ``FULL``, the polygonal intersection for
        ``PARTIAL`` and ``None`` for ``EMPTY``.
    area_deg2 : float
        Planar area of ``geometry`` in degree^2.
    """

    kind: ClipKind
    geometry: BaseGeometry | None = None
    area_deg2: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.kind == ClipKind.EMPTY


EMPTY_RESULT = ClipResult(kind=ClipKind.EMPTY)


class PolygonClipper(Protocol):
    """Anything that clips cell rectangles against one fixed boundary.

    ``discarded_slivers`` counts cells reported as ``EMPTY`` only because
    their overlap fell below the retain threshold.
    """

    discarded_slivers: int

    def clip(self, bounds: Bounds) -> ClipResult:
        ...


def points_in_rings(points_xy: np.ndarray, rings: tuple[np.ndarray, ...]) -> np.ndarray:
    """Even-odd point-in-polygon test across all rings.

    Parameters
    ----------
    points_xy : numpy.ndarray
        Query points with shape ``(M, 2)``.
    rings : tuple[numpy.ndarray, ...]
        Closed rings with shapes ``(N_i, 2)``. Holes are handled by the
        even-odd rule without special casing.

    Returns
    -------
    numpy.ndarray
        Boolean mask with shape ``(M,)``. Points exactly on an edge may land
        on either side.

    Examples
    --------
    >>> square = np.asarray([[0, 0], [2, 0], [2, 2], [0, 2], [0, 0]], dtype=float)
    >>> points_in_rings(np.asarray([[1.0, 1.0], [3.0, 1.0]]), (square,)).tolist()
    [True, False]
    """
    point_array = np.asarray(points_xy, dtype=np.float64)
    px = point_array[:, 0][:, None]
    py = point_array[:, 1][:, None]
    crossings = np.zeros(point_array.shape[0], dtype=np.int64)
    for ring in rings:
        x1, y1 = ring[:-1, 0][None, :], ring[:-1, 1][None, :]
        x2, y2 = ring[1:, 0][None, :], ring[1:, 1][None, :]
        straddles = (y1 > py) != (y2 > py)
        dy = np.where(y2 == y1, 1.0, y2 - y1)
        x_cross = x1 + (py - y1) * (x2 - x1) / dy
        crossings += np.sum(straddles & (px < x_cross), axis=1)
    return (crossings % 2) == 1


def _sample_points(bounds: Bounds) -> np.ndarray:
    """Four corners plus centre of a rectangle, shape ``(5, 2)``."""
    west, south, east, north = bounds.as_tuple()
    return np.asarray(
        [
            [west, south],
            [east, south],
            [east, north],
            [west, north],
            [(west + east) * 0.5, (south + north) * 0.5],
        ],
        dtype=np.float64,
    )


def _polygonal_part(geom: BaseGeometry) -> BaseGeometry | None:
    """Keep only the areal part of an intersection result."""
    if geom.is_empty:
        return None
    if isinstance(geom, (Polygon, MultiPolygon)):
        return geom
    parts: list[Polygon] = []
    for part in getattr(geom, "geoms", []):
        if isinstance(part, Polygon) and not part.is_empty:
            parts.append(part)
        elif isinstance(part, MultiPolygon):
            parts.extend(p for p in part.geoms if not p.is_empty)
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return MultiPolygon(parts)


class RayCastingClipper:
    """Clip cells against one boundary polygon.

    Parameters
    ----------
    polygon : ClosedPolygon
        Normalized boundary.
    min_retain_fraction : float
        Partial cells smaller than this fraction of the cell area are
        reported as ``EMPTY``.

    Examples
    --------
    >>> clipper = RayCastingClipper(polygon, min_retain_fraction=0.01)
    >>> clipper.clip(Bounds(0.0, 0.0, 0.1, 0.1)).kind
    <ClipKind.FULL: 'full'>
    """

    def __init__(self, polygon: ClosedPolygon, min_retain_fraction: float = 0.01):
        if not 0.0 <= min_retain_fraction < 1.0:
            raise ValueError("min_retain_fraction must be in [0, 1)")
        self.polygon = polygon
        self.min_retain_fraction = float(min_retain_fraction)
        self.discarded_slivers = 0
        self._geometry = polygon.geometry
        self._prepared_boundary = prep(self._geometry.boundary)

    def clip(self, bounds: Bounds) -> ClipResult:
        """Clip one rectangle against the boundary.

        Parameters
        ----------
        bounds : Bounds
            Cell rectangle.

        Returns
        -------
        ClipResult
            ``FULL``, ``PARTIAL`` or ``EMPTY`` outcome.
        """
        cell_box = box(*bounds.as_tuple())
        cell_area = bounds.width * bounds.height
        if cell_area <= 0:
            return EMPTY_RESULT

        inside_mask = points_in_rings(_sample_points(bounds), self.polygon.rings)
        edge_contact = self._prepared_boundary.intersects(cell_box)
        if not edge_contact:
            if inside_mask.all():
                return ClipResult(ClipKind.FULL, cell_box, cell_area)
            if not inside_mask.any():
                return EMPTY_RESULT

        return self._clip_general(bounds, cell_box, cell_area)

    def _clip_general(self, bounds: Bounds, cell_box: Polygon, cell_area: float) -> ClipResult:
        """Exact intersection for cells crossed or touched by the boundary."""
        clipped = _polygonal_part(self._geometry.intersection(cell_box))
        if clipped is None or clipped.area <= 0:
            return EMPTY_RESULT

        clipped_area = float(clipped.area)
        if clipped_area >= cell_area * (1.0 - FULL_AREA_TOLERANCE):
            return ClipResult(ClipKind.FULL, cell_box, cell_area)

        fraction = clipped_area / cell_area
        if fraction < self.min_retain_fraction:
            self.discarded_slivers += 1
            logger.debug(str(DegenerateClipWarning(bounds.as_tuple(), fraction)))
            return EMPTY_RESULT
        return ClipResult(ClipKind.PARTIAL, clipped, clipped_area)
