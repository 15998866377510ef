"""Uniform candidate grid over a polygon bounding box."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np
from loguru import logger

from fieldmesh.errors import MeshTooLargeError
from fieldmesh.utils.mesh_generate.polygon import Bounds, ClosedPolygon
from fieldmesh.utils.mesh_generate.projection import DegreeScale

# Ratios this close to an integer are treated as exact fits.
_FIT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class CandidateCell:
    """One unclipped grid rectangle.

    Parameters
    ----------
    row : int
        Row index counted northwards from the bbox south edge.
    col : int
        Column index counted eastwards from the bbox west edge.
    bounds : Bounds
        Cell rectangle in lng/lat.
    """

    row: int
    col: int
    bounds: Bounds


@dataclass(frozen=True)
class CandidateGrid:
    """Grid layout resolved for one polygon and cell size."""

    origin_lng: float
    origin_lat: float
    d_lng: float
    d_lat: float
    rows: int
    cols: int
    cell_size_meters: float
    scale: DegreeScale

    @property
    def total_cells(self) -> int:
        return self.rows * self.cols

    @property
    def cell_area_square_meters(self) -> float:
        """Nominal area of one unclipped cell."""
        return self.scale.area_to_square_meters(self.d_lng * self.d_lat)

    def cell_bounds(self, row: int, col: int) -> Bounds:
        """Rectangle of the cell at ``(row, col)``."""
        west = self.origin_lng + col * self.d_lng
        south = self.origin_lat + row * self.d_lat
        return Bounds(west, south, west + self.d_lng, south + self.d_lat)

    def iter_cells(self) -> Iterator[CandidateCell]:
        """Yield candidate cells in row-major order from the south-west corner."""
        west_edges = self.origin_lng + np.arange(self.cols) * self.d_lng
        south_edges = self.origin_lat + np.arange(self.rows) * self.d_lat
        for row_index, south in enumerate(south_edges):
            north = float(south + self.d_lat)
            for col_index, west in enumerate(west_edges):
                yield CandidateCell(
                    row=row_index,
                    col=col_index,
                    bounds=Bounds(float(west), float(south), float(west + self.d_lng), north),
                )


def _validate_cell_size(cell_size_meters: float) -> float:
    """Validate cell size.

    Raises
    ------
    ValueError
        Raised when the size is not a positive finite number.
    """
    size_value = float(cell_size_meters)
    if not math.isfinite(size_value) or size_value <= 0:
        raise ValueError(f"cell_size_meters must be > 0, got {cell_size_meters}")
    return size_value


def _fit_count(extent: float, step: float) -> int:
    """Number of ``step`` intervals needed to cover ``extent``."""
    ratio = extent / step
    nearest = round(ratio)
    if abs(ratio - nearest) <= _FIT_TOLERANCE * max(1.0, abs(ratio)):
        ratio = float(nearest)
    return max(1, int(math.ceil(ratio)))


def build_candidate_grid(
    polygon: ClosedPolygon,
    cell_size_meters: float,
    max_cells: int,
) -> CandidateGrid:
    """Resolve rows/cols of a uniform mesh over the polygon bbox.

    Parameters
    ----------
    polygon : ClosedPolygon
        Normalized boundary.
    cell_size_meters : float
        Edge length of one square cell in meters.
    max_cells : int
        Limit on ``rows * cols``.

    Returns
    -------
    CandidateGrid
        Layout whose last row/column may extend beyond the bbox.

    Raises
    ------
    MeshTooLargeError
        Raised before any cell is enumerated when the grid exceeds
        ``max_cells``.
    """
    size_value = _validate_cell_size(cell_size_meters)
    scale = polygon.scale
    d_lng, d_lat = scale.cell_deltas(size_value)
    bounds = polygon.bounds
    cols = _fit_count(bounds.width, d_lng)
    rows = _fit_count(bounds.height, d_lat)
    if rows * cols > max_cells:
        logger.warning(
            f"Rejected mesh of {rows}x{cols} cells at {size_value} m (limit {max_cells})"
        )
        raise MeshTooLargeError(rows, cols, max_cells)

    logger.debug(f"Candidate grid: {rows} rows x {cols} cols, d_lng={d_lng:.3e}, d_lat={d_lat:.3e}")
    return CandidateGrid(
        origin_lng=bounds.west,
        origin_lat=bounds.south,
        d_lng=d_lng,
        d_lat=d_lat,
        rows=rows,
        cols=cols,
        cell_size_meters=size_value,
        scale=scale,
    )
