"""Area accounting over mesh cells."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from fieldmesh.utils.mesh_cells.model import MeshCell

SQUARE_METERS_PER_HECTARE = 10_000.0


def square_meters_to_hectares(area_sqm: float) -> float:
    """Convert square meters to hectares."""
    return float(area_sqm) / SQUARE_METERS_PER_HECTARE


@dataclass(frozen=True)
class AreaSummary:
    """Selected/occupied area totals in square meters.

    ``coverage_ratio`` is ``total_area_sqm / polygon_area_sqm`` and is
    ``None`` when the polygon area is not known. ``utilization_rate`` is the
    occupied share of the total area in percent.
    """

    total_cells: int
    selected_cells: int
    occupied_cells: int
    total_area_sqm: float
    selected_area_sqm: float
    occupied_area_sqm: float
    coverage_ratio: float | None
    utilization_rate: float

    @property
    def selected_area_ha(self) -> float:
        return square_meters_to_hectares(self.selected_area_sqm)

    @property
    def total_area_ha(self) -> float:
        return square_meters_to_hectares(self.total_area_sqm)


def summarize_cells(
    cells: Sequence[MeshCell],
    polygon_area_sqm: float | None = None,
) -> AreaSummary:
    """Aggregate cell areas.

    Parameters
    ----------
    cells : Sequence[MeshCell]
        Retained cells.
    polygon_area_sqm : float | None, optional
        Source polygon area used for ``coverage_ratio``.

    Returns
    -------
    AreaSummary
        Totals in square meters.

    Examples
    --------
    >>> summary = summarize_cells(result.cells, result.polygon_area_sqm)
    >>> summary.coverage_ratio > 0.95
    True
    """
    total_area = 0.0
    selected_area = 0.0
    occupied_area = 0.0
    selected_count = 0
    occupied_count = 0
    for cell in cells:
        total_area += cell.area_square_meters
        if cell.is_selected:
            selected_area += cell.area_square_meters
            selected_count += 1
        if cell.is_occupied:
            occupied_area += cell.area_square_meters
            occupied_count += 1

    coverage_ratio = None
    if polygon_area_sqm is not None and polygon_area_sqm > 0:
        coverage_ratio = total_area / float(polygon_area_sqm)
    utilization_rate = occupied_area / total_area * 100.0 if total_area > 0 else 0.0
    return AreaSummary(
        total_cells=len(cells),
        selected_cells=selected_count,
        occupied_cells=occupied_count,
        total_area_sqm=total_area,
        selected_area_sqm=selected_area,
        occupied_area_sqm=occupied_area,
        coverage_ratio=coverage_ratio,
        utilization_rate=utilization_rate,
    )
