"""Mesh cell entities and the result of one mesh generation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from shapely.geometry.base import BaseGeometry

from fieldmesh.utils.mesh_generate.clip import ClipKind
from fieldmesh.utils.mesh_generate.polygon import Bounds


class GrowthStage(str, Enum):
    """Crop growth stage tracked per cell."""

    PLANNED = "planned"
    PLANTED = "planted"
    GROWING = "growing"
    HARVESTING = "harvesting"
    HARVESTED = "harvested"


class HealthStatus(str, Enum):
    """Crop health status tracked per cell."""

    HEALTHY = "healthy"
    WARNING = "warning"
    POOR = "poor"


def make_cell_id(row: int, col: int, cell_size_meters: float) -> str:
    """Composite cell key, e.g. ``cell_3_7_5m``."""
    return f"cell_{row}_{col}_{cell_size_meters:g}m"


@dataclass
class MeshCell:
    """One retained grid cell, possibly cropped to the field boundary.

    Parameters
    ----------
    cell_id : str
        Composite key stable within one generation.
    row, col : int
        Grid indices counted from the south-west corner.
    bounds : Bounds
        Unclipped cell rectangle.
    geometry : BaseGeometry
        Clipped boundary, or the unclipped square for full cells.
    clip_kind : ClipKind
        ``FULL`` or ``PARTIAL``; empty cells are never retained.
    area_square_meters : float
        Area of ``geometry``.
    center : tuple[float, float]
        Centroid ``(lng, lat)`` of ``geometry``.
    is_selected, is_occupied : bool
        Editor state flags; the only fields mutated after generation.
    """

    cell_id: str
    row: int
    col: int
    bounds: Bounds
    geometry: BaseGeometry
    clip_kind: ClipKind
    area_square_meters: float
    center: tuple[float, float]
    is_selected: bool = False
    is_occupied: bool = False
    vegetable_id: str | None = None
    plant_count: int = 0
    growth_stage: GrowthStage = GrowthStage.PLANNED
    health_status: HealthStatus = HealthStatus.HEALTHY

    @property
    def key(self) -> tuple[int, int]:
        return (self.row, self.col)

    @property
    def is_partial(self) -> bool:
        return self.clip_kind == ClipKind.PARTIAL

    def copy(self) -> MeshCell:
        """Shallow copy; geometry is immutable and shared."""
        return replace(self)


@dataclass(frozen=True)
class MeshStatistics:
    """Grid-level statistics reported with a mesh result."""

    total_grid_cells: int
    intersecting_cells: int
    coverage_percentage: float
    average_cell_area: float
    total_selected_area: float
    coverage_ratio: float


@dataclass
class MeshResult:
    """Cells produced by one generation pass plus summary data.

    Selection state lives only in ``cells``; regenerating produces a new,
    independent result.
    """

    cells: list[MeshCell]
    cell_size_meters: float
    rows: int
    cols: int
    polygon_area_sqm: float
    statistics: MeshStatistics | None = None
    boundary: BaseGeometry | None = field(default=None, repr=False)

    @property
    def total_cells(self) -> int:
        return len(self.cells)

    @property
    def covered_area_sqm(self) -> float:
        return float(sum(cell.area_square_meters for cell in self.cells))
