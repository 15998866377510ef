"""Mesh cell model, selection, serialization and statistics."""

from fieldmesh.utils.mesh_cells.model import (
    GrowthStage,
    HealthStatus,
    MeshCell,
    MeshResult,
    MeshStatistics,
    make_cell_id,
)
from fieldmesh.utils.mesh_cells.selection import (
    CellSelectionEngine,
    clear_cell_selection,
    select_cell_at_point,
    select_cells_in_bounds,
    update_cell_selection_batch,
)
from fieldmesh.utils.mesh_cells.serialize import (
    cells_to_gdf,
    cells_to_geojson,
    save_cells,
)
from fieldmesh.utils.mesh_cells.statistics import (
    AreaSummary,
    square_meters_to_hectares,
    summarize_cells,
)

__all__ = [
    "AreaSummary",
    "CellSelectionEngine",
    "GrowthStage",
    "HealthStatus",
    "MeshCell",
    "MeshResult",
    "MeshStatistics",
    "cells_to_gdf",
    "cells_to_geojson",
    "clear_cell_selection",
    "make_cell_id",
    "save_cells",
    "select_cell_at_point",
    "select_cells_in_bounds",
    "square_meters_to_hectares",
    "summarize_cells",
    "update_cell_selection_batch",
]
