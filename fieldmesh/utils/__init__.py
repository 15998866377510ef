"""Utility package exports for fieldmesh."""

from fieldmesh.utils.mesh_cells import (
    AreaSummary,
    CellSelectionEngine,
    MeshCell,
    MeshResult,
    cells_to_geojson,
    cells_to_gdf,
    select_cell_at_point,
    select_cells_in_bounds,
    square_meters_to_hectares,
    summarize_cells,
)
from fieldmesh.utils.mesh_generate import (
    Bounds,
    ClipKind,
    RayCastingClipper,
    build_candidate_grid,
    meters_per_degree,
    normalize_polygon,
)

__all__ = [
    "AreaSummary",
    "Bounds",
    "CellSelectionEngine",
    "ClipKind",
    "MeshCell",
    "MeshResult",
    "RayCastingClipper",
    "build_candidate_grid",
    "cells_to_gdf",
    "cells_to_geojson",
    "meters_per_degree",
    "normalize_polygon",
    "select_cell_at_point",
    "select_cells_in_bounds",
    "square_meters_to_hectares",
    "summarize_cells",
]
