"""Mesh generation submodule: projection, normalization, grid and clipping.

Re-exports public API from the submodules.
"""

from fieldmesh.utils.mesh_generate.clip import (
    ClipKind,
    ClipResult,
    PolygonClipper,
    RayCastingClipper,
    points_in_rings,
)
from fieldmesh.utils.mesh_generate.grid import (
    CandidateCell,
    CandidateGrid,
    build_candidate_grid,
)
from fieldmesh.utils.mesh_generate.polygon import (
    Bounds,
    ClosedPolygon,
    make_bounds,
    normalize_polygon,
    normalize_ring,
    shoelace_area,
)
from fieldmesh.utils.mesh_generate.projection import (
    DegreeScale,
    LocalProjector,
    meters_per_degree,
    validate_lng_lat,
)

__all__ = [
    "Bounds",
    "CandidateCell",
    "CandidateGrid",
    "ClipKind",
    "ClipResult",
    "ClosedPolygon",
    "DegreeScale",
    "LocalProjector",
    "PolygonClipper",
    "RayCastingClipper",
    "build_candidate_grid",
    "make_bounds",
    "meters_per_degree",
    "normalize_polygon",
    "normalize_ring",
    "points_in_rings",
    "shoelace_area",
    "validate_lng_lat",
]
