# fieldmesh Core Module
"""
Core mesh generation entry points.

Contains:
- Boundary normalization for GeoJSON, shapely and GeoPandas inputs
- Mesh generation and statistics
"""

from fieldmesh.core.mesh_generator import (
    MeshGenerator,
    MeshOptions,
    describe_mesh_result,
    generate_mesh,
    normalize_boundary,
)

__all__ = [
    "MeshGenerator",
    "MeshOptions",
    "describe_mesh_result",
    "generate_mesh",
    "normalize_boundary",
]
