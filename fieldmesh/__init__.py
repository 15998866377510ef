# fieldmesh - Source Package
"""
fieldmesh: field boundary meshing and cell selection engine.

This package provides:
- Uniform metric grids over a field boundary drawn in lng/lat
- Clipping of grid cells to concave boundaries with holes
- Point and rectangle cell selection
- GeoJSON / GeoDataFrame export and area statistics
"""

__version__ = "0.1.0"
