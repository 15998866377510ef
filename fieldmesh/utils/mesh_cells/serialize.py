"""GeoJSON and GeoPandas views of mesh cells."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import geopandas as gpd
from loguru import logger
from shapely.geometry import MultiPolygon, Polygon, mapping
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient

from fieldmesh.utils.mesh_cells.model import MeshCell

MESH_CRS = "EPSG:4326"
GDF_COLUMNS = [
    "id",
    "row",
    "col",
    "clip_kind",
    "area_sqm",
    "is_selected",
    "is_occupied",
    "vegetable_id",
    "plant_count",
    "growth_stage",
    "health_status",
]


def _oriented(geom: BaseGeometry) -> BaseGeometry:
    """Apply the GeoJSON right-hand rule (CCW exterior, CW holes)."""
    if isinstance(geom, Polygon):
        return orient(geom, sign=1.0)
    if isinstance(geom, MultiPolygon):
        return MultiPolygon([orient(part, sign=1.0) for part in geom.geoms])
    return geom


def cell_properties(cell: MeshCell) -> dict[str, Any]:
    """Feature properties for one cell."""
    return {
        "id": cell.cell_id,
        "row": cell.row,
        "col": cell.col,
        "clip_kind": cell.clip_kind.value,
        "area_square_meters": cell.area_square_meters,
        "isSelected": bool(cell.is_selected),
        "isOccupied": bool(cell.is_occupied),
        "vegetable_id": cell.vegetable_id,
        "plant_count": cell.plant_count,
        "growth_stage": cell.growth_stage.value,
        "health_status": cell.health_status.value,
    }


def cells_to_geojson(cells: Sequence[MeshCell]) -> dict[str, Any]:
    """Convert cells to a GeoJSON FeatureCollection.

    Parameters
    ----------
    cells : Sequence[MeshCell]
        Retained cells of one mesh result.

    Returns
    -------
    dict[str, Any]
        FeatureCollection with exactly one feature per cell.

    Examples
    --------
    >>> collection = cells_to_geojson(result.cells)
    >>> len(collection["features"]) == result.total_cells
    True
    """
    features = [
        {
            "type": "Feature",
            "id": cell.cell_id,
            "geometry": mapping(_oriented(cell.geometry)),
            "properties": cell_properties(cell),
        }
        for cell in cells
    ]
    return {"type": "FeatureCollection", "features": features}


def cells_to_gdf(cells: Sequence[MeshCell]) -> gpd.GeoDataFrame:
    """Convert cells to a GeoDataFrame in ``EPSG:4326``.

    Returns
    -------
    geopandas.GeoDataFrame
        One row per cell with columns in ``GDF_COLUMNS`` plus ``geometry``.
    """
    data = {column: [] for column in GDF_COLUMNS}
    geometries = []
    for cell in cells:
        data["id"].append(cell.cell_id)
        data["row"].append(cell.row)
        data["col"].append(cell.col)
        data["clip_kind"].append(cell.clip_kind.value)
        data["area_sqm"].append(cell.area_square_meters)
        data["is_selected"].append(bool(cell.is_selected))
        data["is_occupied"].append(bool(cell.is_occupied))
        data["vegetable_id"].append(cell.vegetable_id)
        data["plant_count"].append(cell.plant_count)
        data["growth_stage"].append(cell.growth_stage.value)
        data["health_status"].append(cell.health_status.value)
        geometries.append(_oriented(cell.geometry))
    return gpd.GeoDataFrame(data, geometry=geometries, crs=MESH_CRS)


def _normalize_geojson_output_path(output_path: str | Path) -> Path:
    """Normalize output path and enforce ``.geojson`` suffix."""
    path_obj = Path(output_path)
    if path_obj.suffix.lower() == ".geojson":
        return path_obj
    return path_obj.with_suffix(".geojson")


def save_cells(cells: Sequence[MeshCell], output_path: str | Path) -> Path:
    """Write cells to a GeoJSON file.

    Parameters
    ----------
    cells : Sequence[MeshCell]
        Cells to export.
    output_path : str | Path
        Destination path; the suffix is forced to ``.geojson``.

    Returns
    -------
    pathlib.Path
        Path actually written.
    """
    normalized_path = _normalize_geojson_output_path(output_path)
    normalized_path.parent.mkdir(parents=True, exist_ok=True)
    cells_to_gdf(cells).to_file(normalized_path, driver="GeoJSON")
    logger.info(f"Saved {len(cells)} mesh cells to {normalized_path}")
    return normalized_path
