"""
Mesh Generation Core Module.

Overlays a uniform metric grid on a field boundary drawn in lng/lat, clips the
grid to the boundary and returns the retained cells ready for selection.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

import geopandas as gpd
import numpy as np
from loguru import logger
from shapely.geometry import Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform

from fieldmesh.config import MeshConfig
from fieldmesh.errors import InvalidPolygonError
from fieldmesh.utils.mesh_cells.model import (
    MeshCell,
    MeshResult,
    MeshStatistics,
    make_cell_id,
)
from fieldmesh.utils.mesh_cells.serialize import MESH_CRS
from fieldmesh.utils.mesh_cells.statistics import summarize_cells
from fieldmesh.utils.mesh_generate.clip import (
    FULL_AREA_TOLERANCE,
    ClipKind,
    PolygonClipper,
    RayCastingClipper,
)
from fieldmesh.utils.mesh_generate.grid import CandidateGrid, build_candidate_grid
from fieldmesh.utils.mesh_generate.polygon import ClosedPolygon, normalize_polygon
from fieldmesh.utils.mesh_generate.projection import LocalProjector

ClipperFactory = Callable[[ClosedPolygon, float], PolygonClipper]


@dataclass(frozen=True)
class MeshOptions:
    """Per-call mesh options.

    Parameters
    ----------
    cell_size_meters : float, optional
        Cell edge length. ``None`` uses ``MeshConfig.default_cell_size_meters``.
    crop_to_polygon : bool
        Clip cells to the boundary. When ``False`` every overlapping cell is
        kept as its whole square.
    generate_statistics : bool
        Attach ``MeshStatistics`` to the result.
    buffer_meters : float
        Grow the boundary by this metric distance before meshing.
    """

    cell_size_meters: Optional[float] = None
    crop_to_polygon: bool = True
    generate_statistics: bool = True
    buffer_meters: float = 0.0


def _rings_from_geometry(geom: BaseGeometry) -> tuple[Sequence, list[Sequence]]:
    """Extract exterior and interior rings from a shapely polygon."""
    if not isinstance(geom, Polygon):
        raise InvalidPolygonError(f"boundary must be a Polygon, got {geom.geom_type}")
    if geom.is_empty:
        raise InvalidPolygonError("boundary polygon is empty")
    exterior = list(geom.exterior.coords)
    holes = [list(interior.coords) for interior in geom.interiors]
    return exterior, holes


def _rings_from_mapping(data: Mapping[str, Any]) -> tuple[Sequence, list[Sequence]]:
    """Extract rings from a GeoJSON Feature, FeatureCollection or geometry."""
    geojson_type = data.get("type")
    if geojson_type == "FeatureCollection":
        features = data.get("features") or []
        if len(features) != 1:
            raise InvalidPolygonError(
                f"FeatureCollection must contain exactly one feature, got {len(features)}"
            )
        return _rings_from_mapping(features[0])
    if geojson_type == "Feature":
        geometry = data.get("geometry")
        if not isinstance(geometry, Mapping):
            raise InvalidPolygonError("feature has no geometry")
        return _rings_from_mapping(geometry)
    if geojson_type != "Polygon":
        raise InvalidPolygonError(f"boundary must be a Polygon, got {geojson_type}")
    coordinates = data.get("coordinates") or []
    if not coordinates:
        raise InvalidPolygonError("polygon has no coordinates")
    return coordinates[0], list(coordinates[1:])


def normalize_boundary(polygon_feature: Any) -> ClosedPolygon:
    """Normalize any supported boundary input.

    Parameters
    ----------
    polygon_feature : Any
        GeoJSON Feature/FeatureCollection/Polygon mapping, shapely
        ``Polygon``, one-row ``GeoDataFrame`` or a plain exterior ring.

    Returns
    -------
    ClosedPolygon
        Validated polygon in lng/lat.
    """
    if isinstance(polygon_feature, gpd.GeoDataFrame):
        if len(polygon_feature) != 1:
            raise InvalidPolygonError(
                f"Boundary must contain exactly one polygon, got {len(polygon_feature)}"
            )
        boundary_gdf = polygon_feature
        if boundary_gdf.crs is not None and boundary_gdf.crs != MESH_CRS:
            boundary_gdf = boundary_gdf.to_crs(MESH_CRS)
        exterior, holes = _rings_from_geometry(boundary_gdf.geometry.iloc[0])
    elif isinstance(polygon_feature, BaseGeometry):
        exterior, holes = _rings_from_geometry(polygon_feature)
    elif isinstance(polygon_feature, Mapping):
        exterior, holes = _rings_from_mapping(polygon_feature)
    elif polygon_feature is None:
        raise InvalidPolygonError("Invalid polygon feature provided")
    else:
        exterior, holes = polygon_feature, []
    return normalize_polygon(exterior, holes)


def buffer_boundary(polygon: ClosedPolygon, buffer_meters: float) -> ClosedPolygon:
    """Grow a boundary by a metric distance.

    Parameters
    ----------
    polygon : ClosedPolygon
        Normalized boundary.
    buffer_meters : float
        Buffer distance, ``>= 0``.

    Returns
    -------
    ClosedPolygon
        Buffered boundary, or ``polygon`` itself when the distance is zero.
    """
    if not math.isfinite(buffer_meters) or buffer_meters < 0:
        raise ValueError(f"buffer_meters must be >= 0, got {buffer_meters}")
    if buffer_meters == 0:
        return polygon

    projector = LocalProjector(*polygon.centroid)

    def _to_local(x, y):
        local_xy = projector.to_local(np.column_stack([x, y]))
        return local_xy[:, 0], local_xy[:, 1]

    def _to_geographic(x, y):
        geo_xy = projector.to_geographic(np.column_stack([x, y]))
        return geo_xy[:, 0], geo_xy[:, 1]

    local_geom = transform(_to_local, polygon.geometry)
    buffered = transform(_to_geographic, local_geom.buffer(buffer_meters))
    logger.debug(f"Applied {buffer_meters} m buffer to boundary")
    exterior, holes = _rings_from_geometry(buffered)
    return normalize_polygon(exterior, holes)


def _build_cells(
    grid: CandidateGrid,
    clipper: PolygonClipper,
    crop_to_polygon: bool,
) -> list[MeshCell]:
    """Clip every candidate and keep non-empty cells."""
    cells: list[MeshCell] = []
    scale = grid.scale
    for candidate in grid.iter_cells():
        clip_result = clipper.clip(candidate.bounds)
        if clip_result.is_empty:
            continue
        if crop_to_polygon:
            geometry = clip_result.geometry
            clip_kind = clip_result.kind
            area_deg2 = clip_result.area_deg2
        else:
            geometry = box(*candidate.bounds.as_tuple())
            clip_kind = ClipKind.FULL
            area_deg2 = candidate.bounds.width * candidate.bounds.height
        centroid = geometry.centroid
        cells.append(
            MeshCell(
                cell_id=make_cell_id(candidate.row, candidate.col, grid.cell_size_meters),
                row=candidate.row,
                col=candidate.col,
                bounds=candidate.bounds,
                geometry=geometry,
                clip_kind=clip_kind,
                area_square_meters=scale.area_to_square_meters(area_deg2),
                center=(float(centroid.x), float(centroid.y)),
            )
        )
    return cells


def _build_statistics(
    cells: list[MeshCell], grid: CandidateGrid, polygon_area_sqm: float
) -> MeshStatistics:
    """Grid-level statistics for one generation."""
    summary = summarize_cells(cells, polygon_area_sqm)
    total_grid_cells = grid.total_cells
    average_area = summary.total_area_sqm / len(cells) if cells else 0.0
    return MeshStatistics(
        total_grid_cells=total_grid_cells,
        intersecting_cells=len(cells),
        coverage_percentage=len(cells) / total_grid_cells * 100.0,
        average_cell_area=average_area,
        total_selected_area=summary.selected_area_sqm,
        coverage_ratio=summary.coverage_ratio or 0.0,
    )


def generate_mesh(
    polygon_feature: Any,
    options: Optional[MeshOptions] = None,
    config: Optional[MeshConfig] = None,
    clipper_factory: ClipperFactory = RayCastingClipper,
) -> MeshResult:
    """Generate a clipped mesh over a field boundary.

    Parameters
    ----------
    polygon_feature : Any
        Boundary in any form accepted by ``normalize_boundary``.
    options : MeshOptions, optional
        Per-call options.
    config : MeshConfig, optional
        Engine thresholds.
    clipper_factory : ClipperFactory, optional
        Builds the clipper from the boundary and a minimum retain fraction.

    Returns
    -------
    MeshResult
        Retained cells; nothing is returned when validation fails.

    Raises
    ------
    InvalidCoordinateError, InvalidPolygonError
        Raised for structural input errors.
    MeshTooLargeError
        Raised before clipping when the grid exceeds ``config.max_cells``.
    """
    options = options or MeshOptions()
    config = config or MeshConfig()
    cell_size = options.cell_size_meters
    if cell_size is None:
        cell_size = config.default_cell_size_meters
    logger.info(f"Generating mesh: cell_size={cell_size} m, crop={options.crop_to_polygon}")

    polygon = normalize_boundary(polygon_feature)
    polygon = buffer_boundary(polygon, float(options.buffer_meters))
    grid = build_candidate_grid(polygon, cell_size, config.max_cells)
    # Whole squares are kept for any real overlap; only float noise is dropped.
    if options.crop_to_polygon:
        retain_fraction = config.min_retain_fraction
    else:
        retain_fraction = FULL_AREA_TOLERANCE
    clipper = clipper_factory(polygon, retain_fraction)
    cells = _build_cells(grid, clipper, options.crop_to_polygon)

    if options.crop_to_polygon and clipper.discarded_slivers:
        logger.warning(
            f"Discarded {clipper.discarded_slivers} sliver cells below "
            f"{retain_fraction:.2%} of nominal area"
        )

    polygon_area = polygon.area_square_meters
    statistics = None
    if options.generate_statistics:
        statistics = _build_statistics(cells, grid, polygon_area)

    result = MeshResult(
        cells=cells,
        cell_size_meters=grid.cell_size_meters,
        rows=grid.rows,
        cols=grid.cols,
        polygon_area_sqm=polygon_area,
        statistics=statistics,
        boundary=polygon.geometry,
    )
    logger.info(f"Mesh generated: {result.total_cells} cells of {grid.total_cells} candidates")
    return result


def describe_mesh_result(result: MeshResult) -> None:
    """Log a debug summary of a mesh result."""
    logger.debug(f"Total cells: {result.total_cells}")
    logger.debug(f"Covered area: {result.covered_area_sqm:.2f} m2")
    if result.statistics is not None:
        stats = result.statistics
        logger.debug(f"Grid cells: {stats.total_grid_cells}")
        logger.debug(f"Intersecting cells: {stats.intersecting_cells}")
        logger.debug(f"Coverage: {stats.coverage_percentage:.1f}%")
        logger.debug(f"Average cell area: {stats.average_cell_area:.2f} m2")
    if result.cells:
        first_cell = result.cells[0]
        logger.debug(
            f"First cell: {first_cell.cell_id} at row {first_cell.row}, "
            f"col {first_cell.col}, {first_cell.area_square_meters:.2f} m2"
        )


class MeshGenerator:
    """
    Generator for clipped cell meshes inside a field boundary.

    Holds the engine configuration and clipper factory; every call to ``generate`` returns a new,
    independent ``MeshResult``.
    """

    def __init__(
        self,
        config: Optional[MeshConfig] = None,
        clipper_factory: ClipperFactory = RayCastingClipper,
    ):
        self.config = config or MeshConfig()
        self.clipper_factory = clipper_factory

    def load_boundary(self, boundary_path: str | Path) -> gpd.GeoDataFrame:
        """
        Load a boundary file and validate it.

        Raises
        ------
        InvalidPolygonError
            Raised when the file does not hold exactly one Polygon.
        """
        gdf = gpd.read_file(Path(boundary_path))
        if len(gdf) != 1:
            raise InvalidPolygonError("Boundary file must contain exactly one polygon.")

        geom_type = gdf.geometry.iloc[0].geom_type
        if geom_type != "Polygon":
            raise InvalidPolygonError(f"Invalid geometry type: {geom_type}")
        logger.info(f"Loaded boundary from {boundary_path}")
        return gdf

    def generate(
        self,
        boundary: Any,
        cell_size_meters: Optional[float] = None,
        crop_to_polygon: bool = True,
        generate_statistics: bool = True,
        buffer_meters: float = 0.0,
    ) -> MeshResult:
        """
        Generate a mesh.

        Parameters
        ----------
        boundary : Any
            Boundary GeoDataFrame, GeoJSON mapping, shapely Polygon or ring.
        cell_size_meters : float, optional
            Cell edge length; defaults to the configured size.
        crop_to_polygon : bool
            Clip cells to the boundary.
        generate_statistics : bool
            Attach grid statistics.
        buffer_meters : float
            Metric buffer applied before meshing.

        Returns
        -------
        MeshResult
            Generated cells.
        """
        options = MeshOptions(
            cell_size_meters=cell_size_meters,
            crop_to_polygon=crop_to_polygon,
            generate_statistics=generate_statistics,
            buffer_meters=buffer_meters,
        )
        return generate_mesh(boundary, options, self.config, self.clipper_factory)
