"""
Test mesh generation end to end.
"""

import geopandas as gpd
import pytest
from shapely.geometry import MultiPolygon, Polygon, box, shape

from fieldmesh.config import MeshConfig
from fieldmesh.core.mesh_generator import MeshGenerator, MeshOptions, generate_mesh
from fieldmesh.errors import InvalidPolygonError, MeshTooLargeError
from fieldmesh.utils.mesh_cells.serialize import cells_to_geojson
from fieldmesh.utils.mesh_generate.clip import ClipKind, ClipResult


def test_square_field_gives_four_full_cells(square_field) -> None:
    """100 m square with 50 m cells is exactly 4 full cells of ~2500 m2."""
    result = generate_mesh(square_field, MeshOptions(cell_size_meters=50))

    assert result.total_cells == 4
    assert all(cell.clip_kind == ClipKind.FULL for cell in result.cells)
    for cell in result.cells:
        assert cell.area_square_meters == pytest.approx(2500.0, rel=0.01)
        assert cell.is_selected is False
    assert result.statistics.total_grid_cells == 4
    assert result.statistics.coverage_ratio == pytest.approx(1.0, rel=1e-6)


def test_triangle_field_mixes_full_partial_and_empty(triangle_field) -> None:
    """Triangle in a 100 m box with 10 m cells mixes all clip outcomes."""
    result = generate_mesh(triangle_field, MeshOptions(cell_size_meters=10))
    kinds = [cell.clip_kind for cell in result.cells]
    full_count = kinds.count(ClipKind.FULL)
    partial_count = kinds.count(ClipKind.PARTIAL)
    empty_count = result.statistics.total_grid_cells - result.total_cells

    assert full_count > 0
    assert partial_count > 0
    assert empty_count > 0
    assert result.statistics.coverage_ratio >= 0.95
    for cell in result.cells:
        if cell.clip_kind == ClipKind.PARTIAL:
            assert cell.area_square_meters == pytest.approx(50.0, rel=0.01)


@pytest.mark.parametrize("cell_size", [7.0, 10.0, 13.0])
def test_retained_area_matches_polygon_area(meter_field, cell_size: float) -> None:
    """Union of retained cells stays within the discard tolerance."""
    field = meter_field(
        [(0, 0), (120, 0), (120, 40), (50, 40), (50, 110), (0, 110), (0, 0)]
    )
    result = generate_mesh(field, MeshOptions(cell_size_meters=cell_size))
    nominal_area = cell_size * cell_size
    polygon_area = result.polygon_area_sqm

    assert polygon_area == pytest.approx(120 * 40 + 50 * 70, rel=1e-6)
    assert polygon_area * (1 - 0.01) <= result.covered_area_sqm
    assert result.covered_area_sqm <= polygon_area * (1 + 1e-6)
    for cell in result.cells:
        assert 0 < cell.area_square_meters <= nominal_area * (1 + 1e-6)


def test_feature_count_equals_retained_cells(triangle_field) -> None:
    """Serializer emits one feature per retained cell."""
    result = generate_mesh(triangle_field, MeshOptions(cell_size_meters=10))
    collection = cells_to_geojson(result.cells)
    assert len(collection["features"]) == result.total_cells


def test_too_large_mesh_raises_before_clipping(meter_field) -> None:
    """0.1 m cells over 10 km x 10 km fail before any clipping."""

    def _fail(*args, **kwargs):
        raise AssertionError("clipper must not be built")

    field = meter_field([(0, 0), (10_000, 0), (10_000, 10_000), (0, 10_000), (0, 0)])
    with pytest.raises(MeshTooLargeError):
        generate_mesh(field, MeshOptions(cell_size_meters=0.1), clipper_factory=_fail)


def test_two_distinct_vertices_raise_invalid_polygon() -> None:
    """Degenerate boundaries never produce a result."""
    feature = {
        "type": "Feature",
        "geometry": {
            "type": "Polygon",
            "coordinates": [[[139.7, 35.6], [139.71, 35.61], [139.7, 35.6]]],
        },
    }
    with pytest.raises(InvalidPolygonError):
        generate_mesh(feature)


def test_unsupported_inputs_raise_invalid_polygon() -> None:
    """MultiPolygons, points, and empty input are rejected."""
    multi = MultiPolygon([box(0, 0, 1, 1), box(2, 2, 3, 3)])
    with pytest.raises(InvalidPolygonError):
        generate_mesh(multi)
    with pytest.raises(InvalidPolygonError):
        generate_mesh({"type": "Point", "coordinates": [0.0, 0.0]})
    with pytest.raises(InvalidPolygonError):
        generate_mesh(None)


def test_holes_are_excluded(meter_field) -> None:
    """Cells inside a hole are not retained."""
    field = meter_field(
        [(0, 0), (100, 0), (100, 100), (0, 100), (0, 0)],
        [(30, 30), (70, 30), (70, 70), (30, 70), (30, 30)],
    )
    result = generate_mesh(field, MeshOptions(cell_size_meters=10))
    assert result.total_cells == 100 - 16
    assert result.covered_area_sqm == pytest.approx(8400.0, rel=0.01)


def test_concave_cell_split_into_two_pieces(u_field) -> None:
    """A cell across both arms of a U keeps both pieces as one cell."""
    result = generate_mesh(u_field, MeshOptions(cell_size_meters=30))
    assert (result.rows, result.cols) == (2, 1)
    top_cell = next(cell for cell in result.cells if cell.row == 1)
    assert top_cell.clip_kind == ClipKind.PARTIAL
    assert isinstance(top_cell.geometry, MultiPolygon)
    assert top_cell.area_square_meters == pytest.approx(600.0, rel=0.01)
    assert result.covered_area_sqm == pytest.approx(1300.0, rel=0.01)


def test_crop_disabled_keeps_whole_squares(triangle_field) -> None:
    """Without cropping every overlapping cell is a whole square."""
    result = generate_mesh(
        triangle_field, MeshOptions(cell_size_meters=10, crop_to_polygon=False)
    )
    assert result.total_cells == 55
    for cell in result.cells:
        assert cell.clip_kind == ClipKind.FULL
        assert cell.area_square_meters == pytest.approx(100.0, rel=0.01)


def test_crop_disabled_keeps_thin_overlap_column(meter_field) -> None:
    """A field reaching 5 cm into the next column keeps that whole square."""
    field = meter_field([(0, 0), (10.05, 0), (10.05, 10), (0, 10), (0, 0)])

    cropped = generate_mesh(field, MeshOptions(cell_size_meters=10))
    assert [cell.cell_id for cell in cropped.cells] == ["cell_0_0_10m"]

    whole = generate_mesh(
        field, MeshOptions(cell_size_meters=10, crop_to_polygon=False)
    )
    assert [cell.cell_id for cell in whole.cells] == ["cell_0_0_10m", "cell_0_1_10m"]
    assert whole.cells[1].clip_kind == ClipKind.FULL
    assert whole.cells[1].area_square_meters == pytest.approx(100.0, rel=0.01)


class _EverythingFullClipper:
    """Clipper that reports every candidate as a whole cell."""

    def __init__(self, polygon, min_retain_fraction: float) -> None:
        self.polygon = polygon
        self.min_retain_fraction = min_retain_fraction
        self.discarded_slivers = 0
        self.calls = 0

    def clip(self, bounds) -> ClipResult:
        self.calls += 1
        return ClipResult(
            ClipKind.FULL, box(*bounds.as_tuple()), bounds.width * bounds.height
        )


def test_custom_clipper_factory_is_used(triangle_field) -> None:
    """Injected clippers replace the default without other changes."""
    built = []

    def _factory(polygon, min_retain_fraction):
        clipper = _EverythingFullClipper(polygon, min_retain_fraction)
        built.append(clipper)
        return clipper

    generator = MeshGenerator(MeshConfig(min_retain_fraction=0.05), _factory)
    result = generator.generate(triangle_field, cell_size_meters=10)

    assert len(built) == 1
    assert built[0].min_retain_fraction == 0.05
    assert built[0].calls == 100
    assert result.total_cells == 100
    assert all(cell.clip_kind == ClipKind.FULL for cell in result.cells)


def test_buffer_grows_meshed_area(square_field) -> None:
    """A metric buffer enlarges the meshed boundary."""
    plain = generate_mesh(square_field, MeshOptions(cell_size_meters=10))
    buffered = generate_mesh(
        square_field, MeshOptions(cell_size_meters=10, buffer_meters=5)
    )
    assert buffered.polygon_area_sqm > plain.polygon_area_sqm
    assert buffered.polygon_area_sqm == pytest.approx(
        110 * 110 - (4 - 3.14159) * 25, rel=0.01
    )
    with pytest.raises(ValueError):
        generate_mesh(square_field, MeshOptions(buffer_meters=-1))


def test_statistics_are_optional(square_field) -> None:
    """Statistics are skipped on request."""
    result = generate_mesh(
        square_field, MeshOptions(cell_size_meters=50, generate_statistics=False)
    )
    assert result.statistics is None
    assert result.covered_area_sqm == pytest.approx(10_000.0, rel=0.01)


def test_cell_ids_are_stable_composite_keys(square_field) -> None:
    """Ids encode row, column, and cell size; regeneration repeats them."""
    first = generate_mesh(square_field, MeshOptions(cell_size_meters=50))
    second = generate_mesh(square_field, MeshOptions(cell_size_meters=50))
    ids = [cell.cell_id for cell in first.cells]
    assert ids == ["cell_0_0_50m", "cell_0_1_50m", "cell_1_0_50m", "cell_1_1_50m"]
    assert ids == [cell.cell_id for cell in second.cells]
    assert first.cells[0] is not second.cells[0]


def test_default_cell_size_comes_from_config(square_field) -> None:
    """Omitting the cell size uses the configured default."""
    result = generate_mesh(
        square_field, config=MeshConfig(default_cell_size_meters=25.0)
    )
    assert result.cell_size_meters == 25.0
    assert result.total_cells == 16


def test_generator_loads_boundary_and_reprojects(square_field, tmp_path) -> None:
    """Boundary files in a projected CRS are meshed in lng/lat."""
    boundary_ll = gpd.GeoDataFrame(
        {"id": [1]}, geometry=[shape(square_field["geometry"])], crs="EPSG:4326"
    )
    shp_path = tmp_path / "boundary.shp"
    boundary_ll.to_crs("EPSG:3857").to_file(shp_path)

    generator = MeshGenerator()
    boundary_gdf = generator.load_boundary(shp_path)
    assert boundary_gdf.crs != "EPSG:4326"

    result = generator.generate(boundary_gdf, cell_size_meters=20)
    assert result.polygon_area_sqm == pytest.approx(10_000.0, rel=0.01)
    assert result.covered_area_sqm == pytest.approx(result.polygon_area_sqm, rel=0.01)


def test_generator_rejects_multi_row_boundary(tmp_path) -> None:
    """Boundary files must hold exactly one polygon."""
    gdf = gpd.GeoDataFrame(
        {"id": [1, 2]},
        geometry=[Polygon([(0, 0), (1, 0), (1, 1)]), Polygon([(2, 2), (3, 2), (3, 3)])],
        crs="EPSG:4326",
    )
    shp_path = tmp_path / "two.shp"
    gdf.to_file(shp_path)
    with pytest.raises(InvalidPolygonError):
        MeshGenerator().load_boundary(shp_path)
