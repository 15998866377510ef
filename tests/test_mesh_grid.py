"""Tests for candidate grid layout."""

import pytest

from fieldmesh.core.mesh_generator import normalize_boundary
from fieldmesh.errors import MeshTooLargeError
from fieldmesh.utils.mesh_generate.grid import build_candidate_grid


def test_grid_fits_square_exactly(square_field) -> None:
    """A 100 m square with 50 m cells is a 2 x 2 grid."""
    polygon = normalize_boundary(square_field)
    grid = build_candidate_grid(polygon, 50.0, max_cells=100_000)
    assert (grid.rows, grid.cols) == (2, 2)
    assert grid.cell_area_square_meters == pytest.approx(2500.0)


def test_grid_rounds_partial_columns_up(square_field) -> None:
    """Cells that do not divide the bbox extend beyond it."""
    polygon = normalize_boundary(square_field)
    grid = build_candidate_grid(polygon, 30.0, max_cells=100_000)
    assert (grid.rows, grid.cols) == (4, 4)
    last = grid.cell_bounds(3, 3)
    assert last.east > polygon.bounds.east
    assert last.north > polygon.bounds.north


def test_iter_cells_is_row_major_from_south_west(square_field) -> None:
    """Candidates start at the bbox min corner and walk east first."""
    polygon = normalize_boundary(square_field)
    grid = build_candidate_grid(polygon, 50.0, max_cells=100_000)
    cells = list(grid.iter_cells())
    assert [(c.row, c.col) for c in cells] == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert cells[0].bounds.west == pytest.approx(polygon.bounds.west)
    assert cells[0].bounds.south == pytest.approx(polygon.bounds.south)
    assert cells[1].bounds.west == pytest.approx(cells[0].bounds.east)


def test_grid_over_limit_raises(square_field) -> None:
    """Exceeding max_cells raises with the rejected shape attached."""
    polygon = normalize_boundary(square_field)
    with pytest.raises(MeshTooLargeError) as exc_info:
        build_candidate_grid(polygon, 1.0, max_cells=100)
    assert exc_info.value.rows == 100
    assert exc_info.value.cols == 100
    assert exc_info.value.max_cells == 100


@pytest.mark.parametrize("cell_size", [0.0, -5.0, float("nan")])
def test_grid_rejects_invalid_cell_size(square_field, cell_size: float) -> None:
    """Non-positive cell sizes are rejected."""
    polygon = normalize_boundary(square_field)
    with pytest.raises(ValueError):
        build_candidate_grid(polygon, cell_size, max_cells=100_000)
