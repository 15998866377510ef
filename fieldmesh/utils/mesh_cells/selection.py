"""Point and rectangle selection over mesh cells.

Point selection toggles one cell. Rectangle selection is additive: it only
ever sets ``is_selected`` to ``True`` and leaves cells outside the rectangle
untouched, so repeated drags accumulate into one selection.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
from shapely.geometry import Point

from fieldmesh.utils.mesh_cells.model import MeshCell
from fieldmesh.utils.mesh_generate.polygon import Bounds, make_bounds


class CellSelectionEngine:
    """Selection state machine over one generation's cells.

    Cells are mutated in place; only ``is_selected``, ``is_occupied`` and
    ``vegetable_id`` are touched.

    Parameters
    ----------
    cells : Sequence[MeshCell]
        Cells of one mesh result.

    Examples
    --------
    >>> engine = CellSelectionEngine(result.cells)
    >>> engine.select_in_bounds((139.0, 35.0, 139.1, 35.1))
    12
    >>> engine.clear_selection()
    """

    def __init__(self, cells: Sequence[MeshCell]) -> None:
        self.cells: list[MeshCell] = list(cells)
        self._index_by_id = {cell.cell_id: idx for idx, cell in enumerate(self.cells)}
        # bounds_array shape: (N, 4) as west, south, east, north.
        if self.cells:
            self._bounds_array = np.asarray(
                [cell.bounds.as_tuple() for cell in self.cells], dtype=np.float64
            )
        else:
            self._bounds_array = np.empty((0, 4), dtype=np.float64)
        self._order_keys = np.asarray(
            [(cell.row, cell.col) for cell in self.cells], dtype=np.int64
        ).reshape(-1, 2)

    def _ordered(self, indices: np.ndarray) -> list[int]:
        """Sort cell indices by ``(row, col)``."""
        if indices.size == 0:
            return []
        keys = self._order_keys[indices]
        order = np.lexsort((keys[:, 1], keys[:, 0]))
        return [int(i) for i in indices[order]]

    def find_cell_at_point(self, lng: float, lat: float) -> MeshCell | None:
        """Locate the cell containing a point.

        Parameters
        ----------
        lng, lat : float
            Query point.

        Returns
        -------
        MeshCell | None
            Lowest ``(row, col)`` cell whose bounds contain the point and,
            for partial cells, whose clipped geometry covers it.
        """
        bounds = self._bounds_array
        mask = (
            (bounds[:, 0] <= lng)
            & (lng <= bounds[:, 2])
            & (bounds[:, 1] <= lat)
            & (lat <= bounds[:, 3])
        )
        candidates = self._ordered(np.flatnonzero(mask))
        if not candidates:
            return None
        query_point = Point(lng, lat)
        for idx in candidates:
            cell = self.cells[idx]
            if not cell.is_partial or cell.geometry.covers(query_point):
                return cell
        return None

    def select_at_point(self, lng: float, lat: float) -> MeshCell | None:
        """Toggle selection of the cell at a point.

        Returns
        -------
        MeshCell | None
            Toggled cell, or ``None`` when no cell contains the point.
        """
        cell = self.find_cell_at_point(lng, lat)
        if cell is None:
            return None
        cell.is_selected = not cell.is_selected
        return cell

    def select_in_bounds(self, bounds: Sequence[float] | Bounds) -> int:
        """Select every cell whose bounds intersect a rectangle.

        Parameters
        ----------
        bounds : Sequence[float] | Bounds
            ``(west, south, east, north)`` selection rectangle.

        Returns
        -------
        int
            Number of cells inside the rectangle.
        """
        rect = make_bounds(bounds)
        cell_bounds = self._bounds_array
        mask = ~(
            (cell_bounds[:, 2] < rect.west)
            | (cell_bounds[:, 0] > rect.east)
            | (cell_bounds[:, 3] < rect.south)
            | (cell_bounds[:, 1] > rect.north)
        )
        hit_indices = np.flatnonzero(mask)
        for idx in hit_indices:
            self.cells[int(idx)].is_selected = True
        return int(hit_indices.size)

    def clear_selection(self) -> None:
        """Deselect all cells."""
        for cell in self.cells:
            cell.is_selected = False

    def set_selection(self, cell_ids: Iterable[str], selected: bool = True) -> int:
        """Set selection of cells by id; unknown ids are ignored.

        Returns
        -------
        int
            Number of cells updated.
        """
        updated = 0
        for cell_id in cell_ids:
            idx = self._index_by_id.get(cell_id)
            if idx is None:
                continue
            self.cells[idx].is_selected = bool(selected)
            updated += 1
        return updated

    def set_occupied(
        self,
        cell_ids: Iterable[str],
        occupied: bool = True,
        vegetable_id: str | None = None,
    ) -> int:
        """Mark cells as occupied by a planting, or free them.

        Parameters
        ----------
        cell_ids : Iterable[str]
            Target cell ids; unknown ids are ignored.
        occupied : bool, optional
            New occupancy flag.
        vegetable_id : str | None, optional
            Planting id stored on occupied cells; cleared when freeing.

        Returns
        -------
        int
            Number of cells updated.
        """
        updated = 0
        for cell_id in cell_ids:
            idx = self._index_by_id.get(cell_id)
            if idx is None:
                continue
            cell = self.cells[idx]
            cell.is_occupied = bool(occupied)
            cell.vegetable_id = vegetable_id if occupied else None
            updated += 1
        return updated

    def selected_cells(self) -> list[MeshCell]:
        return [cell for cell in self.cells if cell.is_selected]


def _copied(cells: Sequence[MeshCell]) -> list[MeshCell]:
    return [cell.copy() for cell in cells]


def select_cell_at_point(cells: Sequence[MeshCell], lng: float, lat: float) -> list[MeshCell]:
    """Return copied cells with the cell at ``(lng, lat)`` toggled."""
    updated = _copied(cells)
    CellSelectionEngine(updated).select_at_point(lng, lat)
    return updated


def select_cells_in_bounds(
    cells: Sequence[MeshCell], bounds: Sequence[float] | Bounds
) -> list[MeshCell]:
    """Return copied cells with every cell intersecting ``bounds`` selected."""
    updated = _copied(cells)
    CellSelectionEngine(updated).select_in_bounds(bounds)
    return updated


def update_cell_selection_batch(
    cells: Sequence[MeshCell], cell_ids: Iterable[str], selected: bool
) -> list[MeshCell]:
    """Return copied cells with the listed ids set to ``selected``."""
    updated = _copied(cells)
    CellSelectionEngine(updated).set_selection(cell_ids, selected)
    return updated


def clear_cell_selection(cells: Sequence[MeshCell]) -> list[MeshCell]:
    """Return copied cells with nothing selected."""
    updated = _copied(cells)
    CellSelectionEngine(updated).clear_selection()
    return updated
