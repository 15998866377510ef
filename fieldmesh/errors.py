"""Error taxonomy for mesh generation and cell selection."""

from __future__ import annotations


class MeshError(ValueError):
    """Base class for structural mesh-generation failures."""


class InvalidCoordinateError(MeshError):
    """Raised when a longitude or latitude is out of range or not finite."""


class InvalidPolygonError(MeshError):
    """Raised when a boundary ring cannot form a usable polygon."""


class MeshTooLargeError(MeshError):
    """Raised when the candidate grid exceeds the configured cell limit.

    Parameters
    ----------
    rows, cols : int
        Candidate grid shape that was rejected.
    max_cells : int
        Configured upper bound on ``rows * cols``.
    """

    def __init__(self, rows: int, cols: int, max_cells: int) -> None:
        self.rows = rows
        self.cols = cols
        self.max_cells = max_cells
        super().__init__(
            f"mesh would contain {rows * cols} cells ({rows} rows x {cols} cols), "
            f"limit is {max_cells}; choose a larger cell size"
        )


class DegenerateClipWarning(UserWarning):
    """Clipped cell sliver below the retain threshold. Logged, never raised."""

    def __init__(self, bounds: tuple[float, float, float, float], fraction: float):
        self.bounds = bounds
        self.fraction = fraction
        super().__init__(
            f"discarded sliver cell at {bounds}: {fraction:.4%} of nominal area"
        )
