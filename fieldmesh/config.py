"""Engine configuration for mesh generation.

Settings are grouped under a ``"Mesh"`` section of a JSON config file, e.g.::

    {"Mesh": {"CellSizeMeters": 5, "MaxCells": 100000, "MinRetainFraction": 0.01}}
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

CONFIG_SECTION = "Mesh"

_KEY_MAP = {
    "CellSizeMeters": "default_cell_size_meters",
    "MaxCells": "max_cells",
    "MinRetainFraction": "min_retain_fraction",
}


@dataclass(frozen=True)
class MeshConfig:
    """Thresholds that bound mesh generation work and output quality.

    Parameters
    ----------
    default_cell_size_meters : float
        Cell edge length used when a caller does not pass one.
    max_cells : int
        Upper bound on candidate ``rows * cols`` before clipping starts.
    min_retain_fraction : float
        Clipped cells smaller than this fraction of the nominal cell area
        are discarded.
    """

    default_cell_size_meters: float = 5.0
    max_cells: int = 100_000
    min_retain_fraction: float = 0.01

    def __post_init__(self) -> None:
        _validate_config(self)


def _validate_config(config: MeshConfig) -> None:
    """Validate config values.

    Raises
    ------
    ValueError
        Raised when any threshold is out of range.
    """
    cell_size = config.default_cell_size_meters
    if not math.isfinite(cell_size) or cell_size <= 0:
        raise ValueError(f"default_cell_size_meters must be > 0, got {cell_size}")
    if int(config.max_cells) != config.max_cells or config.max_cells < 1:
        raise ValueError(f"max_cells must be a positive integer, got {config.max_cells}")
    if not 0.0 <= config.min_retain_fraction < 1.0:
        raise ValueError(
            f"min_retain_fraction must be in [0, 1), got {config.min_retain_fraction}"
        )


def load_mesh_config(config_path: str | Path) -> MeshConfig:
    """Load mesh config from a JSON file.

    Parameters
    ----------
    config_path : str | Path
        JSON file path. A missing file yields defaults.

    Returns
    -------
    MeshConfig
        Parsed configuration; unknown keys are ignored.
    """
    path_obj = Path(config_path)
    if not path_obj.exists():
        logger.warning(f"Config file not found, using defaults: {path_obj}")
        return MeshConfig()

    with open(path_obj, "r", encoding="utf-8") as f:
        data = json.load(f)
    section = data.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ValueError(f"'{CONFIG_SECTION}' section must be an object")

    kwargs = {
        field_name: section[key] for key, field_name in _KEY_MAP.items() if key in section
    }
    config = MeshConfig(**kwargs)
    logger.debug(f"Loaded mesh config from {path_obj}: {config}")
    return config
