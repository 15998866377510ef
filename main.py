#!/usr/bin/env python
"""
fieldmesh - Field boundary meshing.

Main entry point: mesh a boundary file and write the cells as GeoJSON.

Usage
-----
    uv run python main.py boundary.geojson --cell-size 5 --output mesh.geojson

or:
    python main.py boundary.geojson --config config.json
"""

import argparse
import sys
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(description="Generate a clipped cell mesh.")
    parser.add_argument("boundary", help="Boundary file with exactly one polygon")
    parser.add_argument("--output", default="mesh.geojson", help="Output GeoJSON path")
    parser.add_argument("--cell-size", type=float, default=None, help="Cell size (m)")
    parser.add_argument("--buffer", type=float, default=0.0, help="Buffer distance (m)")
    parser.add_argument("--config", default="config.json", help="Mesh config JSON")
    parser.add_argument(
        "--no-crop", action="store_true", help="Keep whole squares instead of clipping"
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser


def main(argv=None) -> int:
    """
    Main entry point for fieldmesh.

    Returns
    -------
    int
        Exit code (0 for success, non-zero for error).
    """
    from loguru import logger

    from fieldmesh.config import load_mesh_config
    from fieldmesh.core.mesh_generator import MeshGenerator, describe_mesh_result
    from fieldmesh.errors import MeshError
    from fieldmesh.utils.mesh_cells.serialize import save_cells

    args = build_parser().parse_args(argv)

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>",
        level="DEBUG" if args.verbose else "INFO"
    )

    logger.info("Starting fieldmesh...")

    generator = MeshGenerator(load_mesh_config(args.config))
    try:
        boundary_gdf = generator.load_boundary(Path(args.boundary))
        result = generator.generate(
            boundary_gdf,
            cell_size_meters=args.cell_size,
            crop_to_polygon=not args.no_crop,
            buffer_meters=args.buffer,
        )
    except MeshError as exc:
        logger.error(f"Mesh generation failed: {exc}")
        return 1

    describe_mesh_result(result)
    save_cells(result.cells, args.output)
    logger.info(f"Wrote {result.total_cells} cells")
    return 0


if __name__ == "__main__":
    sys.exit(main())
