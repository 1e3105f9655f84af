"""Pointy-top hexagon geometry in odd-r offset layout.

Rows are horizontal; every odd row is pushed right by half a hex width.
``size`` is the centre-to-corner radius in whatever unit the caller
uses (pixels for rendering, 1.0 for the gradient's distance field).
Physical sizing takes the quilter's point-to-point measurement instead.
"""

from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np

SQRT3 = math.sqrt(3.0)

Coord = Tuple[int, int]  # (row, col)


def grid_dimensions(
    hex_size: float, quilt_width: float, quilt_height: float
) -> tuple[int, int]:
    """How many whole hexes of point-to-point ``hex_size`` fit the quilt.

    Returns ``(cols, rows)``, each at least 1. Floors, so the grid never
    overhangs the stated physical bounds.
    """
    if hex_size <= 0:
        raise ValueError("hex size must be > 0")
    hex_height = float(hex_size)
    radius = hex_height / 2.0
    hex_width = SQRT3 * radius

    cols = math.floor((quilt_width - hex_width / 2.0) / hex_width) + 1
    rows = math.floor((quilt_height - hex_height / 4.0) / (hex_height * 0.75)) + 1
    return max(1, cols), max(1, rows)


def pixel_center(col: int, row: int, size: float) -> tuple[float, float]:
    width = SQRT3 * size
    x_offset = width / 2.0 if row % 2 == 1 else 0.0
    x = col * width + x_offset + width / 2.0
    y = row * (2.0 * size * 0.75) + size
    return x, y


def pixel_centers(cols: int, rows: int, size: float = 1.0) -> np.ndarray:
    """Centres of every cell, row-major, as a ``(rows*cols, 2)`` array."""
    rr, cc = np.divmod(np.arange(rows * cols), cols)
    width = SQRT3 * size
    x = cc * width + (rr % 2) * (width / 2.0) + width / 2.0
    y = rr * (1.5 * size) + size
    return np.stack([x, y], axis=-1).astype(np.float64)


def canvas_size(cols: int, rows: int, size: float) -> tuple[float, float]:
    """Pixel extent a renderer needs for the whole grid."""
    width = SQRT3 * size
    return cols * width + width / 2.0 + size, rows * 1.5 * size + size / 2.0 + size


def offset_to_cube(row: int, col: int) -> tuple[int, int, int]:
    x = col - row // 2
    z = row
    return x, -x - z, z


def hex_distance(a: Coord, b: Coord) -> int:
    ax, ay, az = offset_to_cube(*a)
    bx, by, bz = offset_to_cube(*b)
    return (abs(ax - bx) + abs(ay - by) + abs(az - bz)) // 2


def hexes_in_radius(
    center_row: int, center_col: int, radius: int, cols: int, rows: int
) -> List[Coord]:
    """All in-grid cells within hex distance ``radius`` of the centre.

    Scans the whole grid so cells on the boundary are never skipped.
    Result is in row-major order.
    """
    cx, cy, cz = offset_to_cube(center_row, center_col)
    rr, cc = np.divmod(np.arange(rows * cols), cols)
    x = cc - rr // 2
    z = rr
    y = -x - z
    dist = (np.abs(x - cx) + np.abs(y - cy) + np.abs(z - cz)) // 2
    hit = np.flatnonzero(dist <= radius)
    return [(int(rr[i]), int(cc[i])) for i in hit]


__all__ = [
    "grid_dimensions",
    "pixel_center",
    "pixel_centers",
    "canvas_size",
    "offset_to_cube",
    "hex_distance",
    "hexes_in_radius",
]
