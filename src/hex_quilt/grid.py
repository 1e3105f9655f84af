from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .hexgrid import Coord, hexes_in_radius


@dataclass
class Cell:
    color_id: Optional[int] = None
    locked: bool = False


@dataclass
class Anchor:
    row: int
    col: int
    color_id: int


@dataclass
class Grid:
    """Row-major ``cols × rows`` cells plus the gradient anchors.

    The cell count only changes when a new grid replaces this one.
    """

    cols: int
    rows: int
    cells: List[Cell] = field(default_factory=list)
    anchors: List[Anchor] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.cells:
            self.cells = [Cell() for _ in range(self.cols * self.rows)]
        if len(self.cells) != self.cols * self.rows:
            raise ValueError(
                f"grid has {len(self.cells)} cells, expected {self.cols}×{self.rows}"
            )

    def __len__(self) -> int:
        return len(self.cells)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def index(self, row: int, col: int) -> int:
        return row * self.cols + col

    def cell(self, row: int, col: int) -> Optional[Cell]:
        if not self.in_bounds(row, col):
            return None
        return self.cells[self.index(row, col)]

    def footprint(self, row: int, col: int, radius: int) -> List[Coord]:
        return hexes_in_radius(row, col, radius, self.cols, self.rows)

    # ---- anchors ----

    def anchor_at(self, row: int, col: int) -> Optional[Anchor]:
        for a in self.anchors:
            if a.row == row and a.col == col:
                return a
        return None

    def remove_anchor(self, row: int, col: int) -> bool:
        a = self.anchor_at(row, col)
        if a is None:
            return False
        self.anchors.remove(a)
        return True

    # ---- usage ----

    def usage_count(self, color_id: int) -> int:
        return sum(1 for c in self.cells if c.color_id == color_id)

    def usage(self) -> Counter:
        return Counter(c.color_id for c in self.cells if c.color_id is not None)

    def purge_color(self, color_id: int) -> int:
        """Clear every cell and anchor that references ``color_id``."""
        cleared = 0
        for c in self.cells:
            if c.color_id == color_id:
                c.color_id = None
                cleared += 1
        self.anchors = [a for a in self.anchors if a.color_id != color_id]
        return cleared

    # ---- copies ----

    def copy_cells(self) -> List[Cell]:
        return [replace(c) for c in self.cells]

    def copy_anchors(self) -> List[Anchor]:
        return [replace(a) for a in self.anchors]
