"""The quilt design aggregate.

One ``QuiltDesign`` owns the grid, palette, anchors, history and tool
state. Editing and gradient functions take it by reference; nothing is
kept in module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from . import config
from .colorspace import ColorLike
from .editing import IDLE, SwapState, Tool
from .errors import UnknownColor, ValidationFailure
from .grid import Cell, Grid
from .hexgrid import grid_dimensions
from .history import History, Snapshot
from .palette import Palette, PaletteColor

log = logging.getLogger(__name__)


@dataclass
class QuiltDesign:
    hex_real_size: float = config.HEX_REAL_SIZE
    quilt_width: float = config.QUILT_WIDTH
    quilt_height: float = config.QUILT_HEIGHT
    unit: str = config.UNIT
    hex_size: float = config.DISPLAY_HEX_SIZE
    show_numbers: bool = False

    grid: Grid = field(default_factory=lambda: Grid(1, 1))
    palette: Palette = field(default_factory=Palette)
    history: History = field(default_factory=History)

    tool: Tool = Tool.PAINT
    selected_color_id: Optional[int] = None
    brush_size: int = 1
    swap_state: SwapState = IDLE

    _stroke_open: bool = field(default=False, init=False, repr=False)
    _stroke_dirty: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.history.entries:
            self.history.reset(self.snapshot())

    @classmethod
    def create(
        cls,
        hex_real_size: float = config.HEX_REAL_SIZE,
        quilt_width: float = config.QUILT_WIDTH,
        quilt_height: float = config.QUILT_HEIGHT,
        unit: str = config.UNIT,
        *,
        max_history: int = config.MAX_HISTORY,
    ) -> "QuiltDesign":
        design = cls(history=History(max_depth=max_history))
        design.generate_grid(hex_real_size, quilt_width, quilt_height, unit)
        return design

    # ---- grid ----

    @property
    def cols(self) -> int:
        return self.grid.cols

    @property
    def rows(self) -> int:
        return self.grid.rows

    def generate_grid(
        self,
        hex_real_size: float,
        quilt_width: float,
        quilt_height: float,
        unit: Optional[str] = None,
    ) -> tuple[int, int]:
        """Size a fresh empty grid from physical measurements.

        Keeps the palette; drops cells, anchors, any pending swap and the
        undo history.
        """
        if hex_real_size <= 0 or quilt_width <= 0 or quilt_height <= 0:
            raise ValidationFailure("hex size and quilt dimensions must be positive")
        if unit is not None and unit not in config.UNITS:
            raise ValidationFailure(f"unit must be one of {config.UNITS}")

        cols, rows = grid_dimensions(hex_real_size, quilt_width, quilt_height)
        self.hex_real_size = float(hex_real_size)
        self.quilt_width = float(quilt_width)
        self.quilt_height = float(quilt_height)
        if unit is not None:
            self.unit = unit
        self.hex_size = config.DISPLAY_HEX_SIZE
        self.grid = Grid(cols, rows)
        self.reset_history()
        log.info("generated %d×%d grid (%d hexes)", cols, rows, len(self.grid))
        return cols, rows

    def get_cell(self, row: int, col: int) -> Optional[Cell]:
        return self.grid.cell(row, col)

    # ---- palette ----

    def add_color(self, color: ColorLike, total: int = config.DEFAULT_QUANTITY) -> PaletteColor:
        entry = self.palette.add(color, total)
        self.selected_color_id = entry.id
        log.debug("added color #%d %s ×%d", entry.id, entry.hex, entry.total)
        return entry

    def remove_color(self, color_id: int) -> int:
        """Drop a palette entry and everything that references it.

        Returns the number of cells that were cleared.
        """
        if color_id not in self.palette:
            raise UnknownColor(color_id)
        anchors_before = len(self.grid.anchors)
        cleared = self.grid.purge_color(color_id)
        self.palette.discard(color_id)
        if self.selected_color_id == color_id:
            self.selected_color_id = None
        if cleared or len(self.grid.anchors) != anchors_before:
            self.commit()
        return cleared

    def update_quantity(self, color_id: int, total: int) -> PaletteColor:
        entry = self.palette.get(color_id)
        if entry is None:
            raise UnknownColor(color_id)
        entry.total = max(0, int(total))
        return entry

    def usage_count(self, color_id: int) -> int:
        return self.grid.usage_count(color_id)

    def remaining(self, color_id: int) -> int:
        """Pieces left; negative when the limit was lowered below usage."""
        entry = self.palette.get(color_id)
        if entry is None:
            raise UnknownColor(color_id)
        return entry.total - self.usage_count(color_id)

    def select_color(self, color_id: Optional[int]) -> None:
        if color_id is not None and color_id not in self.palette:
            raise UnknownColor(color_id)
        self.selected_color_id = color_id

    def set_tool(self, tool: str | Tool) -> None:
        self.tool = Tool(tool)
        self.swap_state = IDLE

    # ---- history ----

    def snapshot(self) -> Snapshot:
        return Snapshot.capture(self.grid.cells, self.grid.anchors)

    def reset_history(self) -> None:
        self.swap_state = IDLE
        self._stroke_open = self._stroke_dirty = False
        self.history.reset(self.snapshot())

    def commit(self) -> None:
        """Record the live state as one undo step (deferred inside a stroke)."""
        if self._stroke_open:
            self._stroke_dirty = True
            return
        self.history.push(self.snapshot())

    def begin_stroke(self) -> None:
        self._stroke_open = True
        self._stroke_dirty = False

    def end_stroke(self) -> bool:
        dirty = self._stroke_open and self._stroke_dirty
        self._stroke_open = self._stroke_dirty = False
        if dirty:
            self.history.push(self.snapshot())
        return dirty

    def _restore(self, snap: Snapshot) -> None:
        cells = snap.cells_copy()
        known = set(self.palette.ids())
        # palette edits are not part of history; drop references to removed colors
        for c in cells:
            if c.color_id is not None and c.color_id not in known:
                c.color_id = None
        self.grid.cells = cells
        self.grid.anchors = [a for a in snap.anchors_copy() if a.color_id in known]
        self.swap_state = IDLE

    def undo(self) -> bool:
        # an open stroke is closed first so it becomes the step being undone
        self.end_stroke()
        snap = self.history.undo()
        if snap is None:
            return False
        self._restore(snap)
        return True

    def redo(self) -> bool:
        self.end_stroke()
        snap = self.history.redo()
        if snap is None:
            return False
        self._restore(snap)
        return True

    # ---- reporting ----

    def stats(self) -> Dict[str, Any]:
        usage = self.grid.usage()
        colors = [
            {
                "id": c.id,
                "rgbHex": c.hex,
                "total": c.total,
                "used": usage.get(c.id, 0),
                "remaining": c.total - usage.get(c.id, 0),
            }
            for c in self.palette
        ]
        return {
            "cols": self.cols,
            "rows": self.rows,
            "totalCells": len(self.grid),
            "totalPlaced": sum(usage.values()),
            "totalAvailable": sum(c.total for c in self.palette),
            "lockedCells": sum(1 for c in self.grid.cells if c.locked),
            "anchors": len(self.grid.anchors),
            "colors": colors,
            "canUndo": self.history.can_undo,
            "canRedo": self.history.can_redo,
        }
