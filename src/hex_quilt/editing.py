"""Manual editing tools: paint, erase, swap, anchor and lock.

Every function takes the design it edits. A call that changes the grid
records one history step, unless a drag stroke is open on the design
(see ``QuiltDesign.begin_stroke``), in which case the whole stroke is one
step.

Paint and erase ignore cell locks; only gradient fills respect them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

from .errors import CapacityExceeded, UnknownColor, ValidationFailure
from .grid import Anchor
from .palette import PaletteColor

if TYPE_CHECKING:
    from .design import QuiltDesign

log = logging.getLogger(__name__)


class Tool(str, Enum):
    PAINT = "paint"
    SWAP = "swap"
    ANCHOR = "anchor"
    LOCK = "lock"
    ERASE = "erase"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class AwaitingSecondCell:
    row: int
    col: int


SwapState = Union[Idle, AwaitingSecondCell]
IDLE = Idle()


def _selected(design: "QuiltDesign", color_id: Optional[int]) -> PaletteColor:
    cid = design.selected_color_id if color_id is None else color_id
    if cid is None:
        raise ValidationFailure("select a color first")
    entry = design.palette.get(cid)
    if entry is None:
        raise UnknownColor(cid)
    return entry


def paint(
    design: "QuiltDesign",
    row: int,
    col: int,
    radius: int = 0,
    color_id: Optional[int] = None,
) -> bool:
    """Paint the brush footprint; True if any cell changed.

    Stops at the first cell that would push the color past its quantity
    and raises ``CapacityExceeded``; cells painted before that stay.
    """
    entry = _selected(design, color_id)
    cid = entry.id
    grid = design.grid

    used = grid.usage_count(cid)
    painted = 0
    exhausted = False
    for r, c in grid.footprint(row, col, radius):
        cell = grid.cells[grid.index(r, c)]
        if cell.color_id == cid:
            continue
        if used >= entry.total:
            exhausted = True
            break
        cell.color_id = cid
        used += 1
        painted += 1

    if painted:
        design.commit()
    if exhausted:
        log.info("color #%d exhausted after %d cell(s)", cid, painted)
        raise CapacityExceeded(cid, painted)
    return painted > 0


def erase(design: "QuiltDesign", row: int, col: int, radius: int = 0) -> bool:
    """Clear color and anchors under the brush. Locks are left alone."""
    grid = design.grid
    erased = 0
    anchors_erased = 0
    for r, c in grid.footprint(row, col, radius):
        cell = grid.cells[grid.index(r, c)]
        had_anchor = grid.remove_anchor(r, c)
        if cell.color_id is None and not had_anchor:
            continue
        cell.color_id = None
        erased += 1
        anchors_erased += had_anchor

    if erased:
        log.debug("erased %d cell(s), %d anchor(s)", erased, anchors_erased)
        design.commit()
    return erased > 0


def swap(design: "QuiltDesign", row: int, col: int) -> bool:
    """Two-click swap. Returns True only on the click that swaps."""
    grid = design.grid
    target = grid.cell(row, col)
    if target is None:
        return False

    pending = design.swap_state
    if isinstance(pending, Idle):
        design.swap_state = AwaitingSecondCell(row, col)
        return False

    design.swap_state = IDLE
    if (pending.row, pending.col) == (row, col):
        log.debug("swap cancelled")
        return False

    source = grid.cells[grid.index(pending.row, pending.col)]
    if source.color_id == target.color_id:
        return False
    source.color_id, target.color_id = target.color_id, source.color_id
    design.commit()
    return True


def anchor(
    design: "QuiltDesign", row: int, col: int, color_id: Optional[int] = None
) -> Optional[Anchor]:
    """Toggle/retarget the anchor at a cell.

    No anchor → add one. Same color → remove it (returns None).
    Different color → recolor it.
    """
    cid = _selected(design, color_id).id
    grid = design.grid
    if not grid.in_bounds(row, col):
        return None

    existing = grid.anchor_at(row, col)
    if existing is None:
        result: Optional[Anchor] = Anchor(row, col, cid)
        grid.anchors.append(result)
    elif existing.color_id == cid:
        grid.anchors.remove(existing)
        result = None
    else:
        existing.color_id = cid
        result = existing
    design.commit()
    return result


def lock(design: "QuiltDesign", row: int, col: int) -> Optional[bool]:
    """Flip the lock flag; returns the new flag, or None off-grid."""
    cell = design.grid.cell(row, col)
    if cell is None:
        return None
    cell.locked = not cell.locked
    design.commit()
    return cell.locked


def click(design: "QuiltDesign", row: int, col: int):
    """Apply the design's active tool at one cell."""
    radius = max(0, design.brush_size - 1)
    tool = design.tool
    if tool is Tool.PAINT:
        return paint(design, row, col, radius)
    if tool is Tool.ERASE:
        return erase(design, row, col, radius)
    if tool is Tool.SWAP:
        return swap(design, row, col)
    if tool is Tool.ANCHOR:
        return anchor(design, row, col)
    if tool is Tool.LOCK:
        return lock(design, row, col)
    raise ValueError(f"unknown tool '{tool}'")


__all__ = [
    "Tool",
    "Idle",
    "AwaitingSecondCell",
    "SwapState",
    "IDLE",
    "paint",
    "erase",
    "swap",
    "anchor",
    "lock",
    "click",
]
