"""Design ↔ plain-dict exchange format used for export, import and saves.

::

    { version, hexRealSize, quiltWidth, quiltHeight, unit,
      cols, rows, hexSize,
      grid: [ {colorId, locked} ... ],      # cols*rows entries, row-major
      colors: [ {id, rgbHex, total} ... ],
      nextColorId,
      anchors: [ {row, col, colorId} ... ],
      showNumbers }

``cols``, ``rows`` and ``grid`` are required; every other field falls
back to a default. Import builds a brand-new design, so a rejected
payload never disturbs the caller's live one.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from . import config
from .colorspace import canon_hex, hex_to_rgb
from .design import QuiltDesign
from .errors import MalformedImport
from .grid import Anchor, Cell, Grid
from .history import History
from .palette import Palette, PaletteColor

log = logging.getLogger(__name__)


def to_dict(design: QuiltDesign) -> dict[str, Any]:
    return {
        "version": config.SNAPSHOT_VERSION,
        "hexRealSize": design.hex_real_size,
        "quiltWidth": design.quilt_width,
        "quiltHeight": design.quilt_height,
        "unit": design.unit,
        "cols": design.cols,
        "rows": design.rows,
        "hexSize": design.hex_size,
        "grid": [{"colorId": c.color_id, "locked": c.locked} for c in design.grid.cells],
        "colors": [{"id": c.id, "rgbHex": c.hex, "total": c.total} for c in design.palette],
        "nextColorId": design.palette.next_id,
        "anchors": [
            {"row": a.row, "col": a.col, "colorId": a.color_id}
            for a in design.grid.anchors
        ],
        "showNumbers": design.show_numbers,
    }


def _int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise MalformedImport(f"{what} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedImport(f"{what} must be an integer") from None


def _palette(raw: Any) -> Palette:
    if not isinstance(raw, list):
        raise MalformedImport("colors must be a list")
    colors = []
    seen = set()
    for i, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise MalformedImport(f"colors[{i}] must be an object")
        cid = _int(item.get("id"), f"colors[{i}].id")
        if cid < 1 or cid in seen:
            raise MalformedImport(f"colors[{i}].id must be a unique positive integer")
        seen.add(cid)
        try:
            # older saves carry the hex under "color"
            rgb = hex_to_rgb(canon_hex(item.get("rgbHex") or item.get("color") or ""))
        except ValueError as exc:
            raise MalformedImport(f"colors[{i}]: {exc}") from None
        total = max(0, _int(item.get("total", 0), f"colors[{i}].total"))
        colors.append(PaletteColor(id=cid, rgb=rgb, total=total))
    return Palette(colors=colors, next_id=max(seen, default=0) + 1)


def from_dict(
    data: Mapping[str, Any], *, max_history: int = config.MAX_HISTORY
) -> QuiltDesign:
    """Build a design from its exchange form; raises ``MalformedImport``."""
    if not isinstance(data, Mapping):
        raise MalformedImport("design must be a JSON object")
    missing = [k for k in ("cols", "rows", "grid") if not data.get(k)]
    if missing:
        raise MalformedImport(f"invalid file format: missing {', '.join(missing)}")

    cols = _int(data["cols"], "cols")
    rows = _int(data["rows"], "rows")
    raw_grid = data["grid"]
    if cols < 1 or rows < 1:
        raise MalformedImport("cols and rows must be positive")
    if not isinstance(raw_grid, list) or len(raw_grid) != cols * rows:
        raise MalformedImport(f"grid must hold exactly {cols}×{rows} cells")

    palette = _palette(data.get("colors") or [])
    palette.next_id = max(palette.next_id, _int(data.get("nextColorId") or 1, "nextColorId"))
    known = set(palette.ids())

    cells = []
    for i, item in enumerate(raw_grid):
        if not isinstance(item, Mapping):
            raise MalformedImport(f"grid[{i}] must be an object")
        cid = item.get("colorId")
        cid = None if cid is None else _int(cid, f"grid[{i}].colorId")
        locked = bool(item.get("locked", False))
        cells.append(Cell(color_id=cid if cid in known else None, locked=locked))

    grid = Grid(cols, rows, cells)
    for i, item in enumerate(data.get("anchors") or []):
        if not isinstance(item, Mapping):
            raise MalformedImport(f"anchors[{i}] must be an object")
        row = _int(item.get("row"), f"anchors[{i}].row")
        col = _int(item.get("col"), f"anchors[{i}].col")
        cid = _int(item.get("colorId"), f"anchors[{i}].colorId")
        if cid in known and grid.in_bounds(row, col) and grid.anchor_at(row, col) is None:
            grid.anchors.append(Anchor(row, col, cid))

    design = QuiltDesign(
        hex_real_size=float(data.get("hexRealSize") or config.HEX_REAL_SIZE),
        quilt_width=float(data.get("quiltWidth") or config.QUILT_WIDTH),
        quilt_height=float(data.get("quiltHeight") or config.QUILT_HEIGHT),
        unit=data.get("unit") or config.UNIT,
        hex_size=data.get("hexSize") or config.DISPLAY_HEX_SIZE,
        show_numbers=bool(data.get("showNumbers") or False),
        grid=grid,
        palette=palette,
        history=History(max_depth=max_history),
    )
    log.info(
        "imported %d×%d design, %d colors, %d anchors",
        cols,
        rows,
        len(palette),
        len(grid.anchors),
    )
    return design


def dumps(design: QuiltDesign, **kwargs: Any) -> str:
    kwargs.setdefault("indent", 2)
    return json.dumps(to_dict(design), **kwargs)


def loads(text: str, **kwargs: Any) -> QuiltDesign:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedImport(f"not valid JSON: {exc}") from None
    return from_dict(data, **kwargs)


__all__ = ["to_dict", "from_dict", "dumps", "loads"]
