from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import numpy as np
from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

# ColorAide
from coloraide import Color as CAColor

from . import editing, snapshot
from .colorspace import canon_hex, is_light
from .config import DEFAULT_CONFIG, DEFAULT_QUANTITY
from .design import QuiltDesign
from .errors import CapacityExceeded, MalformedImport, UnknownColor, ValidationFailure
from .gradient import generate_gradient
from .grid import Anchor
from .palette import PaletteColor

log = logging.getLogger(__name__)

FIT_HEX = {"method": "raytrace"}  # consistent gamut-fit for hex output

TOOLS = {
    "paint": editing.paint,
    "erase": editing.erase,
    "swap": editing.swap,
    "anchor": editing.anchor,
    "lock": editing.lock,
}


def parse_color(s: str) -> str:
    """Hex fast path; anything else CSS understands goes through ColorAide."""
    try:
        return canon_hex(s)
    except ValueError:
        pass
    try:
        col = CAColor(s).convert("srgb")
    except ValueError:
        raise ValidationFailure(f"invalid color: {s!r}") from None
    return canon_hex(col.to_string(hex=True, alpha=False, fit=FIT_HEX))


def _int_arg(body: Mapping[str, Any], key: str, default: Optional[int] = None) -> int:
    val = body.get(key, default)
    if val is None:
        raise ValidationFailure(f"'{key}' is required")
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ValidationFailure(f"'{key}' must be an integer") from None


def _color_json(c: PaletteColor) -> dict[str, Any]:
    return {"id": c.id, "rgbHex": c.hex, "total": c.total, "light": is_light(c.rgb)}


def _anchor_json(a: Optional[Anchor]) -> Optional[dict[str, int]]:
    return None if a is None else {"row": a.row, "col": a.col, "colorId": a.color_id}


@dataclass
class DesignStore:
    """The served design plus the lock every request takes to touch it."""

    design: QuiltDesign
    rng: np.random.Generator
    lock: threading.Lock = field(default_factory=threading.Lock)


def _store() -> DesignStore:
    return current_app.extensions["hex_quilt"]


# ----------------------------- Flask app ----------------------------------


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("HEX_QUILT")
    if config:
        app.config.update(config)
    logging.basicConfig(
        level=app.config["LOG_LEVEL"], format="%(levelname)s: %(message)s"
    )

    design = QuiltDesign.create(
        app.config["HEX_REAL_SIZE"],
        app.config["QUILT_WIDTH"],
        app.config["QUILT_HEIGHT"],
        app.config["UNIT"],
        max_history=app.config["MAX_HISTORY"],
    )
    app.extensions["hex_quilt"] = DesignStore(
        design=design, rng=np.random.default_rng(app.config["DITHER_SEED"])
    )

    # ---- errors ----

    @app.errorhandler(ValidationFailure)
    def validation_failed(e: ValidationFailure):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(UnknownColor)
    def unknown_color(e: UnknownColor):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(MalformedImport)
    def malformed(e: MalformedImport):
        log.info("import rejected: %s", e)
        return jsonify({"error": f"failed to import design: {e}"}), 400

    @app.errorhandler(CapacityExceeded)
    def capacity(e: CapacityExceeded):
        return (
            jsonify({"error": str(e), "colorId": e.color_id, "painted": e.painted}),
            409,
        )

    @app.errorhandler(Exception)
    def unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return e
        log.exception("Request failed")
        return jsonify({"error": str(e)}), 500

    # ---- design ----

    @app.get("/design")
    def export_design():
        with _store().lock:
            return jsonify(snapshot.to_dict(_store().design))

    @app.post("/design")
    def import_design():
        data = request.get_json(silent=True)
        if data is None:
            raise MalformedImport("body must be JSON")
        store = _store()
        loaded = snapshot.from_dict(data, max_history=current_app.config["MAX_HISTORY"])
        with store.lock:
            store.design = loaded
            return jsonify({"cols": loaded.cols, "rows": loaded.rows})

    @app.post("/grid")
    def generate_grid():
        body = request.get_json(silent=True) or {}
        store = _store()
        with store.lock:
            d = store.design
            try:
                size = float(body.get("hexRealSize", d.hex_real_size))
                width = float(body.get("quiltWidth", d.quilt_width))
                height = float(body.get("quiltHeight", d.quilt_height))
            except (TypeError, ValueError):
                raise ValidationFailure("dimensions must be numbers") from None
            cols, rows = d.generate_grid(size, width, height, body.get("unit"))
            return jsonify({"cols": cols, "rows": rows, "cells": cols * rows})

    @app.get("/cells/<int(signed=True):row>/<int(signed=True):col>")
    def get_cell(row: int, col: int):
        with _store().lock:
            d = _store().design
            cell = d.get_cell(row, col)
            if cell is None:
                return jsonify({"error": "no such cell"}), 404
            return jsonify(
                {
                    "row": row,
                    "col": col,
                    "colorId": cell.color_id,
                    "locked": cell.locked,
                    "anchor": _anchor_json(d.grid.anchor_at(row, col)),
                }
            )

    @app.get("/stats")
    def stats():
        with _store().lock:
            return jsonify(_store().design.stats())

    # ---- palette ----

    @app.post("/colors")
    def add_color():
        body = request.get_json(silent=True) or {}
        hex_ = parse_color(str(body.get("color", "")))
        total = _int_arg(body, "total", DEFAULT_QUANTITY)
        with _store().lock:
            entry = _store().design.add_color(hex_, total)
            return jsonify(_color_json(entry)), 201

    @app.patch("/colors/<int:color_id>")
    def update_color(color_id: int):
        body = request.get_json(silent=True) or {}
        total = _int_arg(body, "total")
        with _store().lock:
            d = _store().design
            entry = d.update_quantity(color_id, total)
            return jsonify({**_color_json(entry), "remaining": d.remaining(color_id)})

    @app.delete("/colors/<int:color_id>")
    def remove_color(color_id: int):
        with _store().lock:
            cleared = _store().design.remove_color(color_id)
            return jsonify({"removed": color_id, "cleared": cleared})

    # ---- tools ----

    @app.put("/state")
    def set_state():
        body = request.get_json(silent=True) or {}
        with _store().lock:
            d = _store().design
            if "tool" in body:
                try:
                    d.set_tool(body["tool"])
                except ValueError:
                    raise ValidationFailure(f"unknown tool {body['tool']!r}") from None
            if "selectedColorId" in body:
                cid = body["selectedColorId"]
                d.select_color(None if cid is None else _int_arg(body, "selectedColorId"))
            if "brushSize" in body:
                d.brush_size = max(1, _int_arg(body, "brushSize"))
            if "showNumbers" in body:
                d.show_numbers = bool(body["showNumbers"])
            return jsonify(
                {
                    "tool": d.tool.value,
                    "selectedColorId": d.selected_color_id,
                    "brushSize": d.brush_size,
                    "showNumbers": d.show_numbers,
                }
            )

    @app.post("/tool/<name>")
    def apply_tool(name: str):
        op = TOOLS.get(name)
        if op is None:
            return jsonify({"error": f"unknown tool '{name}'", "supported": sorted(TOOLS)}), 400
        body = request.get_json(silent=True) or {}
        row, col = _int_arg(body, "row"), _int_arg(body, "col")
        kwargs: dict[str, Any] = {}
        if name in ("paint", "erase"):
            kwargs["radius"] = max(0, _int_arg(body, "radius", 0))
        if name in ("paint", "anchor") and body.get("colorId") is not None:
            kwargs["color_id"] = _int_arg(body, "colorId")
        with _store().lock:
            d = _store().design
            result = op(d, row, col, **kwargs)
            return jsonify(_tool_json(d, name, result))

    @app.post("/click")
    def click():
        body = request.get_json(silent=True) or {}
        row, col = _int_arg(body, "row"), _int_arg(body, "col")
        with _store().lock:
            d = _store().design
            result = editing.click(d, row, col)
            return jsonify(_tool_json(d, d.tool.value, result))

    @app.post("/stroke/begin")
    def begin_stroke():
        with _store().lock:
            _store().design.begin_stroke()
        return jsonify({"stroke": "open"})

    @app.post("/stroke/end")
    def end_stroke():
        with _store().lock:
            recorded = _store().design.end_stroke()
        return jsonify({"stroke": "closed", "recorded": recorded})

    # ---- gradient & history ----

    @app.post("/gradient")
    def gradient():
        body = request.get_json(silent=True) or {}
        dither = bool(body.get("dither", False))
        try:
            intensity = float(body.get("intensity", current_app.config["DITHER_INTENSITY"]))
        except (TypeError, ValueError):
            raise ValidationFailure("intensity must be a number") from None
        store = _store()
        with store.lock:
            result = generate_gradient(store.design, dither, intensity, rng=store.rng)
        if result is None:
            return jsonify({"error": "gradient cancelled"}), 409
        return jsonify(
            {
                "assigned": result.assigned,
                "cleared": result.cleared,
                "skippedLocked": result.skipped_locked,
                "elapsedMs": round(result.elapsed * 1e3, 2),
            }
        )

    @app.post("/undo")
    def undo():
        with _store().lock:
            changed = _store().design.undo()
        return jsonify({"changed": changed})

    @app.post("/redo")
    def redo():
        with _store().lock:
            changed = _store().design.redo()
        return jsonify({"changed": changed})

    return app


def _tool_json(d: QuiltDesign, name: str, result: Any) -> dict[str, Any]:
    if name == "anchor":
        return {"anchor": _anchor_json(result)}
    if name == "lock":
        return {"locked": result}
    if name == "swap":
        pending = d.swap_state
        return {
            "changed": bool(result),
            "pending": None
            if isinstance(pending, editing.Idle)
            else {"row": pending.row, "col": pending.col},
        }
    return {"changed": bool(result)}


def main() -> None:
    # Production: debug=False; threaded=True is fine, the store lock serialises edits.
    create_app().run(debug=False, threaded=True)


if __name__ == "__main__":
    main()
