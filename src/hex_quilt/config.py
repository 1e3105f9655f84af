from __future__ import annotations

from typing import Any, Mapping

# Physical defaults (point-to-point hex size, quilt width/height)
HEX_REAL_SIZE = 2.0
QUILT_WIDTH = 30.0
QUILT_HEIGHT = 40.0
UNIT = "in"
UNITS = ("in", "cm")

DISPLAY_HEX_SIZE = 30  # px, centre to corner
MAX_HISTORY = 50
DITHER_INTENSITY = 5.0
WEIGHT_EPSILON = 0.01  # keeps 1/d² finite on the anchor cell itself
DEFAULT_QUANTITY = 10
SNAPSHOT_VERSION = "1.0"

DEFAULT_CONFIG: Mapping[str, Any] = {
    "HEX_REAL_SIZE": HEX_REAL_SIZE,
    "QUILT_WIDTH": QUILT_WIDTH,
    "QUILT_HEIGHT": QUILT_HEIGHT,
    "UNIT": UNIT,
    "MAX_HISTORY": MAX_HISTORY,
    "DITHER_INTENSITY": DITHER_INTENSITY,
    "DITHER_SEED": None,
    "LOG_LEVEL": "INFO",
}
