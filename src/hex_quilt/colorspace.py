# colorspace.py – sRGB ↔ CIE XYZ ↔ CIELAB (D65) plus ΔE76 and LAB blending
#   - IEC 61966-2-1 companding (threshold 0.04045 / 0.0031308, gamma 2.4)
#   - Lindbloom sRGB D65 matrices
#   - CIE piecewise f(t) with ε = 0.008856 and the 7.787 linear slope
#   - byte output uses round-half-up, never banker's rounding

from __future__ import annotations

import string
from typing import Iterable, Sequence, Tuple, Union

import numpy as np

Rgb = Tuple[int, int, int]
ColorLike = Union[str, Sequence[int], np.ndarray]

# --- constants ---------------------------------------------------------------
_GAMMA = 2.4
_EPSILON = 0.008856
_SLOPE = 7.787
_OFFSET = 16.0 / 116.0

D65_WHITE = np.array([95.047, 100.000, 108.883], dtype=np.float64)

_RGB_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)
_XYZ_RGB = np.array(
    [
        [3.2404542, -1.5371385, -0.4985314],
        [-0.9692660, 1.8760108, 0.0415560],
        [0.0556434, -0.2040259, 1.0572252],
    ],
    dtype=np.float64,
)


# --- hex codec ---------------------------------------------------------------
def canon_hex(s: str) -> str:
    """Normalize to '#rrggbb'; accept 3- or 6-digit hex only."""
    raw = (s or "").strip().lstrip("#")
    if len(raw) == 3 and all(c in string.hexdigits for c in raw):
        raw = "".join(ch * 2 for ch in raw)
    if len(raw) != 6 or not all(c in string.hexdigits for c in raw):
        raise ValueError(f"invalid hex color: {s!r}")
    return "#" + raw.lower()


def hex_to_rgb(hex_str: str) -> Rgb:
    raw = canon_hex(hex_str)[1:]
    r, g, b = (int(raw[i : i + 2], 16) for i in (0, 2, 4))
    return r, g, b


def rgb_to_hex(rgb: Sequence[float]) -> str:
    u8 = to_u8(rgb)
    return f"#{u8[0]:02x}{u8[1]:02x}{u8[2]:02x}"


def to_u8(v) -> np.ndarray:
    """Round half-up and clamp to [0, 255]."""
    v = np.asarray(v, dtype=np.float64)
    return np.clip(np.floor(v + 0.5), 0, 255).astype(np.uint8)


def as_rgb(color: ColorLike) -> np.ndarray:
    if isinstance(color, str):
        return np.array(hex_to_rgb(color), dtype=np.float64)
    arr = np.asarray(color, dtype=np.float64)
    if arr.shape[-1:] != (3,):
        raise ValueError("rgb must have 3 channels")
    return arr


# --- companding --------------------------------------------------------------
def srgb_to_linear(v: np.ndarray) -> np.ndarray:
    """Companded sRGB in [0, 1] → linear light."""
    v = np.asarray(v, np.float64)
    m = v > 0.04045
    out = np.empty_like(v)
    out[m] = ((v[m] + 0.055) / 1.055) ** _GAMMA
    out[~m] = v[~m] / 12.92
    return out


def linear_to_srgb(v: np.ndarray) -> np.ndarray:
    v = np.asarray(v, np.float64)
    m = v > 0.0031308
    out = np.empty_like(v)
    out[m] = 1.055 * np.power(v[m], 1 / _GAMMA) - 0.055
    out[~m] = v[~m] * 12.92
    return out


# --- XYZ ↔ LAB ---------------------------------------------------------------
def _f(t: np.ndarray) -> np.ndarray:
    m = t > _EPSILON
    out = np.empty_like(t)
    out[m] = np.cbrt(t[m])
    out[~m] = _SLOPE * t[~m] + _OFFSET
    return out


def _f_inv(t: np.ndarray) -> np.ndarray:
    t3 = t**3
    m = t3 > _EPSILON
    out = np.empty_like(t)
    out[m] = t3[m]
    out[~m] = (t[~m] - _OFFSET) / _SLOPE
    return out


def rgb_to_xyz(rgb: ColorLike) -> np.ndarray:
    """sRGB bytes → XYZ scaled so that white has Y = 100."""
    lin = srgb_to_linear(as_rgb(rgb) / 255.0)
    return lin @ _RGB_XYZ.T * 100.0


def xyz_to_lab(xyz: np.ndarray) -> np.ndarray:
    f = _f(np.asarray(xyz, np.float64) / D65_WHITE)
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]
    return np.stack([116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)], axis=-1)


def lab_to_xyz(lab: np.ndarray) -> np.ndarray:
    lab = np.asarray(lab, np.float64)
    fy = (lab[..., 0] + 16.0) / 116.0
    fx = lab[..., 1] / 500.0 + fy
    fz = fy - lab[..., 2] / 200.0
    return _f_inv(np.stack([fx, fy, fz], axis=-1)) * D65_WHITE


def xyz_to_rgb(xyz: np.ndarray) -> np.ndarray:
    lin = (np.asarray(xyz, np.float64) / 100.0) @ _XYZ_RGB.T
    return to_u8(linear_to_srgb(lin) * 255.0)


def rgb_to_lab(rgb: ColorLike) -> np.ndarray:
    """sRGB bytes (any leading shape, last axis 3) → L*a*b*."""
    return xyz_to_lab(rgb_to_xyz(rgb))


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """L*a*b* → sRGB bytes, out-of-gamut channels clamped."""
    return xyz_to_rgb(lab_to_xyz(lab))


# --- distances ---------------------------------------------------------------
def delta_e(lab1: np.ndarray, lab2: np.ndarray) -> np.ndarray:
    """CIE76 ΔE, broadcasting over leading axes."""
    d = np.asarray(lab1, np.float64) - np.asarray(lab2, np.float64)
    return np.sqrt((d * d).sum(axis=-1))


def perceptual_distance(c1: ColorLike, c2: ColorLike) -> float:
    return float(delta_e(rgb_to_lab(c1), rgb_to_lab(c2)))


def rgb_distance(c1: ColorLike, c2: ColorLike) -> float:
    """Plain Euclidean distance on bytes. Not perceptual; display use only."""
    d = as_rgb(c1) - as_rgb(c2)
    return float(np.sqrt((d * d).sum()))


# --- blending ----------------------------------------------------------------
def weighted_mean_lab(labs: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """Row-wise weighted LAB mean.

    ``labs`` is (k, 3) and ``weights`` is (..., k); weights ≤ 0 are
    ignored. Rows whose total weight is zero come back as NaN.
    """
    w = np.where(np.asarray(weights, np.float64) > 0.0, weights, 0.0)
    total = w.sum(axis=-1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        return (w @ np.asarray(labs, np.float64)) / total


def blend(weighted: Iterable[Tuple[ColorLike, float]]) -> Rgb | None:
    """Blend colors in LAB; ``None`` when no entry has positive weight."""
    pairs = [(c, float(w)) for c, w in weighted if c is not None]
    if not pairs:
        return None
    labs = rgb_to_lab(np.stack([as_rgb(c) for c, _ in pairs]))
    mean = weighted_mean_lab(labs, np.array([w for _, w in pairs]))
    if np.isnan(mean).any():
        return None
    r, g, b = (int(x) for x in lab_to_rgb(mean))
    return r, g, b


def is_light(color: ColorLike) -> bool:
    r, g, b = as_rgb(color)
    return bool((0.299 * r + 0.587 * g + 0.114 * b) / 255.0 > 0.5)


__all__ = [
    "Rgb",
    "ColorLike",
    "canon_hex",
    "hex_to_rgb",
    "rgb_to_hex",
    "rgb_to_lab",
    "lab_to_rgb",
    "delta_e",
    "perceptual_distance",
    "rgb_distance",
    "weighted_mean_lab",
    "blend",
    "is_light",
]
