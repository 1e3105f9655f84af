# gradient.py – anchor-driven gradient fill under finite fabric quantities
#   phase 1: inverse-square-distance blend of anchor colors in LAB, per cell,
#            optionally dithered with uniform LAB noise
#   phase 2: greedy nearest-ΔE assignment from the palette, most certain
#            cells (closest to an anchor) first, never exceeding a quantity

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

from . import config
from .colorspace import delta_e, lab_to_rgb, rgb_to_lab, weighted_mean_lab
from .errors import ValidationFailure
from .hexgrid import pixel_center, pixel_centers

if TYPE_CHECKING:
    from .design import QuiltDesign

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdealField:
    rgb: np.ndarray  # (cells, 3) uint8
    valid: np.ndarray  # (cells,) bool; False where no anchor color applies
    confidence: np.ndarray  # (cells,) min distance to any anchor


@dataclass(frozen=True)
class GradientResult:
    assigned: int
    cleared: int
    skipped_locked: int
    elapsed: float


@dataclass
class GradientFill:
    dither: bool = False
    intensity: float = config.DITHER_INTENSITY
    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    epsilon: float = config.WEIGHT_EPSILON

    def fill(
        self,
        design: "QuiltDesign",
        *,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> Optional[GradientResult]:
        """Recompute every unlocked cell from the anchors.

        Returns None, without touching the design, when ``cancelled``
        reports True between the two phases.
        """
        if len(design.grid.anchors) < 2:
            raise ValidationFailure("need at least 2 anchor points for a gradient")
        if len(design.palette) == 0:
            raise ValidationFailure("add colors to the palette first")

        t0 = time.perf_counter()
        ideal = self.ideal_colors(design)
        if cancelled is not None and cancelled():
            log.info("gradient cancelled after phase 1")
            return None
        assigned, cleared, locked = self.assign(design, ideal)
        design.commit()

        result = GradientResult(assigned, cleared, locked, time.perf_counter() - t0)
        log.info(
            "gradient from %d anchors: %d assigned, %d cleared, %d locked (%.1f ms)",
            len(design.grid.anchors),
            assigned,
            cleared,
            locked,
            result.elapsed * 1e3,
        )
        return result

    # ---- phase 1 ----

    def ideal_colors(self, design: "QuiltDesign") -> IdealField:
        grid = design.grid
        centers = pixel_centers(grid.cols, grid.rows, 1.0)
        n = len(centers)

        all_pos = np.array(
            [pixel_center(a.col, a.row, 1.0) for a in grid.anchors], dtype=np.float64
        )
        d2_all = ((centers[:, None, :] - all_pos[None, :, :]) ** 2).sum(axis=-1)
        confidence = np.sqrt(d2_all.min(axis=1))

        # anchors whose color has left the palette carry no weight
        usable = [
            (i, design.palette.get(a.color_id))
            for i, a in enumerate(grid.anchors)
            if a.color_id in design.palette
        ]
        if not usable:
            return IdealField(
                np.zeros((n, 3), np.uint8), np.zeros(n, bool), confidence
            )

        cols = [i for i, _ in usable]
        weights = 1.0 / (d2_all[:, cols] + self.epsilon)
        labs = rgb_to_lab(np.array([e.rgb for _, e in usable], dtype=np.float64))
        mean = weighted_mean_lab(labs, weights)
        valid = ~np.isnan(mean).any(axis=-1)
        rgb = lab_to_rgb(np.where(valid[:, None], mean, 0.0))

        if self.dither:
            rgb = self._dither(rgb)
        return IdealField(rgb, valid, confidence)

    def _dither(self, rgb: np.ndarray) -> np.ndarray:
        lab = rgb_to_lab(rgb)
        scale = np.array([2.0, 1.0, 1.0]) * float(self.intensity)
        lab = lab + self.rng.uniform(-0.5, 0.5, size=lab.shape) * scale
        lab[:, 0] = np.clip(lab[:, 0], 0.0, 100.0)
        return lab_to_rgb(lab)

    # ---- phase 2 ----

    def assign(self, design: "QuiltDesign", ideal: IdealField) -> tuple[int, int, int]:
        grid = design.grid
        palette = design.palette
        ids = palette.ids()

        # pieces already sitting in locked cells are spoken for
        locked_usage = {cid: 0 for cid in ids}
        for c in grid.cells:
            if c.locked and c.color_id in locked_usage:
                locked_usage[c.color_id] += 1
        remaining = np.array(
            [e.total - locked_usage[e.id] for e in palette], dtype=np.int64
        )

        dist = delta_e(rgb_to_lab(ideal.rgb)[:, None, :], palette.labs()[None, :, :])
        order = np.argsort(ideal.confidence, kind="stable")

        assigned = cleared = locked = 0
        for idx in order:
            cell = grid.cells[idx]
            if cell.locked:
                locked += 1
                continue
            available = remaining > 0
            if not ideal.valid[idx] or not available.any():
                cell.color_id = None
                cleared += 1
                continue
            j = int(np.argmin(np.where(available, dist[idx], np.inf)))
            cell.color_id = ids[j]
            remaining[j] -= 1
            assigned += 1
        return assigned, cleared, locked


def generate_gradient(
    design: "QuiltDesign",
    dither: bool = False,
    intensity: float = config.DITHER_INTENSITY,
    *,
    rng: Optional[np.random.Generator] = None,
    cancelled: Optional[Callable[[], bool]] = None,
) -> Optional[GradientResult]:
    return GradientFill(
        dither=dither,
        intensity=intensity,
        rng=rng if rng is not None else np.random.default_rng(),
    ).fill(design, cancelled=cancelled)


__all__ = ["GradientFill", "GradientResult", "IdealField", "generate_gradient"]
