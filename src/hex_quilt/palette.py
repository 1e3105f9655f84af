from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import numpy as np

from .colorspace import ColorLike, Rgb, as_rgb, rgb_to_hex, rgb_to_lab, to_u8


@dataclass
class PaletteColor:
    id: int
    rgb: Rgb
    total: int  # fabric pieces on hand

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)


@dataclass
class Palette:
    """Insertion-ordered fabric palette.

    Ids start at 1 and only ever grow; a removed id is never handed out
    again.
    """

    colors: List[PaletteColor] = field(default_factory=list)
    next_id: int = 1

    def __iter__(self) -> Iterator[PaletteColor]:
        return iter(self.colors)

    def __len__(self) -> int:
        return len(self.colors)

    def __contains__(self, color_id: object) -> bool:
        return any(c.id == color_id for c in self.colors)

    def get(self, color_id: Optional[int]) -> Optional[PaletteColor]:
        for c in self.colors:
            if c.id == color_id:
                return c
        return None

    def add(self, color: ColorLike, total: int) -> PaletteColor:
        r, g, b = (int(v) for v in to_u8(as_rgb(color)))
        entry = PaletteColor(id=self.next_id, rgb=(r, g, b), total=max(0, int(total)))
        self.next_id += 1
        self.colors.append(entry)
        return entry

    def discard(self, color_id: int) -> Optional[PaletteColor]:
        entry = self.get(color_id)
        if entry is not None:
            self.colors.remove(entry)
        return entry

    def ids(self) -> List[int]:
        return [c.id for c in self.colors]

    def labs(self) -> np.ndarray:
        """LAB of every entry, in palette order, as ``(n, 3)``."""
        if not self.colors:
            return np.empty((0, 3), dtype=np.float64)
        return rgb_to_lab(np.array([c.rgb for c in self.colors], dtype=np.float64))
