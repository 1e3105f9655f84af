from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from .config import MAX_HISTORY
from .grid import Anchor, Cell

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Independent copy of the cells and anchors at one point in time."""

    cells: tuple
    anchors: tuple

    @classmethod
    def capture(cls, cells: Sequence[Cell], anchors: Sequence[Anchor]) -> "Snapshot":
        return cls(tuple(replace(c) for c in cells), tuple(replace(a) for a in anchors))

    def cells_copy(self) -> List[Cell]:
        return [replace(c) for c in self.cells]

    def anchors_copy(self) -> List[Anchor]:
        return [replace(a) for a in self.anchors]


@dataclass
class History:
    """Linear undo/redo timeline.

    ``entries[index]`` is the state currently on screen. Everything after
    ``index`` is a redo branch that the next push throws away.
    """

    max_depth: int = MAX_HISTORY
    entries: List[Snapshot] = field(default_factory=list)
    index: int = -1

    def reset(self, snapshot: Snapshot) -> None:
        self.entries = [snapshot]
        self.index = 0

    def push(self, snapshot: Snapshot) -> None:
        del self.entries[self.index + 1 :]
        self.entries.append(snapshot)
        if len(self.entries) > self.max_depth:
            # drop the oldest; index already lands on the new tip
            del self.entries[0]
        else:
            self.index += 1
        log.debug("history push → %d/%d", self.index + 1, len(self.entries))

    @property
    def can_undo(self) -> bool:
        return self.index > 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self.entries) - 1

    def undo(self) -> Optional[Snapshot]:
        if not self.can_undo:
            return None
        self.index -= 1
        return self.entries[self.index]

    def redo(self) -> Optional[Snapshot]:
        if not self.can_redo:
            return None
        self.index += 1
        return self.entries[self.index]

    def __len__(self) -> int:
        return len(self.entries)
