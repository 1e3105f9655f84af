from __future__ import annotations


class QuiltError(Exception):
    """Base class for recoverable design errors."""


class ValidationFailure(QuiltError):
    """A precondition was not met; nothing was changed."""


class UnknownColor(ValidationFailure):
    """A palette id that does not exist was referenced."""

    def __init__(self, color_id: object) -> None:
        super().__init__(f"unknown color #{color_id}")
        self.color_id = color_id


class CapacityExceeded(QuiltError):
    """A color ran out mid-stroke.

    Cells painted before the limit was hit stay painted.
    """

    def __init__(self, color_id: int, painted: int = 0) -> None:
        super().__init__(f"no more of color #{color_id} available")
        self.color_id = color_id
        self.painted = painted


class MalformedImport(QuiltError):
    """A persisted design is missing required structure."""


__all__ = [
    "QuiltError",
    "ValidationFailure",
    "UnknownColor",
    "CapacityExceeded",
    "MalformedImport",
]
