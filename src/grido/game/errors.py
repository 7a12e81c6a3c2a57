from __future__ import annotations

from typing import Optional, Tuple


Coordinate = Tuple[int, int]


class GridoError(Exception):
    """Base class for every error raised by the game engine."""


class PlacementError(GridoError):
    """A placement was rejected; the board is left untouched.

    Recoverable: the caller is expected to pick another origin or rotation.
    """

    def __init__(self, cell: Coordinate, message: Optional[str] = None) -> None:
        self.cell = cell
        super().__init__(message or f"cannot place at {cell}")


class OutOfBoundsError(PlacementError):
    def __init__(self, cell: Coordinate) -> None:
        super().__init__(cell, f"cell {cell} lies outside the board")


class OccupiedError(PlacementError):
    def __init__(self, cell: Coordinate, glued: bool = False) -> None:
        self.glued = glued
        reason = "is glued" if glued else "is already occupied"
        super().__init__(cell, f"cell {cell} {reason}")


class FatalError(GridoError):
    """Signals a logic bug. Never retried."""


class InvariantViolation(FatalError):
    pass
