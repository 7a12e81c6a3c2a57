from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .errors import InvariantViolation, OccupiedError, OutOfBoundsError, PlacementError
from .pieces import Piece
from .tiles import EMPTY, Tile, TileKind


Coordinate = Tuple[int, int]


class Board:
    """Fixed-size grid of optional tiles.

    Tile kinds live in `kinds` (0 for an empty cell) and charges in `charges`,
    both indexed [y, x]. With `border=True` the outer ring is filled with
    Permanent tiles that are never placement targets.
    """

    def __init__(self, width: int = 16, height: int = 19, border: bool = True) -> None:
        if width < 3 or height < 3:
            raise ValueError(f"board must be at least 3x3, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.border = border
        self.kinds = np.zeros((self.height, self.width), dtype=np.int8)
        self.charges = np.zeros((self.height, self.width), dtype=np.int16)
        # Cells spilled with glue; rejected by can_place until reset_glue().
        self.glued = np.zeros((self.height, self.width), dtype=np.bool_)
        self.reset()

    def reset(self) -> None:
        self.kinds.fill(EMPTY)
        self.charges.fill(0)
        self.glued.fill(False)
        if self.border:
            for cell in self.border_cells():
                self.set(cell, Tile.permanent())

    def border_cells(self) -> Iterator[Coordinate]:
        for x in range(self.width):
            yield x, 0
            yield x, self.height - 1
        for y in range(1, self.height - 1):
            yield 0, y
            yield self.width - 1, y

    def is_border(self, cell: Coordinate) -> bool:
        x, y = cell
        return self.border and (x in (0, self.width - 1) or y in (0, self.height - 1))

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _check(self, cell: Coordinate) -> None:
        if not self.is_inside(*cell):
            raise InvariantViolation(f"cell {cell} outside {self.width}x{self.height} board")

    def get(self, cell: Coordinate) -> Optional[Tile]:
        self._check(cell)
        x, y = cell
        kind = int(self.kinds[y, x])
        if kind == EMPTY:
            return None
        kind = TileKind(kind)
        return Tile(kind, int(self.charges[y, x]) if kind.charged else None)

    def set(self, cell: Coordinate, tile: Tile) -> None:
        self._check(cell)
        x, y = cell
        self.kinds[y, x] = int(tile.kind)
        self.charges[y, x] = tile.charge or 0

    def is_empty(self, cell: Coordinate) -> bool:
        self._check(cell)
        x, y = cell
        return self.kinds[y, x] == EMPTY

    def clear(self, cells: Iterable[Coordinate]) -> None:
        for cell in cells:
            self._check(cell)
            x, y = cell
            self.kinds[y, x] = EMPTY
            self.charges[y, x] = 0

    def glue(self, cell: Coordinate) -> None:
        self._check(cell)
        x, y = cell
        self.glued[y, x] = True

    def reset_glue(self) -> None:
        self.glued.fill(False)

    def _rejection(self, piece: Piece, origin: Coordinate) -> Optional[PlacementError]:
        for (x, y), _ in piece.cells_at(origin):
            if not self.is_inside(x, y):
                return OutOfBoundsError((x, y))
            if self.kinds[y, x] != EMPTY:
                return OccupiedError((x, y))
            if self.glued[y, x]:
                return OccupiedError((x, y), glued=True)
        return None

    def can_place(self, piece: Piece, origin: Coordinate) -> bool:
        return self._rejection(piece, origin) is None

    def place(self, piece: Piece, origin: Coordinate) -> List[Coordinate]:
        """Write the piece's tiles and return the cells written.

        Raises OutOfBoundsError or OccupiedError without touching the board.
        """
        error = self._rejection(piece, origin)
        if error is not None:
            raise error
        written: List[Coordinate] = []
        for cell, tile in piece.cells_at(origin):
            self.set(cell, tile)
            written.append(cell)
        return written

    def get_valid_placements(self, piece: Piece) -> List[Coordinate]:
        """All origins where `piece` (as given, unrotated) fits."""
        min_dx, min_dy, max_dx, max_dy = piece.bounding_box()
        origins: List[Coordinate] = []
        for y in range(-min_dy, self.height - max_dy):
            for x in range(-min_dx, self.width - max_dx):
                if self.can_place(piece, (x, y)):
                    origins.append((x, y))
        return origins

    def has_any_placement(self, piece: Piece) -> bool:
        for rotation in range(4):
            if self.get_valid_placements(piece.rotated(rotation)):
                return True
        return False

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.kinds))

    def get_filled_ratio(self) -> float:
        return self.occupied_count() / float(self.width * self.height)

    def copy(self) -> "Board":
        new_board = Board(self.width, self.height, border=False)
        new_board.border = self.border
        new_board.kinds = self.kinds.copy()
        new_board.charges = self.charges.copy()
        new_board.glued = self.glued.copy()
        return new_board
