from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import IntEnum
from typing import Deque, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import InvariantViolation
from .rules import DEFAULT_CHARGE_RULES, DEFAULT_KIND_WEIGHTS, ChargeRule, KindWeight, weights_for_level
from .tiles import Tile, TileKind


Offset = Tuple[int, int]
Coordinate = Tuple[int, int]


class ShapeType(IntEnum):
    SINGLE = 0
    DOMINO = 1
    TROMINO = 2
    SPLIT = 3
    DIAGONAL = 4
    CORNER = 5
    CASTLE = 6


# Offsets are relative to the pivot cell the player aims with.
BASE_SHAPES: Dict[ShapeType, Tuple[Offset, ...]] = {
    ShapeType.SINGLE: ((0, 0),),
    ShapeType.DOMINO: ((0, -1), (0, 0)),
    ShapeType.TROMINO: ((0, -1), (0, 0), (0, 1)),
    ShapeType.SPLIT: ((0, -1), (0, 1)),
    ShapeType.DIAGONAL: ((-1, -1), (0, 0)),
    ShapeType.CORNER: ((-1, 0), (0, 0), (0, -1)),
    ShapeType.CASTLE: ((0, -1), (-1, 0), (1, 0)),
}


def _rot90(offset: Offset, k: int) -> Offset:
    dx, dy = offset
    for _ in range(k % 4):
        dx, dy = -dy, dx  # clockwise with y pointing down
    return dx, dy


@dataclass(frozen=True)
class Piece:
    cells: Tuple[Tuple[Offset, Tile], ...]
    shape: Optional[ShapeType] = None

    def __post_init__(self) -> None:
        if not self.cells:
            raise InvariantViolation("a piece needs at least one cell")
        offsets = [offset for offset, _ in self.cells]
        if len(set(offsets)) != len(offsets):
            raise InvariantViolation(f"duplicate offsets in piece: {offsets}")

    @classmethod
    def from_tiles(cls, tiles: Mapping[Offset, Tile], shape: Optional[ShapeType] = None) -> "Piece":
        return cls(tuple((tuple(offset), tile) for offset, tile in tiles.items()), shape)

    @classmethod
    def uniform(cls, offsets: Sequence[Offset], tile: Tile) -> "Piece":
        return cls(tuple((tuple(offset), tile) for offset in offsets))

    @property
    def offsets(self) -> List[Offset]:
        return [offset for offset, _ in self.cells]

    def __len__(self) -> int:
        return len(self.cells)

    def rotated(self, quarter_turns: int) -> "Piece":
        if quarter_turns % 4 == 0:
            return self
        return Piece(tuple((_rot90(offset, quarter_turns), tile) for offset, tile in self.cells), self.shape)

    def cells_at(self, origin: Coordinate) -> List[Tuple[Coordinate, Tile]]:
        ox, oy = origin
        return [((ox + dx, oy + dy), tile) for (dx, dy), tile in self.cells]

    def bounding_box(self) -> Tuple[int, int, int, int]:
        """(min_dx, min_dy, max_dx, max_dy) of the offsets."""
        xs = [dx for dx, _ in self.offsets]
        ys = [dy for _, dy in self.offsets]
        return min(xs), min(ys), max(xs), max(ys)


class PieceSource:
    """Deterministic, non-restartable stream of pieces with a preview queue.

    Piece number `i` depends only on the seed, `i` and the level in force when
    it entered the queue, so a (seed, position) pair replays a game exactly.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        level: int = 1,
        preview_depth: int = 1,
        kind_weights: Tuple[KindWeight, ...] = DEFAULT_KIND_WEIGHTS,
        charge_rules: Optional[Mapping[TileKind, ChargeRule]] = None,
    ) -> None:
        if preview_depth < 1:
            raise ValueError(f"preview_depth must be >= 1, got {preview_depth}")
        if seed is None:
            seed = int(np.random.SeedSequence().entropy)
        self.seed = int(seed)
        self.level = level
        self.preview_depth = preview_depth
        self.kind_weights = kind_weights
        self.charge_rules = dict(charge_rules or DEFAULT_CHARGE_RULES)
        self.position = 0
        self._queue: Deque[Piece] = deque()
        while len(self._queue) < preview_depth:
            self._queue.append(self._generate())

    def piece_at(self, index: int, level: int) -> Piece:
        rng = np.random.default_rng((self.seed, index))
        shape = ShapeType(int(rng.integers(len(ShapeType))))
        weights = weights_for_level(level, self.kind_weights)
        kinds = [kind for kind, _ in weights]
        p = np.array([w for _, w in weights], dtype=np.float64)
        p /= p.sum()
        cells = []
        for offset in BASE_SHAPES[shape]:
            kind = kinds[int(rng.choice(len(kinds), p=p))]
            charge = None
            if kind.charged:
                charge = 1 + int(rng.integers(self.charge_rules[kind].max_charge(level)))
            cells.append((offset, Tile(kind, charge)))
        return Piece(tuple(cells), shape)

    def _generate(self) -> Piece:
        piece = self.piece_at(self.position, self.level)
        self.position += 1
        return piece

    def __iter__(self) -> Iterator[Piece]:
        return self

    def __next__(self) -> Piece:
        piece = self._queue.popleft()
        self._queue.append(self._generate())
        return piece

    def peek(self) -> Tuple[Piece, ...]:
        return tuple(self._queue)

    def swap_front(self, piece: Piece) -> Piece:
        """Put `piece` at the head of the preview queue and return the old head."""
        front = self._queue[0]
        self._queue[0] = piece
        return front
