from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from .errors import InvariantViolation
from .grid import Board
from .rules import ScoringRules
from .tiles import EMPTY, Tile, TileKind


logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]

ORTHOGONAL = ((0, -1), (1, 0), (0, 1), (-1, 0))
MOORE = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))


def row_major(cell: Coordinate) -> Tuple[int, int]:
    return cell[1], cell[0]


@dataclass(frozen=True)
class Window:
    """Square region identified by its top-left cell."""

    x: int
    y: int
    size: int = 3

    @property
    def center(self) -> Coordinate:
        half = self.size // 2
        return self.x + half, self.y + half

    def cells(self) -> List[Coordinate]:
        return [(self.x + dx, self.y + dy) for dy in range(self.size) for dx in range(self.size)]

    def sort_key(self) -> Tuple[int, int, int]:
        return self.y, self.x, self.size


@dataclass
class ResolutionPass:
    windows: List[Window]
    cleared: List[Coordinate]
    transformed: List[Coordinate]
    glued: List[Coordinate]
    raw_points: int
    score: int
    multiplier_before: int
    multiplier_after: int


@dataclass
class Resolution:
    """Outcome of resolving one placement, pass by pass."""

    multiplier_before: int
    kills: List[Coordinate] = field(default_factory=list)
    passes: List[ResolutionPass] = field(default_factory=list)

    @property
    def multiplier_after(self) -> int:
        if self.passes:
            return self.passes[-1].multiplier_after
        return self.multiplier_before

    @property
    def multiplier_delta(self) -> int:
        return self.multiplier_after - self.multiplier_before

    @property
    def score(self) -> int:
        return sum(p.score for p in self.passes)

    @property
    def cells_cleared(self) -> int:
        return len(self.kills) + sum(len(p.cleared) for p in self.passes)

    @property
    def trace(self) -> List[List[Coordinate]]:
        """Cleared-cell batches in the order they happened, kills first."""
        batches = [list(self.kills)] if self.kills else []
        batches.extend(list(p.cleared) for p in self.passes)
        return batches


class MatchResolver:
    def __init__(self, rules: Optional[ScoringRules] = None) -> None:
        self.rules = rules or ScoringRules()

    def resolve(self, board: Board, dirty: Iterable[Coordinate], multiplier: int = 1) -> Resolution:
        """Run killers, then match passes until one finds nothing.

        `dirty` is the set of cells written by the placement. Mutates `board`;
        score and multiplier changes are returned, not applied.
        """
        dirty = list(dirty)
        for cell in dirty:
            if not board.is_inside(*cell):
                raise InvariantViolation(f"dirty cell {cell} outside the board")
        if multiplier < 1:
            raise InvariantViolation(f"multiplier must be >= 1, got {multiplier}")

        resolution = Resolution(multiplier_before=multiplier)
        resolution.kills = self.apply_killers(board, dirty)

        pending: Set[Coordinate] = set(dirty) | set(resolution.kills)
        budget = self._pass_budget(board)
        mult = multiplier
        while pending:
            windows = self.find_matches(board, pending)
            if not windows:
                break
            if len(resolution.passes) >= budget:
                raise InvariantViolation("cascade did not reach a fixed point")
            step = self._explode(board, windows, mult)
            logger.debug(
                "pass %d: %d windows, %d cleared, +%d points, multiplier %d -> %d",
                len(resolution.passes) + 1, len(windows), len(step.cleared),
                step.score, step.multiplier_before, step.multiplier_after,
            )
            resolution.passes.append(step)
            mult = step.multiplier_after
            pending = set(step.cleared) | set(step.transformed)
        return resolution

    def _pass_budget(self, board: Board) -> int:
        # Every pass clears a cell, spends a shield charge or converts a tile.
        kinds = board.kinds
        shields = kinds == TileKind.SHIELD
        return (
            board.occupied_count()
            + int(board.charges[shields].sum())
            + int(np.count_nonzero(shields))
            + int(np.count_nonzero(kinds == TileKind.WHOPPER))
            + 1
        )

    def apply_killers(self, board: Board, placed: Iterable[Coordinate]) -> List[Coordinate]:
        """Clear tiles orthogonally touching freshly placed Killers.

        Only tiles that were already on the board are hit, never other Killers
        or the border ring. A Killer that hit something turns Plain.
        """
        placed_set = set(placed)
        kills: List[Coordinate] = []
        for cell in sorted(placed_set, key=row_major):
            tile = board.get(cell)
            if tile is None or tile.kind is not TileKind.KILLER:
                continue
            victims: List[Coordinate] = []
            x, y = cell
            for dx, dy in ORTHOGONAL:
                other_cell = (x + dx, y + dy)
                if not board.is_inside(*other_cell) or other_cell in placed_set or board.is_border(other_cell):
                    continue
                other = board.get(other_cell)
                if other is None or other.kind is TileKind.KILLER:
                    continue
                victims.append(other_cell)
            if victims:
                board.clear(victims)
                board.set(cell, Tile.plain())
                kills.extend(victims)
        return kills

    def window_matches(self, board: Board, window: Window) -> bool:
        if window.x < 0 or window.y < 0:
            return False
        if window.x + window.size > board.width or window.y + window.size > board.height:
            return False
        block = board.kinds[window.y : window.y + window.size, window.x : window.x + window.size]
        if np.any(block == EMPTY) or np.any(block == TileKind.PERMANENT):
            return False
        if window.size == 5:
            cx, cy = window.center
            return board.kinds[cy, cx] == TileKind.WHOPPER
        return True

    def find_matches(self, board: Board, dirty: Iterable[Coordinate]) -> List[Window]:
        """Matched windows touching `dirty`, ordered by top-left row-major."""
        candidates: Set[Window] = set()
        for x, y in dirty:
            for size in (3, 5):
                for wy in range(y - size + 1, y + 1):
                    for wx in range(x - size + 1, x + 1):
                        candidates.add(Window(wx, wy, size))
        matched = [w for w in candidates if self.window_matches(board, w)]
        matched.sort(key=Window.sort_key)
        return matched

    def _explode(self, board: Board, windows: List[Window], multiplier: int) -> ResolutionPass:
        rules = self.rules
        start: Dict[Coordinate, Tile] = {}
        for window in windows:
            for cell in window.cells():
                if cell not in start:
                    tile = board.get(cell)
                    if tile is None:
                        raise InvariantViolation(f"empty cell {cell} inside matched window {window}")
                    start[cell] = tile

        raw = 0
        shield_charge: Dict[Coordinate, int] = {}
        converted: Dict[Coordinate, Tile] = {}
        for window in windows:
            for cell in window.cells():
                tile = start[cell]
                kind = tile.kind
                centred = cell == window.center
                if kind is TileKind.SHIELD:
                    charge = shield_charge.get(cell, tile.charge)
                    if cell in shield_charge and charge == 0:
                        continue
                    raw += charge
                    shield_charge[cell] = max(charge - 1, 0)
                elif kind is TileKind.CENTERPIECE and centred and window.size == 3:
                    raw += rules.centerpiece_score(tile.charge)
                elif kind is TileKind.WHOPPER and centred and window.size == 5:
                    raw += rules.whopper_points
                    converted[cell] = Tile.centerpiece(tile.charge)
                elif kind in (
                    TileKind.PLAIN, TileKind.PICKER, TileKind.KILLER, TileKind.CENTERPIECE,
                    TileKind.WHOPPER, TileKind.PLUS, TileKind.MINUS,
                    TileKind.FLASK_GLUE, TileKind.FLASK_ACID,
                ):
                    raw += rules.tile_points
                else:
                    raise InvariantViolation(f"{kind.name} tile inside a matched window at {cell}")

        retained = set(shield_charge) | set(converted)
        to_clear = sorted(set(start) - retained, key=row_major)
        board.clear(to_clear)
        for cell, charge in shield_charge.items():
            board.set(cell, Tile.shield(charge) if charge > 0 else Tile.plain())
        for cell, new_tile in converted.items():
            board.set(cell, new_tile)

        mult = multiplier
        for cell in to_clear:
            kind = start[cell].kind
            if kind is TileKind.PLUS:
                mult += 1
            elif kind is TileKind.MINUS:
                mult = max(1, mult - 1)
        mult += rules.big_blast_bonus(len(start))

        acid_cleared: List[Coordinate] = []
        glued: List[Coordinate] = []
        for cell in to_clear:
            kind = start[cell].kind
            if not kind.is_flask:
                continue
            x, y = cell
            for dx, dy in MOORE:
                other = (x + dx, y + dy)
                if not board.is_inside(*other):
                    continue
                if kind is TileKind.FLASK_ACID:
                    # Shields and converted Whoppers survive their own pass
                    if other in retained:
                        continue
                    hit = board.get(other)
                    if hit is not None and hit.kind is not TileKind.PERMANENT:
                        board.clear([other])
                        acid_cleared.append(other)
                elif board.is_empty(other) and not board.glued[other[1], other[0]]:
                    board.glue(other)
                    glued.append(other)

        return ResolutionPass(
            windows=list(windows),
            cleared=to_clear + acid_cleared,
            transformed=sorted(retained, key=row_major),
            glued=glued,
            raw_points=raw,
            score=raw * multiplier,
            multiplier_before=multiplier,
            multiplier_after=mult,
        )
