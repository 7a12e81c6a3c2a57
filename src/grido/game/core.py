from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Tuple

import numpy as np

from .errors import InvariantViolation
from .grid import Board
from .pieces import Piece, PieceSource
from .resolver import MatchResolver, Resolution
from .rules import Rules


logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]


@dataclass
class GameConfig:
    width: int = 16
    height: int = 19
    random_seed: Optional[int] = None
    preview_depth: int = 1
    border: bool = True

    def __post_init__(self) -> None:
        if self.width < 3 or self.height < 3:
            raise ValueError(f"board must be at least 3x3, got {self.width}x{self.height}")
        if self.preview_depth < 1:
            raise ValueError(f"preview_depth must be >= 1, got {self.preview_depth}")


@dataclass
class GameState:
    score: int = 0
    level: int = 1
    multiplier: int = 1
    pieces_placed_this_level: int = 0


class SessionPhase(Enum):
    AWAITING_PLACEMENT = "awaiting_placement"
    RESOLVING = "resolving"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of a session handed to renderers."""

    board: np.ndarray
    charges: np.ndarray
    glued: np.ndarray
    score: int
    level: int
    multiplier: int
    current_piece: Optional[Piece]
    next_pieces: Tuple[Piece, ...]
    phase: SessionPhase


class Renderer(Protocol):
    def render(self, snapshot: Snapshot) -> None:
        ...


class GameSession:
    """Turn loop: place, resolve, score, level up, draw the next piece.

    AWAITING_PLACEMENT -> RESOLVING -> AWAITING_PLACEMENT ... -> GAME_OVER.
    The game ends when the current piece fits nowhere in any rotation.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[Rules] = None,
        source: Optional[PieceSource] = None,
        board: Optional[Board] = None,
        renderer: Optional[Renderer] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rules = rules or Rules()
        self.board = board or Board(self.config.width, self.config.height, border=self.config.border)
        self.source = source or self._new_source(self.config.random_seed)
        self.resolver = MatchResolver(self.rules.scoring)
        self.renderer = renderer
        self.state = GameState()
        self.phase = SessionPhase.AWAITING_PLACEMENT
        self.current_piece: Optional[Piece] = None
        self.last_resolution: Optional[Resolution] = None
        self.pieces_placed_total = 0
        self.cells_cleared_total = 0
        self.cascade_passes_total = 0
        self._start()

    def _new_source(self, seed: Optional[int]) -> PieceSource:
        return PieceSource(
            seed=seed,
            level=1,
            preview_depth=self.config.preview_depth,
            kind_weights=self.rules.kind_weights,
            charge_rules=self.rules.charge_rules,
        )

    def _start(self) -> None:
        self.current_piece = next(self.source)
        self._check_game_over()
        self._push()

    def reset(self, seed: Optional[int] = None) -> None:
        """Start over on an empty board with a fresh piece stream."""
        self.board.reset()
        self.source = self._new_source(self.config.random_seed if seed is None else seed)
        self.state = GameState()
        self.phase = SessionPhase.AWAITING_PLACEMENT
        self.last_resolution = None
        self.pieces_placed_total = 0
        self.cells_cleared_total = 0
        self.cascade_passes_total = 0
        self._start()

    @property
    def game_over(self) -> bool:
        return self.phase is SessionPhase.GAME_OVER

    @property
    def next_pieces(self) -> Tuple[Piece, ...]:
        return self.source.peek()

    def _require_awaiting(self) -> None:
        if self.phase is not SessionPhase.AWAITING_PLACEMENT:
            raise InvariantViolation(f"no placement allowed while {self.phase.value}")

    def _current(self) -> Piece:
        if self.current_piece is None:
            raise InvariantViolation("session has no current piece")
        return self.current_piece

    def _piece(self, rotation: int) -> Piece:
        if rotation not in range(4):
            raise ValueError(f"rotation must be 0..3 quarter turns, got {rotation}")
        return self._current().rotated(rotation)

    def can_place(self, origin: Coordinate, rotation: int = 0) -> bool:
        if self.phase is not SessionPhase.AWAITING_PLACEMENT:
            return False
        return self.board.can_place(self._piece(rotation), origin)

    def get_valid_actions(self) -> List[Tuple[int, int, int]]:
        """List of (x, y, rotation) placements legal for the current piece."""
        if self.phase is not SessionPhase.AWAITING_PLACEMENT:
            return []
        actions: List[Tuple[int, int, int]] = []
        for rotation in range(4):
            for x, y in self.board.get_valid_placements(self._piece(rotation)):
                actions.append((x, y, rotation))
        return actions

    def place_piece(self, origin: Coordinate, rotation: int = 0) -> Resolution:
        """Place the current piece and resolve the board to a fixed point.

        Raises PlacementError (board and state untouched) when the piece does
        not fit.
        """
        self._require_awaiting()
        piece = self._piece(rotation)
        written = self.board.place(piece, origin)
        self.board.reset_glue()

        self.phase = SessionPhase.RESOLVING
        resolution = self.resolver.resolve(self.board, written, self.state.multiplier)
        self._apply(resolution)
        self._advance_level()

        self.current_piece = next(self.source)
        self.phase = SessionPhase.AWAITING_PLACEMENT
        self._check_game_over()
        self._push()
        return resolution

    def swap_piece(self) -> bool:
        """Exchange the current piece with the head of the preview queue.

        Refused when the incoming piece has nowhere to go.
        """
        self._require_awaiting()
        incoming = self.source.peek()[0]
        if not self.board.has_any_placement(incoming):
            return False
        self.source.swap_front(self._current())
        self.current_piece = incoming
        self._push()
        return True

    def _apply(self, resolution: Resolution) -> None:
        self.state.score += resolution.score
        self.state.multiplier = resolution.multiplier_after
        self.last_resolution = resolution
        self.pieces_placed_total += 1
        self.cells_cleared_total += resolution.cells_cleared
        self.cascade_passes_total += len(resolution.passes)

    def _advance_level(self) -> None:
        self.state.pieces_placed_this_level += 1
        if self.state.pieces_placed_this_level >= self.rules.levels.threshold(self.state.level):
            self.state.level += 1
            self.state.pieces_placed_this_level = 0
            self.source.level = self.state.level
            logger.debug("level up: %d (score %d)", self.state.level, self.state.score)

    def _check_game_over(self) -> None:
        if not self.board.has_any_placement(self._current()):
            self.phase = SessionPhase.GAME_OVER
            logger.debug("game over: score %d, level %d", self.state.score, self.state.level)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            board=self.board.kinds.copy(),
            charges=self.board.charges.copy(),
            glued=self.board.glued.copy(),
            score=self.state.score,
            level=self.state.level,
            multiplier=self.state.multiplier,
            current_piece=self.current_piece,
            next_pieces=self.source.peek(),
            phase=self.phase,
        )

    def _push(self) -> None:
        if self.renderer is not None:
            self.renderer.render(self.snapshot())

    def get_game_stats(self) -> dict:
        return {
            "final_score": self.state.score,
            "level": self.state.level,
            "multiplier": self.state.multiplier,
            "pieces_placed": self.pieces_placed_total,
            "cells_cleared": self.cells_cleared_total,
            "cascade_passes": self.cascade_passes_total,
            "final_fill_ratio": self.board.get_filled_ratio(),
            "avg_score_per_piece": self.state.score / max(1, self.pieces_placed_total),
        }
