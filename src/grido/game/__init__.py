"""Game module for Grido.

Exports the rule engine and supporting classes:
- Board: fixed grid of tiles with placement checks
- Tile / TileKind: tile variants and their charge
- Piece / PieceSource: placeable shapes and the seeded piece stream
- MatchResolver: square detection, explosions and cascades
- GameSession: turn loop, scoring and level progression
"""

from .errors import (
    FatalError,
    GridoError,
    InvariantViolation,
    OccupiedError,
    OutOfBoundsError,
    PlacementError,
)
from .tiles import Tile, TileKind
from .pieces import BASE_SHAPES, Piece, PieceSource, ShapeType
from .grid import Board
from .rules import LevelRules, Rules, ScoringRules
from .resolver import MatchResolver, Resolution, ResolutionPass, Window
from .core import GameConfig, GameSession, GameState, Renderer, SessionPhase, Snapshot

__all__ = [
    "Board",
    "BASE_SHAPES",
    "FatalError",
    "GameConfig",
    "GameSession",
    "GameState",
    "GridoError",
    "InvariantViolation",
    "LevelRules",
    "MatchResolver",
    "OccupiedError",
    "OutOfBoundsError",
    "Piece",
    "PieceSource",
    "PlacementError",
    "Renderer",
    "Resolution",
    "ResolutionPass",
    "Rules",
    "ScoringRules",
    "SessionPhase",
    "Snapshot",
    "Tile",
    "TileKind",
    "Window",
]
