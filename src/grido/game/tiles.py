from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .errors import InvariantViolation


class TileKind(IntEnum):
    # 0 is reserved for an empty cell in the board arrays
    PLAIN = 1
    PICKER = 2
    KILLER = 3
    SHIELD = 4
    PERMANENT = 5
    CENTERPIECE = 6
    PLUS = 7
    MINUS = 8
    WHOPPER = 9
    FLASK_GLUE = 10
    FLASK_ACID = 11

    @property
    def charged(self) -> bool:
        return self in CHARGED_KINDS

    @property
    def is_flask(self) -> bool:
        return self in (TileKind.FLASK_GLUE, TileKind.FLASK_ACID)


CHARGED_KINDS = frozenset({TileKind.SHIELD, TileKind.CENTERPIECE, TileKind.WHOPPER})

EMPTY = 0


@dataclass(frozen=True)
class Tile:
    """A single tile. `charge` is set only for Shield, Centerpiece and Whopper."""

    kind: TileKind
    charge: Optional[int] = None

    def __post_init__(self) -> None:
        kind = TileKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind.charged:
            if self.charge is None or self.charge < 0:
                raise InvariantViolation(f"{kind.name} needs a non-negative charge, got {self.charge!r}")
        elif self.charge is not None:
            raise InvariantViolation(f"{kind.name} tiles carry no charge")

    @classmethod
    def plain(cls) -> "Tile":
        return cls(TileKind.PLAIN)

    @classmethod
    def permanent(cls) -> "Tile":
        return cls(TileKind.PERMANENT)

    @classmethod
    def shield(cls, charge: int) -> "Tile":
        return cls(TileKind.SHIELD, charge)

    @classmethod
    def centerpiece(cls, charge: int) -> "Tile":
        return cls(TileKind.CENTERPIECE, charge)

    @classmethod
    def whopper(cls, charge: int) -> "Tile":
        return cls(TileKind.WHOPPER, charge)
