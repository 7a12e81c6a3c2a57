from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .tiles import TileKind


@dataclass
class ScoringRules:
    tile_points: int = 1
    centerpiece_points_per_charge: int = 10
    whopper_points: int = 30
    # A pass whose matched windows cover more than `big_blast_threshold`
    # cells raises the multiplier by (cells - group) // group.
    big_blast_threshold: int = 12
    big_blast_group: int = 9

    def centerpiece_score(self, charge: int) -> int:
        return self.centerpiece_points_per_charge * charge

    def big_blast_bonus(self, cells: int) -> int:
        if cells <= self.big_blast_threshold:
            return 0
        return (cells - self.big_blast_group) // self.big_blast_group


@dataclass
class LevelRules:
    # Pieces needed to leave level N are thresholds[N - 1]; past the table the
    # last entry grows by `step` per level.
    thresholds: Tuple[int, ...] = (10, 15, 20, 25, 30)
    step: int = 5

    def threshold(self, level: int) -> int:
        if level < 1:
            raise ValueError(f"level must be >= 1, got {level}")
        if level <= len(self.thresholds):
            return self.thresholds[level - 1]
        return self.thresholds[-1] + (level - len(self.thresholds)) * self.step


@dataclass(frozen=True)
class KindWeight:
    kind: TileKind
    weight: float
    unlock_level: int = 1
    growth: float = 0.0

    def at_level(self, level: int) -> float:
        if level < self.unlock_level:
            return 0.0
        return self.weight + self.growth * (level - self.unlock_level)


@dataclass(frozen=True)
class ChargeRule:
    per_levels: int
    base: int = 0

    def max_charge(self, level: int) -> int:
        return max(1, self.base + level // self.per_levels)


DEFAULT_KIND_WEIGHTS: Tuple[KindWeight, ...] = (
    KindWeight(TileKind.PLAIN, 21.0),
    KindWeight(TileKind.PICKER, 3.0),
    KindWeight(TileKind.PLUS, 0.5, 1, 0.05),
    KindWeight(TileKind.MINUS, 0.5, 1, 0.05),
    KindWeight(TileKind.SHIELD, 2.0, 2, 0.2),
    KindWeight(TileKind.FLASK_GLUE, 0.5, 3, 0.05),
    KindWeight(TileKind.FLASK_ACID, 0.5, 3, 0.05),
    KindWeight(TileKind.KILLER, 1.0, 4, 0.1),
    KindWeight(TileKind.CENTERPIECE, 2.0, 5, 0.2),
    KindWeight(TileKind.WHOPPER, 1.0, 6, 0.1),
    KindWeight(TileKind.PERMANENT, 0.5, 8, 0.05),
)

DEFAULT_CHARGE_RULES: Dict[TileKind, ChargeRule] = {
    TileKind.SHIELD: ChargeRule(per_levels=1),
    TileKind.CENTERPIECE: ChargeRule(per_levels=4, base=1),
    TileKind.WHOPPER: ChargeRule(per_levels=4, base=1),
}


def weights_for_level(level: int, table: Tuple[KindWeight, ...] = DEFAULT_KIND_WEIGHTS) -> List[Tuple[TileKind, float]]:
    """Return (kind, weight) pairs for the kinds unlocked at `level`."""
    weights: List[Tuple[TileKind, float]] = []
    for entry in table:
        w = entry.at_level(level)
        if w > 0:
            weights.append((entry.kind, w))
    return weights


def kind_probabilities(level: int, table: Tuple[KindWeight, ...] = DEFAULT_KIND_WEIGHTS) -> Dict[TileKind, float]:
    weights = weights_for_level(level, table)
    total = sum(w for _, w in weights)
    probs = {kind: 0.0 for kind in TileKind}
    for kind, w in weights:
        probs[kind] += w / total
    return probs


@dataclass
class Rules:
    scoring: ScoringRules = field(default_factory=ScoringRules)
    levels: LevelRules = field(default_factory=LevelRules)
    kind_weights: Tuple[KindWeight, ...] = DEFAULT_KIND_WEIGHTS
    charge_rules: Dict[TileKind, ChargeRule] = field(default_factory=lambda: dict(DEFAULT_CHARGE_RULES))
