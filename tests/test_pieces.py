import pytest

from grido.game import BASE_SHAPES, InvariantViolation, Piece, PieceSource, Tile, TileKind
from grido.game.rules import DEFAULT_CHARGE_RULES, LevelRules, kind_probabilities

from helpers import single


def test_quarter_turn_rotates_clockwise():
    piece = Piece.uniform([(0, -1), (0, 0), (0, 1)], Tile.plain())
    assert piece.rotated(1).offsets == [(1, 0), (0, 0), (-1, 0)]
    assert piece.rotated(2).offsets == [(0, 1), (0, 0), (0, -1)]
    assert piece.rotated(4) == piece


def test_rotation_keeps_tiles_with_their_cells():
    piece = Piece.from_tiles({(0, 0): Tile.plain(), (1, 0): Tile.shield(3)})
    rotated = piece.rotated(1)
    assert dict(rotated.cells)[(0, 1)] == Tile.shield(3)


def test_malformed_pieces_rejected():
    with pytest.raises(InvariantViolation):
        Piece(())
    with pytest.raises(InvariantViolation):
        Piece.uniform([(0, 0), (0, 0)], Tile.plain())


def test_same_seed_replays_same_pieces():
    a = PieceSource(seed=7)
    b = PieceSource(seed=7)
    assert [next(a) for _ in range(20)] == [next(b) for _ in range(20)]
    assert a.position == b.position


def test_piece_at_is_a_pure_function():
    source = PieceSource(seed=11)
    assert source.piece_at(5, 3) == source.piece_at(5, 3)
    assert source.piece_at(0, 1) == source.peek()[0]


def test_preview_queue_has_fixed_depth():
    source = PieceSource(seed=1, preview_depth=3)
    preview = source.peek()
    assert len(preview) == 3
    assert next(source) == preview[0]
    assert source.peek()[:2] == preview[1:]
    assert len(source.peek()) == 3
    assert source.position == 4


def test_generated_shapes_come_from_the_shape_table():
    source = PieceSource(seed=5)
    for _ in range(50):
        piece = next(source)
        assert tuple(piece.offsets) == BASE_SHAPES[piece.shape]


def test_plain_dominates_at_level_one():
    probs = kind_probabilities(1)
    assert max(probs, key=probs.get) is TileKind.PLAIN
    assert probs[TileKind.PLAIN] > 0.5

    source = PieceSource(seed=3)
    kinds = [tile.kind for _ in range(200) for _, tile in next(source).cells]
    assert kinds.count(TileKind.PLAIN) > len(kinds) / 2


def test_every_kind_available_at_high_level():
    probs = kind_probabilities(20)
    assert all(probs[kind] > 0 for kind in TileKind)


def test_special_kinds_gain_on_plain_with_level():
    low = kind_probabilities(6)
    high = kind_probabilities(15)
    for kind in (TileKind.KILLER, TileKind.SHIELD, TileKind.CENTERPIECE, TileKind.WHOPPER, TileKind.FLASK_ACID):
        assert high[kind] / high[TileKind.PLAIN] > low[kind] / low[TileKind.PLAIN]
    assert high[TileKind.PLAIN] < low[TileKind.PLAIN]


def test_charges_within_level_limits():
    level = 12
    source = PieceSource(seed=9, level=level)
    for index in range(300):
        for _, tile in source.piece_at(index, level).cells:
            if tile.kind.charged:
                assert 1 <= tile.charge <= DEFAULT_CHARGE_RULES[tile.kind].max_charge(level)


def test_swap_front_exchanges_head():
    source = PieceSource(seed=2)
    head = source.peek()[0]
    mine = single()
    assert source.swap_front(mine) == head
    assert next(source) == mine


def test_level_thresholds_extend_past_table():
    rules = LevelRules(thresholds=(3, 4), step=2)
    assert [rules.threshold(level) for level in (1, 2, 3, 4)] == [3, 4, 6, 8]
    with pytest.raises(ValueError):
        rules.threshold(0)
