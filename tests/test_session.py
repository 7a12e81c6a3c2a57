import numpy as np
import pytest

from grido.game import (
    Board,
    GameConfig,
    GameSession,
    InvariantViolation,
    LevelRules,
    OccupiedError,
    Piece,
    Rules,
    SessionPhase,
    Tile,
    TileKind,
)

from helpers import ListSource, RecordingRenderer, block, domino, fill, fill_except, interior, single, square


def test_plain_square_scenario():
    session = GameSession(source=ListSource([block()]))
    assert session.phase is SessionPhase.AWAITING_PLACEMENT

    result = session.place_piece((5, 5))

    assert result.cells_cleared == 9
    assert session.state.score == 9
    assert session.state.multiplier == 1
    assert session.phase is SessionPhase.AWAITING_PLACEMENT
    assert all(session.board.is_empty(c) for c in square(5, 5))
    assert session.board.occupied_count() == 66


def test_plus_completing_square_scenario():
    session = GameSession(source=ListSource([single(Tile(TileKind.PLUS))]))
    fill_except(session.board, square(5, 5), (7, 7))

    session.place_piece((7, 7))

    assert session.state.score == 9
    assert session.state.multiplier == 2


def test_game_over_when_next_piece_fits_nowhere():
    board = Board(16, 19)
    fill(board, [c for c in interior(board) if c != (5, 5)], Tile.permanent())
    before = board.kinds.copy()

    session = GameSession(board=board, source=ListSource([domino()]))

    assert session.phase is SessionPhase.GAME_OVER
    assert session.game_over
    assert np.array_equal(session.board.kinds, before)
    with pytest.raises(InvariantViolation):
        session.place_piece((5, 5))


def test_game_over_after_last_fitting_placement():
    board = Board(16, 19)
    fill(board, [c for c in interior(board) if c not in ((5, 5), (9, 9))], Tile.permanent())
    session = GameSession(board=board, source=ListSource([single(), domino()]))

    session.place_piece((5, 5))

    assert session.phase is SessionPhase.GAME_OVER
    assert session.board.is_empty((9, 9))
    assert session.board.get((5, 5)) == Tile.plain()


def test_rejected_placement_changes_nothing():
    session = GameSession(source=ListSource([domino()]))
    piece = session.current_piece
    before = session.board.kinds.copy()

    with pytest.raises(OccupiedError):
        session.place_piece((0, 5))

    assert session.phase is SessionPhase.AWAITING_PLACEMENT
    assert session.current_piece is piece
    assert session.state.score == 0
    assert session.state.pieces_placed_this_level == 0
    assert np.array_equal(session.board.kinds, before)


def test_missing_current_piece_is_fatal():
    session = GameSession(source=ListSource([domino()]))
    session.current_piece = None
    with pytest.raises(InvariantViolation):
        session.get_valid_actions()
    with pytest.raises(InvariantViolation):
        session.place_piece((5, 5))


def test_rotation_is_applied_before_placement():
    session = GameSession(source=ListSource([domino()]))
    session.place_piece((5, 5), rotation=1)
    assert session.board.get((5, 5)) == Tile.plain()
    assert session.board.get((6, 5)) == Tile.plain()
    assert session.board.is_empty((5, 4))
    with pytest.raises(ValueError):
        session.place_piece((9, 9), rotation=4)


def test_level_advances_after_threshold():
    rules = Rules(levels=LevelRules(thresholds=(2, 3)))
    source = ListSource([])
    session = GameSession(rules=rules, source=source)
    spots = [(2, 2), (4, 2), (6, 2), (8, 2), (10, 2)]

    session.place_piece(spots[0])
    assert (session.state.level, session.state.pieces_placed_this_level) == (1, 1)
    session.place_piece(spots[1])
    assert (session.state.level, session.state.pieces_placed_this_level) == (2, 0)
    assert source.level == 2
    for spot in spots[2:]:
        session.place_piece(spot)
    assert session.state.level == 3


def test_renderer_gets_a_snapshot_at_start_and_after_each_turn():
    renderer = RecordingRenderer()
    session = GameSession(source=ListSource([block()]), renderer=renderer)
    assert len(renderer.snapshots) == 1
    assert renderer.snapshots[0].score == 0

    session.place_piece((5, 5))

    assert len(renderer.snapshots) == 2
    snap = renderer.snapshots[-1]
    assert snap.score == 9
    assert snap.level == 1
    assert snap.multiplier == 1
    assert snap.board.shape == (19, 16)
    assert snap.current_piece == session.current_piece
    assert len(snap.next_pieces) == 1


def test_snapshot_is_detached_from_the_board():
    session = GameSession(GameConfig(random_seed=1))
    snap = session.snapshot()
    session.board.set((5, 5), Tile.plain())
    assert snap.board[5, 5] == 0


def test_swap_with_preview_piece():
    session = GameSession(source=ListSource([single(), domino()]))
    first = session.current_piece
    assert session.swap_piece()
    assert session.current_piece == domino()
    assert session.next_pieces[0] == first


def test_swap_refused_when_preview_does_not_fit():
    board = Board(16, 19)
    fill(board, [c for c in interior(board) if c != (5, 5)], Tile.permanent())
    session = GameSession(board=board, source=ListSource([single(), domino()]))
    assert not session.swap_piece()
    assert session.current_piece == single()


def test_glue_blocks_the_next_turn_only():
    flask = single(Tile(TileKind.FLASK_GLUE))
    session = GameSession(source=ListSource([flask, single(), single()]))
    fill_except(session.board, square(5, 5), (7, 7))

    session.place_piece((7, 7))
    assert not session.can_place((8, 8))
    with pytest.raises(OccupiedError):
        session.place_piece((8, 8))

    session.place_piece((12, 12))
    assert session.can_place((8, 8))
    assert not session.board.glued.any()


def test_seeded_sessions_replay_identically():
    a = GameSession(GameConfig(random_seed=42, preview_depth=2))
    b = GameSession(GameConfig(random_seed=42, preview_depth=2))
    assert a.current_piece == b.current_piece
    assert a.next_pieces == b.next_pieces
    assert len(a.next_pieces) == 2


def test_reset_starts_a_fresh_game():
    session = GameSession(source=ListSource([block()]))
    session.place_piece((5, 5))
    session.reset(seed=3)
    assert session.state.score == 0
    assert session.pieces_placed_total == 0
    assert session.board.occupied_count() == 66
    assert session.source.seed == 3


def test_valid_actions_match_can_place():
    session = GameSession(GameConfig(random_seed=5))
    actions = session.get_valid_actions()
    assert actions
    for x, y, r in actions[:50]:
        assert session.can_place((x, y), r)


def test_game_stats_track_totals():
    session = GameSession(source=ListSource([block(), single()]))
    session.place_piece((5, 5))
    session.place_piece((2, 2))
    stats = session.get_game_stats()
    assert stats["pieces_placed"] == 2
    assert stats["cells_cleared"] == 9
    assert stats["cascade_passes"] == 1
    assert stats["final_score"] == 9


def test_config_validation():
    with pytest.raises(ValueError):
        GameConfig(width=2)
    with pytest.raises(ValueError):
        GameConfig(preview_depth=0)
