import random
import time

import pytest

from growgrid.errors import ValidationError
from growgrid.event_log import EventLog
from growgrid.services.games.board import O, X, empty_board, is_winning_move
from growgrid.services.games.bot import (
    BOT_LEVELS,
    BotEngine,
    _Search,
    potential_win,
    search_candidates,
    search_depth,
)


@pytest.fixture()
def engine():
    return BotEngine(rng=random.Random(7), max_depth=3)


def test_blocks_open_top_row(engine):
    board = empty_board(3)
    board[0][0] = X
    board[0][1] = X
    decision = engine.decide(board, O)
    assert decision.move == (0, 2)
    assert decision.reason == 'block'


def test_block_takes_priority_over_own_win(engine):
    board = [
        [X, X, None],
        [O, O, None],
        [None, None, None],
    ]
    decision = engine.decide(board, O)
    assert decision.move == (0, 2)
    assert decision.reason == 'block'


def test_takes_immediate_win_when_nothing_to_block(engine):
    board = [
        [O, O, None],
        [X, None, None],
        [None, None, X],
    ]
    decision = engine.decide(board, O)
    assert decision.move == (0, 2)
    assert decision.reason == 'win'


def test_opening_move_picks_from_center_corners_and_edges():
    size = 7
    engine = BotEngine(rng=random.Random(3))
    allowed = {(3, 3)}
    for i in range(size):
        allowed |= {(0, i), (size - 1, i), (i, 0), (i, size - 1)}
    seen = set()
    for _ in range(40):
        decision = engine.decide(empty_board(size), O)
        assert decision.reason == 'opening'
        assert decision.move in allowed
        seen.add(decision.move)
    assert len(seen) > 1


def test_opening_ignores_own_marks_and_skips_taken_cells():
    board = empty_board(3)
    board[1][1] = O
    engine = BotEngine(rng=random.Random(0))
    for _ in range(20):
        decision = engine.decide(board, O)
        assert decision.reason == 'opening'
        assert decision.move != (1, 1)


def test_threat_suppression_on_larger_board(engine):
    # 7x7, streak 5: three X in a row with open ends is a strong threat
    board = empty_board(7)
    board[3][1] = board[3][2] = board[3][3] = X
    decision = engine.decide(board, O)
    assert decision.reason == 'threat'
    assert decision.move in {(3, 0), (3, 4)}


def test_potential_win_counts_marks_within_reach():
    board = empty_board(7)
    board[3][2] = board[3][3] = X
    assert potential_win(board, 3, 4, X, 5) == 3
    board[3][5] = O
    board[3][1] = O
    # Blocked on both sides: 3 marks + 0 room can never reach 5 horizontally
    assert potential_win(board, 3, 4, X, 5) == 1


def test_search_depth_is_capped():
    assert search_depth(3) == 3
    assert search_depth(1) == 1
    assert search_depth(2, max_depth=3) == 1
    assert search_depth(7, max_depth=2) == 2


def test_search_finds_winning_move():
    board = [
        [O, None, X],
        [None, O, X],
        [X, None, None],
    ]
    search = _Search([list(row) for row in board], O, 3, 2)
    assert search.best_move() == (2, 2)


def test_search_memo_belongs_to_one_run():
    board = empty_board(3)
    board[0][0] = X
    board[1][1] = O
    first = _Search([list(row) for row in board], O, 3, 2)
    first.best_move()
    assert first.memo
    second = _Search([list(row) for row in board], O, 3, 2)
    assert second.memo == {}


def test_search_restores_board():
    board = empty_board(3)
    board[0][0] = X
    grid = [list(row) for row in board]
    _Search(grid, O, 3, 3).best_move()
    assert grid == board


def test_decide_does_not_mutate_caller_board(engine):
    board = empty_board(3)
    board[0][0] = X
    board[0][1] = X
    snapshot = [list(row) for row in board]
    engine.decide(board, O)
    assert board == snapshot


def test_single_empty_cell_is_played(engine):
    board = [
        [X, O, X],
        [X, O, O],
        [O, X, None],
    ]
    assert engine.find_move(board, X) == (2, 2)


def test_every_decision_is_a_legal_move(engine):
    board = empty_board(3)
    symbol = X
    for _ in range(9):
        row, col = engine.find_move(board, symbol)
        assert board[row][col] is None
        board[row][col] = symbol
        if is_winning_move(board, row, col, symbol, 3):
            break
        symbol = O if symbol == X else X


def test_full_board_is_rejected(engine):
    board = [
        [X, O, X],
        [X, O, O],
        [O, X, X],
    ]
    with pytest.raises(ValidationError):
        engine.find_move(board, O)


def test_levels_registry_describes_expert():
    assert 'expert' in BOT_LEVELS
    assert BOT_LEVELS['expert']['name'] == BotEngine.name


def test_search_candidates_stay_near_marks():
    board = empty_board(11)
    assert len(search_candidates(board)) == 121
    board[5][5] = X
    board[0][0] = O
    candidates = search_candidates(board)
    assert len(candidates) == 11
    assert (5, 5) not in candidates and (0, 0) not in candidates
    assert all(max(abs(r - 5), abs(c - 5)) <= 1 or max(r, c) <= 1 for r, c in candidates)


def test_sparse_large_board_decides_quickly():
    board = empty_board(11)
    board[5][5] = X
    board[0][0] = O
    log = EventLog(capacity=50)
    engine = BotEngine(rng=random.Random(1), max_depth=3, event_log=log)
    started = time.monotonic()
    decision = engine.decide(board, O)
    assert time.monotonic() - started < 5.0
    assert decision.reason == 'search'
    row, col = decision.move
    assert board[row][col] is None
    searched = [e for e in log.recent() if e['message'] == 'Search finished']
    assert searched and searched[0]['context']['nodes'] > 0
    assert searched[0]['context']['candidates'] == 11
