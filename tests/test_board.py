from __future__ import annotations

import pytest

from tris.game.board import DRAWN, PENDING, WIN_LINES, Board, Outcome, Symbol, check_outcome

X = Symbol.FIRST
O = Symbol.SECOND
_ = None


def make_board(rows) -> Board:
    board = Board()
    for r, row in enumerate(rows):
        for c, mark in enumerate(row):
            board.grid[r][c] = mark
    return board


def test_empty_board_is_pending() -> None:
    assert check_outcome(Board()) == PENDING


def test_top_row_wins() -> None:
    board = make_board([[X, X, X], [_, _, _], [_, _, _]])
    assert check_outcome(board) == Outcome.won(X)


def test_full_board_without_line_is_drawn() -> None:
    board = make_board([[X, O, X], [O, X, O], [O, X, O]])
    assert check_outcome(board) == DRAWN


@pytest.mark.parametrize("line", WIN_LINES)
@pytest.mark.parametrize("symbol", [X, O])
def test_every_line_wins_on_its_own(line, symbol) -> None:
    board = Board()
    for r, c in line:
        board.grid[r][c] = symbol
    assert check_outcome(board) == Outcome.won(symbol)


def test_there_are_eight_lines() -> None:
    assert len(WIN_LINES) == 8
    assert len({tuple(line) for line in WIN_LINES}) == 8


def test_win_on_last_cell_beats_draw() -> None:
    board = make_board([[X, O, X], [O, X, O], [O, O, X]])
    assert board.is_full()
    assert check_outcome(board) == Outcome.won(X)


def test_check_outcome_is_idempotent() -> None:
    board = make_board([[O, _, _], [_, O, _], [_, _, O]])
    before = board.rows()
    assert check_outcome(board) == check_outcome(board) == Outcome.won(O)
    assert board.rows() == before


def test_place_refuses_occupied_and_out_of_range() -> None:
    board = Board()
    assert board.place(X, 0, 0)
    assert not board.place(O, 0, 0)
    assert board.grid[0][0] is X
    assert not board.place(O, 3, 0)
    assert not board.place(O, -1, 2)


def test_clear_empties_every_cell() -> None:
    board = make_board([[X, O, X], [O, X, O], [O, X, O]])
    board.clear()
    assert all(cell is None for row in board.grid for cell in row)


def test_symbol_other() -> None:
    assert X.other is O
    assert O.other is X
