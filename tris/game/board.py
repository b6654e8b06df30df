from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

BOARD_SIZE = 3


class Symbol(str, Enum):
    FIRST = "X"
    SECOND = "O"

    @property
    def other(self) -> "Symbol":
        return Symbol.SECOND if self is Symbol.FIRST else Symbol.FIRST


class Status(str, Enum):
    PENDING = "pending"
    WON = "won"
    DRAWN = "drawn"


@dataclass(frozen=True)
class Outcome:
    status: Status
    winner: Optional[Symbol] = None

    @classmethod
    def won(cls, symbol: Symbol) -> "Outcome":
        return cls(Status.WON, symbol)

    @property
    def is_over(self) -> bool:
        return self.status is not Status.PENDING


PENDING = Outcome(Status.PENDING)
DRAWN = Outcome(Status.DRAWN)


def _lines() -> List[List[Tuple[int, int]]]:
    rows = [[(r, c) for c in range(BOARD_SIZE)] for r in range(BOARD_SIZE)]
    cols = [[(r, c) for r in range(BOARD_SIZE)] for c in range(BOARD_SIZE)]
    diag = [(i, i) for i in range(BOARD_SIZE)]
    anti = [(i, BOARD_SIZE - 1 - i) for i in range(BOARD_SIZE)]
    return rows + cols + [diag, anti]


# rows, columns, main diagonal, anti diagonal
WIN_LINES: List[List[Tuple[int, int]]] = _lines()


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


class Board:
    def __init__(self) -> None:
        # None marks an empty cell
        self.grid: List[List[Optional[Symbol]]] = [[None for _ in range(BOARD_SIZE)] for _ in range(BOARD_SIZE)]

    def is_empty(self, row: int, col: int) -> bool:
        return self.grid[row][col] is None

    def place(self, symbol: Symbol, row: int, col: int) -> bool:
        if not in_bounds(row, col) or not self.is_empty(row, col):
            return False
        self.grid[row][col] = symbol
        return True

    def is_full(self) -> bool:
        return all(cell is not None for row in self.grid for cell in row)

    def clear(self) -> None:
        for row in self.grid:
            for c in range(BOARD_SIZE):
                row[c] = None

    def rows(self) -> Tuple[Tuple[Optional[Symbol], ...], ...]:
        return tuple(tuple(row) for row in self.grid)


def check_outcome(board: Board) -> Outcome:
    """Evaluate every line from scratch. Pure: the board is not touched."""
    for line in WIN_LINES:
        (r0, c0), (r1, c1), (r2, c2) = line
        first = board.grid[r0][c0]
        if first is not None and first == board.grid[r1][c1] == board.grid[r2][c2]:
            return Outcome.won(first)
    if board.is_full():
        return DRAWN
    return PENDING
