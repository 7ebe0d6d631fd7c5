"""Board values and outcome evaluation for PerfectXO (3x3 tic-tac-toe)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

Player = str  # "X" or "O"
Board = Tuple[str, ...]  # 9 cells, row-major, "X", "O" or EMPTY

EMPTY = " "
PLAYERS: Tuple[Player, Player] = ("X", "O")
HUMAN_PLAYER: Player = "X"
AI_PLAYER: Player = "O"

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


# ---------- Outcome ----------


@dataclass(frozen=True)
class Outcome:
    """Classification of a board: ``continue``, ``win`` (with winner) or ``draw``."""

    state: str
    winner: Optional[Player] = None
    line: Optional[Tuple[int, int, int]] = None

    @classmethod
    def win(
        cls, mark: Player, line: Optional[Tuple[int, int, int]] = None
    ) -> "Outcome":
        return cls(state="win", winner=mark, line=line)

    @property
    def is_win(self) -> bool:
        return self.state == "win"

    @property
    def is_draw(self) -> bool:
        return self.state == "draw"

    @property
    def is_terminal(self) -> bool:
        return self.state != "continue"


CONTINUE = Outcome(state="continue")
DRAW = Outcome(state="draw")


# ---------- Board helpers ----------


def new_board() -> Board:
    return (EMPTY,) * 9


def make_board(cells: Iterable[str]) -> Board:
    """Validate ``cells`` and freeze them into a board tuple."""
    board = tuple(cells)
    if len(board) != 9:
        raise ValueError(f"A board has exactly 9 cells, got {len(board)}")
    for cell in board:
        if cell != EMPTY and cell not in PLAYERS:
            raise ValueError(f"Unknown cell value {cell!r}")
    return board


def opponent(mark: Player) -> Player:
    if mark not in PLAYERS:
        raise ValueError(f"Unknown player {mark!r}")
    return "O" if mark == "X" else "X"


def available_moves(board: Board) -> List[int]:
    return [i for i, c in enumerate(board) if c == EMPTY]


def evaluate(board: Board) -> Outcome:
    # First completed line in WINNING_LINES order wins
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return Outcome.win(v, (a, b, c))
    if EMPTY not in board:
        return DRAW
    return CONTINUE


def apply_move(board: Board, index: int, mark: Player) -> Board:
    """Return a new board with ``mark`` placed at ``index``.

    The input board is left untouched. Raises ``ValueError`` when the game is
    already decided, the index is off the board, the cell is taken or the
    mark is unknown.
    """
    if mark not in PLAYERS:
        raise ValueError(f"Unknown player {mark!r}")
    if not 0 <= index < 9:
        raise ValueError(f"Cell index {index} is off the board")
    if evaluate(board).is_terminal:
        raise ValueError("Game already finished")
    if board[index] != EMPTY:
        raise ValueError("Cell already occupied")
    return board[:index] + (mark,) + board[index + 1 :]


def render(board: Board) -> str:
    rows = [" | ".join(board[i : i + 3]) for i in range(0, 9, 3)]
    return "\n---------\n".join(rows)
