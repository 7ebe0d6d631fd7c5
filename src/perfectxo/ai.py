"""Full-depth minimax (no pruning) for PerfectXO.

Scores are +10 for an automated win, -10 for a human win and 0 for a draw,
independent of how many plies it takes to get there. Equal scores keep the
first index scanned, so a slower forced win can be preferred over an
immediate one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from .game import AI_PLAYER, Board, Player, available_moves, evaluate, opponent, render

logger = logging.getLogger(__name__)

WIN_SCORE = 10
LOSS_SCORE = -10
DRAW_SCORE = 0


@dataclass(frozen=True)
class SearchResult:
    score: int
    move: Optional[int] = None


def best_move(
    board: Board, mark: Player, automated: Player = AI_PLAYER
) -> SearchResult:
    """Return the minimax-optimal move for ``mark`` to play on ``board``.

    ``automated`` is the maximizing side; the other mark minimizes. A terminal
    board yields its score with ``move=None``.
    """
    return _search(tuple(board), mark, automated)


@lru_cache(maxsize=None)
def _search(board: Board, mark: Player, automated: Player) -> SearchResult:
    outcome = evaluate(board)
    if outcome.is_win:
        return SearchResult(WIN_SCORE if outcome.winner == automated else LOSS_SCORE)
    if outcome.is_draw:
        return SearchResult(DRAW_SCORE)

    candidates: List[Tuple[int, int]] = []
    reply = opponent(mark)
    for index in available_moves(board):
        child = board[:index] + (mark,) + board[index + 1 :]
        candidates.append((index, _search(child, reply, automated).score))

    maximizing = mark == automated
    best_index, best_score = candidates[0]
    for index, score in candidates[1:]:
        # strict comparison keeps the lowest index on ties
        if (maximizing and score > best_score) or (
            not maximizing and score < best_score
        ):
            best_index, best_score = index, score
    return SearchResult(best_score, best_index)


def search_cache_info():
    return _search.cache_info()


def clear_search_cache() -> None:
    _search.cache_clear()


@dataclass
class MinimaxAI:
    """Automated player holding its mark; the web session keeps one of these.

    - MinimaxAI(player="O")
    - choose(board) -> cell index, or None when the board is already decided
    """

    player: Player = AI_PLAYER

    def search(self, board: Board) -> SearchResult:
        return best_move(board, self.player, self.player)

    def choose(self, board: Board) -> Optional[int]:
        result = self.search(board)
        logger.debug(
            "%s picks %s (score %s, %s)\n%s",
            self.player,
            result.move,
            result.score,
            search_cache_info(),
            render(board),
        )
        return result.move
