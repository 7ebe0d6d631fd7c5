"""PerfectXO package exposing the evaluator, minimax search, and the web application."""

from .ai import MinimaxAI, SearchResult, best_move
from .game import Outcome, apply_move, evaluate, new_board
from .ui import app

__all__ = [
    "MinimaxAI",
    "Outcome",
    "SearchResult",
    "app",
    "apply_move",
    "best_move",
    "evaluate",
    "new_board",
]
