"""FastAPI-powered web UI for playing PerfectXO against the minimax AI."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .ai import MinimaxAI
from .config import Settings
from .game import (
    AI_PLAYER,
    EMPTY,
    HUMAN_PLAYER,
    Board,
    Player,
    apply_move,
    available_moves,
    evaluate,
    new_board,
    opponent,
)

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game, whose turn it is, and the AI opponent."""

    board: Board
    current_player: Player
    ai: MinimaxAI
    human_player: Player = HUMAN_PLAYER
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    last_active: float = field(default_factory=lambda: time.time())
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def play(self, index: int) -> None:
        """Place the current player's mark and hand the turn over."""

        player = self.current_player
        self.board = apply_move(self.board, index, player)
        self.move_log.append({"player": player, "cellIndex": index})
        self.current_player = opponent(player)
        self.last_active = time.time()

        outcome = evaluate(self.board)
        if outcome.is_terminal:
            logger.info(
                "Game finished after %d moves: %s",
                len(self.move_log),
                f"{outcome.winner} wins" if outcome.is_win else "draw",
            )


SESSIONS: Dict[str, GameSession] = {}
SESSIONS_LOCK = threading.Lock()
app = FastAPI(title="PerfectXO", description="Tic-tac-toe against a perfect-play AI")

# None defers to PERFECTXO_AI_DELAY_MIN/MAX, read on the first AI turn
AI_THINK_DELAY: Optional[Tuple[float, float]] = None
SESSION_TTL_SECONDS = 60 * 30  # 30 minutes


@lru_cache(maxsize=None)
def _settings() -> Settings:
    return Settings.from_env()


def _think_delay() -> Tuple[float, float]:
    if AI_THINK_DELAY is not None:
        return AI_THINK_DELAY
    return _settings().ai_think_delay


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    human_first: bool = Field(
        default=True,
        alias="humanFirst",
        description="Whether the human opens the game",
    )


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _cleanup_sessions() -> None:
    """Remove sessions idle for longer than the TTL unless the AI is still moving."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if not session.ai_pending
        and now - session.last_active >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)
    if expired:
        logger.info("Dropped %d idle games", len(expired))


def _create_session(human_first: bool) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    ai = MinimaxAI(player=AI_PLAYER)
    session = GameSession(
        board=new_board(),
        current_player=HUMAN_PLAYER if human_first else AI_PLAYER,
        ai=ai,
    )
    session_id = uuid.uuid4().hex
    with SESSIONS_LOCK:
        _cleanup_sessions()
        SESSIONS[session_id] = session
    logger.info(
        "Created game %s (%s moves first)", session_id, session.current_player
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    try:
        delay = _think_delay()
    except ValueError:
        session.ai_pending = False
        raise
    time.sleep(max(0.0, random.uniform(*delay)))

    with session.lock:
        try:
            if evaluate(session.board).is_terminal:
                return
            if session.current_player != session.ai.player:
                return
            move = session.ai.choose(session.board)
            if move is None:
                return
            session.play(move)
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        board = session.board
        outcome = evaluate(board)
        state: Dict[str, object] = {
            "id": game_id,
            "cells": [c if c != EMPTY else "" for c in board],
            "currentPlayer": session.current_player,
            "humanPlayer": session.human_player,
            "aiPlayer": session.ai.player,
            "winner": outcome.winner,
            "drawn": outcome.is_draw,
            "winningLine": list(outcome.line) if outcome.line else None,
            "availableMoves": [] if outcome.is_terminal else available_moves(board),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _schedule_ai(
    game_id: str, session: GameSession, background_tasks: Optional[BackgroundTasks]
) -> None:
    # Caller holds session.lock
    if evaluate(session.board).is_terminal:
        return
    if session.current_player != session.ai.player:
        return
    session.ai_pending = True
    if background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id)


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        if evaluate(session.board).is_terminal:
            logger.warning("Rejected move on finished game %s", game_id)
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            logger.warning("Rejected move on %s while AI is moving", game_id)
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if session.current_player != session.human_player:
            logger.warning("Rejected out-of-turn move on %s", game_id)
            raise HTTPException(status_code=400, detail="It is not your turn")

        try:
            session.play(cell_index)
        except ValueError as exc:
            logger.warning("Rejected move %d on %s: %s", cell_index, game_id, exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        _schedule_ai(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    background_tasks: BackgroundTasks, request: Optional[NewGameRequest] = None
) -> Dict[str, object]:
    human_first = request.human_first if request is not None else True
    game_id, session = _create_session(human_first)
    with session.lock:
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>PerfectXO</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: 2rem;
        width: min(420px, 100%);
        text-align: center;
      }
      h1 {
        margin: 0 0 1rem;
        letter-spacing: 0.06em;
      }
      .toolbar {
        display: flex;
        gap: 0.75rem;
        justify-content: center;
        margin-bottom: 1.25rem;
      }
      button {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
      }
      button:disabled {
        cursor: default;
        opacity: 0.6;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 8px;
        margin: 0 auto 1rem;
        width: min(300px, 100%);
      }
      .board.thinking {
        opacity: 0.75;
      }
      .cell {
        aspect-ratio: 1;
        font-size: 2.4rem;
        font-weight: 700;
        border-radius: 12px;
        background: #eef1ff;
        padding: 0;
      }
      .cell.X {
        color: #2b59ff;
      }
      .cell.O {
        color: #e0435b;
      }
      .cell.winning {
        background: #ffe7a6;
      }
      .status {
        font-weight: 600;
        min-height: 1.5rem;
      }
      .message {
        color: #b3261e;
        min-height: 1.25rem;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>PerfectXO</h1>
      <div class=\"toolbar\">
        <button id=\"new-game\">New game</button>
        <button id=\"ai-first\">AI starts</button>
      </div>
      <div id=\"board\" class=\"board\"></div>
      <p id=\"status\" class=\"status\"></p>
      <p id=\"message\" class=\"message\"></p>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const newGameButton = document.getElementById('new-game');
      const aiFirstButton = document.getElementById('ai-first');
      let gameId = null;
      let gameState = null;
      let pollHandle = null;
      let isRequestPending = false;

      function renderBoard() {
        boardEl.innerHTML = '';
        const cells = gameState ? gameState.cells : Array(9).fill('');
        const line = gameState && gameState.winningLine ? gameState.winningLine : [];
        cells.forEach((mark, index) => {
          const cell = document.createElement('button');
          cell.className = 'cell ' + mark + (line.includes(index) ? ' winning' : '');
          cell.textContent = mark;
          cell.disabled = !gameState || !gameState.availableMoves.includes(index)
            || gameState.aiPending || gameState.currentPlayer !== gameState.humanPlayer;
          cell.addEventListener('click', () => sendMove(index));
          boardEl.appendChild(cell);
        });
        boardEl.classList.toggle('thinking', Boolean(gameState && gameState.aiPending));
      }

      function renderStatus() {
        if (!gameState) {
          statusEl.textContent = '';
        } else if (gameState.winner) {
          statusEl.textContent = gameState.winner === gameState.humanPlayer
            ? 'You win!' : 'The AI wins.';
        } else if (gameState.drawn) {
          statusEl.textContent = "It's a tie!";
        } else if (gameState.aiPending) {
          statusEl.textContent = 'AI is thinking…';
        } else {
          statusEl.textContent = 'Your move (' + gameState.humanPlayer + ')';
        }
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        renderBoard();
        renderStatus();
        if (gameState.aiPending) {
          ensurePolling();
        }
      }

      function ensurePolling() {
        if (pollHandle === null) {
          pollHandle = setTimeout(poll, 300);
        }
      }

      async function poll() {
        pollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (response.ok) {
            setState(await response.json());
          }
        } catch (error) {
          console.error('Polling failed', error);
          ensurePolling();
        }
      }

      async function startGame(humanFirst) {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          const response = await fetch('/api/game', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({ humanFirst }),
          });
          if (!response.ok) {
            throw new Error('Unable to start game');
          }
          setState(await response.json());
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      async function sendMove(cellIndex) {
        if (isRequestPending || !gameId) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          const response = await fetch(`/api/game/${gameId}/move`, {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({ cellIndex }),
          });
          if (!response.ok) {
            const payload = await response.json().catch(() => ({}));
            messageEl.textContent = payload.detail || 'Invalid move';
            return;
          }
          setState(await response.json());
        } catch (error) {
          messageEl.textContent = 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      newGameButton.addEventListener('click', () => startGame(true));
      aiFirstButton.addEventListener('click', () => startGame(false));
      startGame(true);
    </script>
  </body>
</html>
"""
