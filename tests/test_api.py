"""Tests for the FastAPI PerfectXO interface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from perfectxo import ui
from perfectxo.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = (0.0, 0.0)


def _new_game(**payload):
    response = client.post("/api/game", json=payload)
    assert response.status_code == 200
    return response.json()


def test_create_game_and_first_move():
    payload = _new_game()
    assert payload["currentPlayer"] == "X"
    assert payload["humanPlayer"] == "X"
    assert payload["aiPlayer"] == "O"
    assert payload["cells"] == [""] * 9
    assert payload["moveLog"] == []
    assert payload["aiPending"] is False

    game_id = payload["id"]
    move_response = client.post(
        f"/api/game/{game_id}/move", json={"cellIndex": 4}
    )
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["moveLog"][0] == {"player": "X", "cellIndex": 4}
    assert state["cells"][4] == "X"
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["currentPlayer"] == "X"
    assert final_state["aiPending"] is False
    assert final_state["lastMove"]["player"] == "O"
    assert final_state["cells"].count("O") == 1


def test_ai_first_game():
    payload = _new_game(humanFirst=False)
    assert payload["currentPlayer"] == "O"
    assert payload["aiPending"] is True

    state = client.get(f"/api/game/{payload['id']}").json()
    assert state["currentPlayer"] == "X"
    assert state["moveLog"][0]["player"] == "O"
    assert len(state["availableMoves"]) == 8


def test_occupied_cell_rejected():
    game_id = _new_game()["id"]

    first_move = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 0})
    assert first_move.status_code == 200

    duplicate_move = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 0})
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_move_while_ai_pending_rejected():
    game_id, session = ui._create_session(human_first=True)
    ui._apply_player_move(game_id, session, 0)
    assert session.ai_pending is True

    response = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 1})
    assert response.status_code == 400
    assert response.json()["detail"] == "AI is completing its move"


def test_out_of_range_cell_rejected():
    game_id = _new_game()["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 9})
    assert response.status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/INVALID").status_code == 404
    missing = client.post("/api/game/INVALID/move", json={"cellIndex": 0})
    assert missing.status_code == 404


def test_full_game_against_ai_never_lost():
    state = _new_game()
    game_id = state["id"]
    while not state["winner"] and not state["drawn"]:
        cell = state["availableMoves"][0]
        client.post(f"/api/game/{game_id}/move", json={"cellIndex": cell})
        state = client.get(f"/api/game/{game_id}").json()

    assert state["winner"] != "X"
    assert state["availableMoves"] == []
    if state["winner"]:
        line = state["winningLine"]
        assert [state["cells"][i] for i in line] == ["O", "O", "O"]

    finished = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 0})
    assert finished.status_code == 400
    assert finished.json()["detail"] == "Game already finished"


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "PerfectXO" in response.text


def test_move_out_of_turn_rejected():
    game_id, session = ui._create_session(human_first=True)
    session.current_player = "O"
    assert session.ai_pending is False

    response = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 0})
    assert response.status_code == 400
    assert response.json()["detail"] == "It is not your turn"


def test_idle_games_are_dropped():
    stale_id, stale = ui._create_session(human_first=True)
    stale.last_active -= ui.SESSION_TTL_SECONDS + 1
    busy_id, busy = ui._create_session(human_first=True)
    busy.last_active -= ui.SESSION_TTL_SECONDS + 1
    busy.ai_pending = True

    fresh_id = _new_game()["id"]

    assert stale_id not in ui.SESSIONS
    assert busy_id in ui.SESSIONS
    assert client.get(f"/api/game/{stale_id}").status_code == 404
    assert client.get(f"/api/game/{fresh_id}").status_code == 200


def test_think_delay_override_wins_over_environment():
    assert ui._think_delay() == (0.0, 0.0)
