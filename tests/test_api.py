"""Tests for the FastAPI match interface."""

from __future__ import annotations

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from xomatch import ui
from xomatch.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = 0.0


def _new_game(**payload) -> dict:
    response = client.post("/api/game", json=payload)
    assert response.status_code == 200
    return response.json()


def _move(game_id: str, index: int):
    return client.post(f"/api/game/{game_id}/move", json={"index": index})


def test_create_game_and_first_move():
    payload = _new_game(difficulty="hard")
    assert payload["currentPlayer"] == "X"
    assert payload["aiSymbol"] == "O"
    assert payload["moveLog"] == []
    assert payload["turnText"] == "Player's Turn"

    game_id = payload["id"]
    move_response = _move(game_id, 4)
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["board"][4] == "X"
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["aiPending"] is False
    assert final_state["currentPlayer"] == "X"
    assert final_state["moveLog"][-1]["player"] == "O"
    assert sum(1 for c in final_state["board"] if c) == 2


def test_invalid_move_rejected():
    game_id = _new_game(mode="pvp")["id"]
    assert _move(game_id, 0).status_code == 200

    duplicate_move = _move(game_id, 0)
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]

    state = client.get(f"/api/game/{game_id}").json()
    assert state["currentPlayer"] == "O"


def test_out_of_range_index_rejected():
    game_id = _new_game()["id"]
    assert _move(game_id, 9).status_code == 422


def test_rejects_unsupported_settings():
    assert client.post("/api/game", json={"difficulty": "expert"}).status_code == 422
    assert client.post("/api/game", json={"playerSymbol": "Z"}).status_code == 422
    assert client.post("/api/game", json={"mode": "online"}).status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    assert _move("missing", 0).status_code == 404


def test_pvp_match_tracks_scores_and_status():
    game_id = _new_game(mode="pvp", player1Name="Ann", player2Name="Bo")["id"]
    for index in (0, 3, 1, 4):
        assert _move(game_id, index).status_code == 200
    state = _move(game_id, 2).json()
    assert state["gameOver"] is True
    assert state["winner"] == "X"
    assert state["winningLine"] == [0, 1, 2]
    assert state["status"] == "Ann Wins!"
    assert state["aiPending"] is False
    assert state["stats"] == {
        "player1Score": 1,
        "player2Score": 0,
        "gamesPlayed": 1,
        "winRate": 100,
    }

    assert _move(game_id, 5).status_code == 400

    state = client.post(f"/api/game/{game_id}/new-game").json()
    assert state["board"] == [""] * 9
    assert state["currentPlayer"] == "X"
    assert state["stats"]["gamesPlayed"] == 1
    assert state["turnText"] == "Ann's Turn"

    for index in (0, 1, 2, 4, 3, 5, 7, 6, 8):
        _move(game_id, index)
    state = client.get(f"/api/game/{game_id}").json()
    assert state["status"] == "It's a draw!"
    assert state["stats"]["gamesPlayed"] == 2
    assert state["stats"]["winRate"] == 50

    state = client.post(f"/api/game/{game_id}/reset").json()
    assert state["stats"] == {
        "player1Score": 0,
        "player2Score": 0,
        "gamesPlayed": 0,
        "winRate": 0,
    }
    assert state["board"] == [""] * 9


def test_symbol_change_resets_board():
    game_id = _new_game(mode="pvp")["id"]
    _move(game_id, 4)
    response = client.put(
        f"/api/game/{game_id}/settings", json={"playerSymbol": "o"}
    )
    assert response.status_code == 200
    state = response.json()
    assert state["playerSymbol"] == "O"
    assert state["aiSymbol"] == "X"
    assert state["currentPlayer"] == "O"
    assert state["board"] == [""] * 9


def test_mode_change_resets_match():
    game_id = _new_game(mode="pvp")["id"]
    for index in (0, 3, 1, 4, 2):
        _move(game_id, index)
    state = client.put(f"/api/game/{game_id}/settings", json={"mode": "pvc"}).json()
    assert state["mode"] == "pvc"
    assert state["stats"]["gamesPlayed"] == 0
    assert state["players"]["player2"] == "Computer"


def test_difficulty_change_keeps_board():
    game_id = _new_game(mode="pvp")["id"]
    _move(game_id, 4)
    state = client.put(
        f"/api/game/{game_id}/settings", json={"difficulty": "medium"}
    ).json()
    assert state["difficulty"] == "medium"
    assert state["board"][4] == "X"


def test_computer_wins_are_credited_to_player2():
    game_id = _new_game(difficulty="hard")["id"]
    for index in (0, 1, 3, 5, 7, 8):
        state = client.get(f"/api/game/{game_id}").json()
        if state["gameOver"]:
            break
        if state["board"][index]:
            continue
        _move(game_id, index)
    state = client.get(f"/api/game/{game_id}").json()
    assert state["winner"] == "O"
    assert state["status"] == "Computer Wins!"
    assert state["stats"]["player2Score"] == 1


def test_human_move_blocked_while_computer_reply_pending():
    game_id = _new_game(difficulty="hard")["id"]
    session = ui.SESSIONS[game_id]

    ui._apply_player_move(game_id, session, 4, None)
    assert session.ai_pending is True

    with pytest.raises(HTTPException) as excinfo:
        ui._apply_player_move(game_id, session, 0, None)
    assert excinfo.value.status_code == 400
    assert excinfo.value.detail == "AI is completing its move"


def test_new_game_cancels_pending_computer_reply():
    game_id = _new_game(difficulty="hard")["id"]
    session = ui.SESSIONS[game_id]
    ui._apply_player_move(game_id, session, 4, None)

    state = client.post(f"/api/game/{game_id}/new-game").json()
    assert state["aiPending"] is False

    ui._run_ai_turn(game_id)
    assert session.game.cells == [" "] * 9
    assert session.move_log == []


def test_reselecting_current_mode_resets_match():
    game_id = _new_game(mode="pvp")["id"]
    for index in (0, 3, 1, 4, 2):
        _move(game_id, index)
    state = client.put(f"/api/game/{game_id}/settings", json={"mode": "pvp"}).json()
    assert state["mode"] == "pvp"
    assert state["stats"]["gamesPlayed"] == 0
    assert state["board"] == [""] * 9
