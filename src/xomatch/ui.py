"""FastAPI-powered web UI for playing tic-tac-toe matches in the browser."""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import Difficulty, MinimaxAI
from .game import PLAYERS, InvalidMove, Outcome, Player, TicTacToeGame

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    PVC = "pvc"
    PVP = "pvp"


COMPUTER_NAME = "Computer"
DEFAULT_PLAYER1_NAME = "Player"
DEFAULT_PLAYER2_NAME = "Player 2"
AI_THINK_DELAY: float = float(os.environ.get("XOMATCH_AI_DELAY", "0.5"))


@dataclass
class GameSession:
    """Container for an active match, its settings and its AI opponent."""

    game: TicTacToeGame
    mode: Mode = Mode.PVC
    difficulty: Difficulty = Difficulty.EASY
    player1_name: str = ""
    player2_name: str = ""
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def ai(self) -> Optional[MinimaxAI]:
        if self.mode is not Mode.PVC:
            return None
        return MinimaxAI(player=self.game.opponent_symbol, difficulty=self.difficulty)

    def name_for(self, player: Player) -> str:
        if player == self.game.player_symbol:
            return self.player1_name or DEFAULT_PLAYER1_NAME
        if self.mode is Mode.PVC:
            return COMPUTER_NAME
        return self.player2_name or DEFAULT_PLAYER2_NAME

    def status_text(self) -> str:
        game = self.game
        if game.winner:
            return f"{self.name_for(game.winner)} Wins!"
        if game.drawn:
            return "It's a draw!"
        return ""

    def start_game(self) -> None:
        self.game.reset_game()
        self.move_log.clear()
        self.ai_pending = False

    def start_match(self) -> None:
        self.game.reset_match()
        self.move_log.clear()
        self.ai_pending = False


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="xomatch", description="Tic-tac-toe matches played in the browser")


def _normalize_symbol(value: str) -> str:
    value = value.strip().upper()
    if value not in PLAYERS:
        raise ValueError(f"Unsupported symbol {value!r}. Choose X or O.")
    return value


class NewGameRequest(BaseModel):
    """Request payload for starting a new match."""

    model_config = ConfigDict(populate_by_name=True)

    mode: Mode = Mode.PVC
    difficulty: Difficulty = Difficulty.EASY
    player_symbol: str = Field(default="X", alias="playerSymbol")
    player1_name: str = Field(default="", alias="player1Name", max_length=40)
    player2_name: str = Field(default="", alias="player2Name", max_length=40)

    @field_validator("player_symbol")
    @classmethod
    def ensure_symbol(cls, value: str) -> str:
        return _normalize_symbol(value)


class SettingsRequest(BaseModel):
    """Partial update of a running session; omitted fields stay as they are."""

    model_config = ConfigDict(populate_by_name=True)

    mode: Optional[Mode] = None
    difficulty: Optional[Difficulty] = None
    player_symbol: Optional[str] = Field(default=None, alias="playerSymbol")
    player1_name: Optional[str] = Field(default=None, alias="player1Name", max_length=40)
    player2_name: Optional[str] = Field(default=None, alias="player2Name", max_length=40)

    @field_validator("player_symbol")
    @classmethod
    def ensure_symbol(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _normalize_symbol(value)


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    index: int = Field(ge=0, le=8)


def _create_session(request: NewGameRequest) -> tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(
        game=TicTacToeGame(player_symbol=request.player_symbol),
        mode=request.mode,
        difficulty=request.difficulty,
        player1_name=request.player1_name,
        player2_name=request.player2_name,
    )
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created session %s (mode=%s, difficulty=%s, symbol=%s)",
        session_id,
        session.mode.value,
        session.difficulty.value,
        request.player_symbol,
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _log_finished(game_id: str, session: GameSession) -> None:
    game = session.game
    if game.is_over:
        logger.info(
            "Session %s finished: %s (games played: %d)",
            game_id,
            session.status_text(),
            game.stats.games_played,
        )


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_THINK_DELAY))

    with session.lock:
        try:
            ai = session.ai
            if not session.ai_pending or not ai:
                return
            game = session.game
            if game.is_over or game.current_player != ai.player:
                return
            index = ai.choose(game)
            game.apply_move(index, ai.player)
            session.move_log.append({"player": ai.player, "index": index})
            logger.debug("Session %s: computer %s played %d", game_id, ai.player, index)
            _log_finished(game_id, session)
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        stats = game.stats
        winner = game.winner
        line = game.winning_line
        state: Dict[str, object] = {
            "id": game_id,
            "board": [c if c in PLAYERS else "" for c in game.cells],
            "currentPlayer": game.current_player,
            "playerSymbol": game.player_symbol,
            "aiSymbol": game.opponent_symbol,
            "mode": session.mode.value,
            "difficulty": session.difficulty.value,
            "outcome": game.outcome.value,
            "winner": winner,
            "winningLine": list(line) if line else None,
            "gameOver": game.is_over,
            "status": session.status_text(),
            "turnText": f"{session.name_for(game.current_player)}'s Turn",
            "players": {
                "player1": session.name_for(game.player_symbol),
                "player2": session.name_for(game.opponent_symbol),
            },
            "stats": {
                "player1Score": stats.player1_score,
                "player2Score": stats.player2_score,
                "gamesPlayed": stats.games_played,
                "winRate": stats.win_rate,
            },
            "availableMoves": game.available_moves(),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        game = session.game
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        ai = session.ai
        if ai and game.current_player == ai.player and not game.is_over:
            raise HTTPException(status_code=400, detail="Waiting for the computer")

        player = game.current_player
        try:
            outcome = game.apply_move(index, player)
        except InvalidMove as exc:
            logger.debug("Session %s: rejected move %d: %s", game_id, index, exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": player, "index": index})
        _log_finished(game_id, session)

        should_schedule_ai = bool(
            ai and outcome is Outcome.IN_PROGRESS and game.current_player == ai.player
        )
        if should_schedule_ai:
            session.ai_pending = True

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id)


def _apply_settings(game_id: str, session: GameSession, request: SettingsRequest) -> None:
    with session.lock:
        if request.player1_name is not None:
            session.player1_name = request.player1_name
        if request.player2_name is not None:
            session.player2_name = request.player2_name
        if request.difficulty is not None:
            session.difficulty = request.difficulty
        if request.player_symbol is not None:
            session.game.choose_symbol(request.player_symbol)
            session.start_game()
        if request.mode is not None:
            session.mode = request.mode
            session.start_match()
        logger.info(
            "Session %s settings: mode=%s difficulty=%s symbol=%s",
            game_id,
            session.mode.value,
            session.difficulty.value,
            session.game.player_symbol,
        )


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request)
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
    _apply_player_move(game_id, session, request.index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/new-game")
def new_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.start_game()
    logger.info("Session %s: new game", game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_match(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.start_match()
    logger.info("Session %s: match reset", game_id)
    return _serialize_session(game_id, session)


@app.put("/api/game/{game_id}/settings")
def update_settings(game_id: str, request: SettingsRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_settings(game_id, session, request)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>xomatch</title>
    <style>
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem;
        font-family: system-ui, -apple-system, \"Segoe UI\", sans-serif;
        background: #eef1fb;
        color: #13203a;
      }
      main { width: 100%; max-width: 420px; }
      .row { display: flex; gap: 0.5rem; margin: 0.5rem 0; flex-wrap: wrap; }
      button { padding: 0.4rem 0.8rem; border-radius: 6px; border: 1px solid #8a94b8; background: #fff; cursor: pointer; }
      button.active { background: #3a4fd7; color: #fff; }
      #board { display: grid; grid-template-columns: repeat(3, 1fr); gap: 6px; margin: 1rem 0; }
      .cell { aspect-ratio: 1; font-size: 2.5rem; font-weight: 700; }
      .cell.x { color: #d7453a; }
      .cell.o { color: #3a4fd7; }
      .cell.winning { background: #ffe48a; }
      #stats span { margin-right: 1rem; }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>
      <div class=\"row\">
        <button id=\"choose-x\" data-symbol=\"X\">Play X</button>
        <button id=\"choose-o\" data-symbol=\"O\">Play O</button>
      </div>
      <div class=\"row\">
        <button id=\"pvp-mode\" data-mode=\"pvp\">2 Players</button>
        <button id=\"pvc-mode\" data-mode=\"pvc\">vs Computer</button>
      </div>
      <div class=\"row\" id=\"difficulty-selector\">
        <button data-difficulty=\"easy\">Easy</button>
        <button data-difficulty=\"medium\">Medium</button>
        <button data-difficulty=\"hard\">Hard</button>
      </div>
      <div class=\"row\">
        <input id=\"player1-name\" placeholder=\"Player\" />
        <input id=\"player2-name\" placeholder=\"Player 2\" />
      </div>
      <p id=\"current-player\"></p>
      <div id=\"board\"></div>
      <p id=\"game-status\"></p>
      <div class=\"row\">
        <button id=\"new-match\">New Game</button>
        <button id=\"reset-game\">Reset</button>
      </div>
      <p id=\"stats\">
        <span id=\"player1-score\"></span><span id=\"player2-score\"></span>
        <span id=\"games-played\"></span><span id=\"win-rate\"></span>
      </p>
    </main>
    <script>
      let state = null;
      const $ = (id) => document.getElementById(id);
      const boardEl = $('board');
      for (let i = 0; i < 9; i++) {
        const cell = document.createElement('button');
        cell.className = 'cell';
        cell.addEventListener('click', () => send(`/move`, 'POST', { index: i }));
        boardEl.appendChild(cell);
      }

      async function send(path, method = 'POST', body = undefined) {
        const url = state ? `/api/game/${state.id}${path}` : '/api/game';
        const response = await fetch(url, {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        if (response.ok) {
          render(await response.json());
        }
      }

      function render(next) {
        state = next;
        [...boardEl.children].forEach((cell, i) => {
          const value = state.board[i];
          cell.textContent = value;
          cell.className = 'cell' + (value ? ' ' + value.toLowerCase() : '');
          if (state.winningLine && state.winningLine.includes(i)) {
            cell.classList.add('winning');
          }
        });
        $('current-player').textContent = state.gameOver ? '' : state.turnText;
        $('game-status').textContent = state.status;
        $('player1-score').textContent = `${state.players.player1}: ${state.stats.player1Score}`;
        $('player2-score').textContent = `${state.players.player2}: ${state.stats.player2Score}`;
        $('games-played').textContent = `Games: ${state.stats.gamesPlayed}`;
        $('win-rate').textContent = `Win rate: ${state.stats.winRate}%`;
        $('difficulty-selector').style.display = state.mode === 'pvc' ? 'flex' : 'none';
        $('player2-name').disabled = state.mode === 'pvc';
        document.querySelectorAll('[data-symbol]').forEach((b) =>
          b.classList.toggle('active', b.dataset.symbol === state.playerSymbol));
        document.querySelectorAll('[data-mode]').forEach((b) =>
          b.classList.toggle('active', b.dataset.mode === state.mode));
        document.querySelectorAll('[data-difficulty]').forEach((b) =>
          b.classList.toggle('active', b.dataset.difficulty === state.difficulty));
        if (state.aiPending) {
          setTimeout(() => send('', 'GET'), 250);
        }
      }

      document.querySelectorAll('[data-symbol]').forEach((b) =>
        b.addEventListener('click', () => send('/settings', 'PUT', { playerSymbol: b.dataset.symbol })));
      document.querySelectorAll('[data-mode]').forEach((b) =>
        b.addEventListener('click', () => send('/settings', 'PUT', { mode: b.dataset.mode })));
      document.querySelectorAll('[data-difficulty]').forEach((b) =>
        b.addEventListener('click', () => send('/settings', 'PUT', { difficulty: b.dataset.difficulty })));
      ['player1-name', 'player2-name'].forEach((id, n) =>
        $(id).addEventListener('change', (e) =>
          send('/settings', 'PUT', { [`player${n + 1}Name`]: e.target.value })));
      $('new-match').addEventListener('click', () => send('/new-game'));
      $('reset-game').addEventListener('click', () => send('/reset'));

      send('', 'POST', {});
    </script>
  </body>
</html>
"""
