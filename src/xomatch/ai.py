"""Random and depth-limited minimax move selection for the computer player."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence
import math
import random

from .game import (
    EMPTY,
    Player,
    TicTacToeGame,
    check_winner,
    empty_cells,
    is_full,
    other_player,
)


class NoLegalMove(RuntimeError):
    """Raised when the engine is asked to move on a board with no empty cell."""


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# None means the search runs to the end of the game.
DEPTH_LIMITS: Dict[Difficulty, Optional[int]] = {
    Difficulty.MEDIUM: 1,
    Difficulty.HARD: None,
}


def minimax(
    cells: List[str],
    depth: int,
    maximizing: bool,
    ai_player: Player,
    depth_limit: Optional[int] = None,
) -> int:
    """Score ``cells`` for ``ai_player``; quicker wins score higher.

    Cells are placed and cleared in place, so callers pass a scratch copy.
    """
    human = other_player(ai_player)
    if check_winner(cells, ai_player):
        return 10 - depth
    if check_winner(cells, human):
        return depth - 10
    if is_full(cells):
        return 0
    if depth_limit is not None and depth >= depth_limit:
        return 0

    mover = ai_player if maximizing else human
    best = -math.inf if maximizing else math.inf
    for idx in empty_cells(cells):
        cells[idx] = mover
        score = minimax(cells, depth + 1, not maximizing, ai_player, depth_limit)
        cells[idx] = EMPTY
        best = max(best, score) if maximizing else min(best, score)
    return int(best)


def best_move(
    cells: Sequence[str], ai_player: Player, depth_limit: Optional[int] = None
) -> int:
    """Highest-scoring empty cell; the lowest index wins ties."""
    board = list(cells)
    best_score = -math.inf
    move: Optional[int] = None
    for idx in empty_cells(board):
        board[idx] = ai_player
        score = minimax(board, 0, False, ai_player, depth_limit)
        board[idx] = EMPTY
        if score > best_score:
            best_score, move = score, idx
    if move is None:
        raise NoLegalMove("No valid moves available")
    return move


def select_move(
    cells: Sequence[str],
    ai_player: Player,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
) -> int:
    moves = empty_cells(cells)
    if not moves:
        raise NoLegalMove("No valid moves available")
    difficulty = Difficulty(difficulty)
    if difficulty is Difficulty.EASY:
        return (rng or random).choice(moves)
    return best_move(cells, ai_player, DEPTH_LIMITS[difficulty])


@dataclass
class MinimaxAI:
    """Computer opponent bound to one symbol and difficulty.

    - MinimaxAI(player="O", difficulty=Difficulty.HARD)
    - choose(game) -> cell index
    """

    player: Player
    difficulty: Difficulty = Difficulty.EASY
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, game: TicTacToeGame) -> int:
        if game.current_player != self.player:
            raise ValueError("It is not this AI player's turn")
        return select_move(game.snapshot(), self.player, self.difficulty, self.rng)
