"""Core rules and match bookkeeping for a 3x3 tic-tac-toe game."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
EMPTY = " "
PLAYERS: Tuple[Player, Player] = ("X", "O")

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


class InvalidMove(ValueError):
    """Raised when a move cannot be applied to the current position."""


class Outcome(str, Enum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


def other_player(player: Player) -> Player:
    if player not in PLAYERS:
        raise ValueError(f"Unknown symbol {player!r}")
    return "O" if player == "X" else "X"


# ---------- Board helpers ----------


def empty_cells(cells: Sequence[str]) -> List[int]:
    return [i for i, c in enumerate(cells) if c == EMPTY]


def is_full(cells: Sequence[str]) -> bool:
    return all(c != EMPTY for c in cells)


def winning_line(cells: Sequence[str], player: Player) -> Optional[Tuple[int, int, int]]:
    for line in WINNING_LINES:
        if all(cells[i] == player for i in line):
            return line
    return None


def check_winner(cells: Sequence[str], player: Player) -> bool:
    """True iff ``player`` fully occupies any of the eight winning lines."""
    return winning_line(cells, player) is not None


def is_draw(cells: Sequence[str]) -> bool:
    return is_full(cells) and not any(check_winner(cells, p) for p in PLAYERS)


# ---------- Match statistics ----------


@dataclass
class MatchStats:
    player1_score: int = 0
    player2_score: int = 0
    games_played: int = 0

    @property
    def win_rate(self) -> int:
        """Side-1 wins as a percentage of all finished games, rounded half up."""
        if not self.games_played:
            return 0
        return (200 * self.player1_score + self.games_played) // (
            2 * self.games_played
        )

    def record_win(self, side: int) -> None:
        if side == 1:
            self.player1_score += 1
        else:
            self.player2_score += 1
        self.games_played += 1

    def record_draw(self) -> None:
        self.games_played += 1

    def reset(self) -> None:
        self.player1_score = 0
        self.player2_score = 0
        self.games_played = 0


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    """One board plus the statistics of the match it belongs to.

    ``player_symbol`` is side 1 (the human in single-player mode); it always
    moves first after a reset. Outcome and winner are derived from ``cells``.
    """

    player_symbol: Player = "X"
    cells: List[str] = field(default_factory=lambda: [EMPTY] * 9)
    current_player: Player = ""
    stats: MatchStats = field(default_factory=MatchStats)

    def __post_init__(self) -> None:
        other_player(self.player_symbol)
        if not self.current_player:
            self.current_player = self.player_symbol

    # ---- derived state ----

    @property
    def opponent_symbol(self) -> Player:
        return other_player(self.player_symbol)

    @property
    def winner(self) -> Optional[Player]:
        for p in PLAYERS:
            if check_winner(self.cells, p):
                return p
        return None

    @property
    def drawn(self) -> bool:
        return is_draw(self.cells)

    @property
    def outcome(self) -> Outcome:
        if self.winner:
            return Outcome.WIN
        if is_full(self.cells):
            return Outcome.DRAW
        return Outcome.IN_PROGRESS

    @property
    def is_over(self) -> bool:
        return self.outcome is not Outcome.IN_PROGRESS

    @property
    def winning_line(self) -> Optional[Tuple[int, int, int]]:
        winner = self.winner
        return winning_line(self.cells, winner) if winner else None

    def snapshot(self) -> List[str]:
        return self.cells.copy()

    def available_moves(self) -> List[int]:
        if self.is_over:
            return []
        return empty_cells(self.cells)

    # ---- mutations ----

    def apply_move(self, index: int, player: Player) -> Outcome:
        """Place ``player`` at ``index`` and return the resulting outcome."""
        if self.is_over:
            raise InvalidMove("Game already finished")
        if not 0 <= index <= 8:
            raise InvalidMove(f"Cell index {index} is out of range")
        if player != self.current_player:
            raise InvalidMove(f"It is not {player}'s turn")
        if self.cells[index] != EMPTY:
            raise InvalidMove("Cell already occupied")

        self.cells[index] = player
        outcome = self.outcome
        if outcome is Outcome.WIN:
            self.stats.record_win(1 if player == self.player_symbol else 2)
        elif outcome is Outcome.DRAW:
            self.stats.record_draw()
        else:
            self.current_player = other_player(player)
        return outcome

    def choose_symbol(self, player: Player) -> None:
        """Make ``player`` side 1 and start a fresh game with it to move."""
        other_player(player)
        self.player_symbol = player
        self.reset_game()

    def reset_game(self) -> None:
        self.cells = [EMPTY] * 9
        self.current_player = self.player_symbol

    def reset_match(self) -> None:
        self.stats.reset()
        self.reset_game()
