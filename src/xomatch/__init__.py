"""xomatch package exposing game logic, AI helpers, and the web application."""

from .ai import Difficulty, MinimaxAI
from .game import TicTacToeGame
from .ui import app

__all__ = ["Difficulty", "MinimaxAI", "TicTacToeGame", "app"]
