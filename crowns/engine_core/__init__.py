"""
Engine Core - Live game state and the rules that mutate it.

The engine:
1. Manages the roster during setup
2. Allocates the score matrix when the game starts
3. Records and undoes rounds
4. Computes totals and the winner
5. Persists its snapshot through the persistence port
"""

from .state import Game, RoundInfo, Winner, player_total, select_winner
from .game import GameEngine

__all__ = [
    "Game",
    "RoundInfo",
    "Winner",
    "player_total",
    "select_winner",
    "GameEngine",
]
