"""
Statistics Models - Aggregates derived from the game history.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class PlayerStats:
    """
    One player's record across every stored game they appear in.

    win_rate is a percentage and, like avg_score, rounded to one decimal.
    Lower scores are better, so best_score is the minimum total.
    """
    player_name: str
    total_games: int
    wins: int
    losses: int
    win_rate: float
    avg_score: float
    best_score: int | float
    worst_score: int | float

    def to_dict(self) -> dict:
        return {
            "playerName": self.player_name,
            "totalGames": self.total_games,
            "wins": self.wins,
            "losses": self.losses,
            "winRate": self.win_rate,
            "avgScore": self.avg_score,
            "bestScore": self.best_score,
            "worstScore": self.worst_score,
        }


@dataclass(frozen=True)
class OverallStats:
    """Summary across the whole history."""
    total_games: int
    unique_players: int
    best_player: str
    best_win_rate: float
    avg_game_score: float  # Mean over games of (sum of totals / player count)

    def to_dict(self) -> dict:
        return {
            "totalGames": self.total_games,
            "uniquePlayers": self.unique_players,
            "bestPlayer": self.best_player,
            "bestWinRate": self.best_win_rate,
            "avgGameScore": self.avg_game_score,
        }
