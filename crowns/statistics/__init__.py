"""Completed-game history and derived statistics."""

from .engine import StatisticsEngine
from .models import OverallStats, PlayerStats

__all__ = [
    "StatisticsEngine",
    "OverallStats",
    "PlayerStats",
]
