"""
API Module - HTTP interface for scorekeeping front ends.

The front end:
1. Creates (or restores) a session
2. Adds players and starts the game
3. Submits a round of scores at a time, undoing mistakes as needed
4. Reads history and statistics

Completed games are recorded in the shared history automatically.
"""

from .service import APIService, GameNotFound, HistoryImportError, PlayerNotFound, SessionNotFound
from .app import create_app

__all__ = [
    "APIService",
    "GameNotFound",
    "HistoryImportError",
    "PlayerNotFound",
    "SessionNotFound",
    "create_app",
]
