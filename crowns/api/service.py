"""
API Service - Business logic layer between the HTTP app and the engines.

The service:
1. Resolves sessions
2. Calls the AppContext / StatisticsEngine operations
3. Formats responses for the front end

Engine errors (ValidationError, StateError) propagate unchanged; the app
maps them to HTTP responses. This layer is framework-agnostic.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .. import __version__
from ..engine_core.state import Score
from ..persistence import Slot
from ..session import Session, SessionManager
from .schemas import (
    DeleteGameResponse,
    EndSessionResponse,
    GameStateResponse,
    HealthResponse,
    HistoryRecordInfo,
    HistoryResponse,
    ImportHistoryResponse,
    OverallStatsInfo,
    PlayerInfo,
    PlayerStatsInfo,
    PlayersResponse,
    RoundInfo,
    SessionListResponse,
    Theme,
    ThemeResponse,
    WinnerInfo,
)


class SessionNotFound(LookupError):
    """No active session with the requested id."""


class GameNotFound(LookupError):
    """No history record with the requested id."""


class PlayerNotFound(LookupError):
    """The player never appears in the history."""


class HistoryImportError(ValueError):
    """A history import payload was rejected."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Failed to import history")


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        game = service.create_session()
        service.add_player(game.session_id, "Alice")
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Sessions
    # =========================================================================

    def health(self) -> HealthResponse:
        return HealthResponse(version=__version__)

    def create_session(self, session_id: Optional[str] = None) -> GameStateResponse:
        session = self.session_manager.create_session(session_id)
        return self._game_response(session)

    def list_sessions(self) -> SessionListResponse:
        sessions = self.session_manager.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    def end_session(self, session_id: str, discard: bool = False) -> EndSessionResponse:
        success = self.session_manager.end_session(session_id, discard=discard)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game
    # =========================================================================

    def get_game(self, session_id: str) -> GameStateResponse:
        return self._game_response(self._get_session(session_id))

    def add_player(self, session_id: str, name: str) -> GameStateResponse:
        session = self._get_session(session_id)
        session.context.game.add_player(name)
        return self._game_response(session)

    def remove_player(self, session_id: str, index: int) -> GameStateResponse:
        session = self._get_session(session_id)
        session.context.game.remove_player(index)
        return self._game_response(session)

    def start_game(
        self, session_id: str, players: Optional[Sequence[str]] = None
    ) -> GameStateResponse:
        session = self._get_session(session_id)
        session.context.start_new_game(players)
        return self._game_response(session)

    def submit_round(self, session_id: str, scores: Sequence[Score]) -> GameStateResponse:
        session = self._get_session(session_id)
        session.context.submit_round(scores)
        return self._game_response(session)

    def undo_round(self, session_id: str) -> GameStateResponse:
        session = self._get_session(session_id)
        session.context.undo_last_round()
        return self._game_response(session)

    def reset_game(self, session_id: str) -> GameStateResponse:
        session = self._get_session(session_id)
        session.context.reset()
        return self._game_response(session)

    def export_game(self, session_id: str) -> dict[str, Any]:
        return self._get_session(session_id).context.game.export_envelope()

    def import_game(self, session_id: str, payload: str | bytes) -> GameStateResponse:
        session = self._get_session(session_id)
        session.context.import_game(payload)
        return self._game_response(session)

    # =========================================================================
    # History & statistics
    # =========================================================================

    def get_history(self, limit: int = 10) -> HistoryResponse:
        games = self.session_manager.statistics.get_recent_games(limit)
        return HistoryResponse(
            games=[HistoryRecordInfo.model_validate(g.model_dump()) for g in games],
            count=len(games),
        )

    def delete_game(self, game_id: int) -> DeleteGameResponse:
        statistics = self.session_manager.statistics
        if not statistics.delete_game(game_id):
            raise GameNotFound(f"Game {game_id} not found")
        return DeleteGameResponse(
            success=True, game_id=game_id, warnings=self._statistics_warnings()
        )

    def clear_history(self) -> HistoryResponse:
        self.session_manager.statistics.clear_history()
        return HistoryResponse()

    def export_history(self) -> str:
        return self.session_manager.statistics.export_history()

    def import_history(self, payload: str | bytes) -> ImportHistoryResponse:
        statistics = self.session_manager.statistics
        if not statistics.import_history(payload):
            raise HistoryImportError(statistics.last_import_errors)
        return ImportHistoryResponse(
            success=True,
            total_games=len(statistics.history),
            warnings=self._statistics_warnings(),
        )

    def get_overall_stats(self) -> Optional[OverallStatsInfo]:
        stats = self.session_manager.statistics.get_overall_stats()
        if stats is None:
            return None
        return OverallStatsInfo.model_validate(stats)

    def get_player_stats(self, name: str) -> PlayerStatsInfo:
        stats = self.session_manager.statistics.get_player_stats(name)
        if stats is None:
            raise PlayerNotFound(f"No games recorded for '{name}'")
        return PlayerStatsInfo.model_validate(stats)

    def get_all_players(self) -> PlayersResponse:
        return PlayersResponse(players=self.session_manager.statistics.get_all_players())

    # =========================================================================
    # Preferences
    # =========================================================================

    def get_theme(self) -> ThemeResponse:
        stored = self.session_manager.shared_store.load(Slot.THEME)
        theme = stored if isinstance(stored, str) and stored in {t.value for t in Theme} else None
        return ThemeResponse(theme=theme)

    def set_theme(self, theme: Theme) -> ThemeResponse:
        self.session_manager.shared_store.save(Slot.THEME, theme.value)
        return ThemeResponse(theme=theme)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_session(self, session_id: str) -> Session:
        session = self.session_manager.get_session(session_id)
        if session is None:
            raise SessionNotFound(f"Session {session_id} not found")
        return session

    def _statistics_warnings(self) -> list[str]:
        error = self.session_manager.statistics.storage_error
        return [str(error)] if error else []

    def _game_response(self, session: Session) -> GameStateResponse:
        context = session.context
        game = context.game
        round_info = game.get_current_round_info()
        winner = game.get_winner()

        players = [
            PlayerInfo(
                index=index,
                name=name,
                total=game.get_player_total(index),
                scores=list(game.scores[index]) if game.is_started else [],
            )
            for index, name in enumerate(game.players)
        ]

        return GameStateResponse(
            session_id=session.session_id,
            players=players,
            started=game.is_started,
            complete=game.is_game_complete(),
            current_round=RoundInfo.model_validate(round_info),
            winner=WinnerInfo.model_validate(winner) if winner else None,
            recorded_game_id=context.recorded_game_id,
            warnings=context.storage_warnings(),
        )
