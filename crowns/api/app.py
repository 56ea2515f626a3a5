"""
FastAPI Application - REST API for scorekeeping front ends.

Endpoints:
    GET    /api/v1/health                          Liveness
    POST   /api/v1/sessions                        Create (or restore) a session
    GET    /api/v1/sessions                        List sessions
    GET    /api/v1/sessions/{id}                   Scoresheet
    DELETE /api/v1/sessions/{id}                   End session
    POST   /api/v1/sessions/{id}/players           Add player
    DELETE /api/v1/sessions/{id}/players/{index}   Remove player
    POST   /api/v1/sessions/{id}/start             Start game
    POST   /api/v1/sessions/{id}/rounds            Submit round
    DELETE /api/v1/sessions/{id}/rounds/last       Undo last round
    POST   /api/v1/sessions/{id}/reset             Reset game
    GET    /api/v1/sessions/{id}/export            Export file
    POST   /api/v1/sessions/{id}/import            Import file (raw JSON body)
    GET    /api/v1/history                         Recent games
    DELETE /api/v1/history                         Clear history
    DELETE /api/v1/history/{game_id}               Delete one game
    GET    /api/v1/history/export                  Export history
    POST   /api/v1/history/import                  Merge history (raw JSON body)
    GET    /api/v1/stats                           Overall statistics
    GET    /api/v1/stats/players                   Known players
    GET    /api/v1/stats/players/{name}            Player statistics
    GET    /api/v1/preferences/theme               Stored theme
    PUT    /api/v1/preferences/theme               Store theme

Import endpoints take the exported file contents as the raw request body,
so malformed JSON is reported as a VALIDATION_ERROR rather than a 422.
"""

import logging
from typing import Annotated, Any, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .. import __version__
from ..config import Settings, get_settings
from ..errors import StateError, ValidationError
from ..session import SessionManager
from .schemas import (
    AddPlayerRequest,
    CreateSessionRequest,
    DeleteGameResponse,
    EndSessionResponse,
    ErrorCode,
    ErrorResponse,
    GameStateResponse,
    HealthResponse,
    HistoryResponse,
    ImportHistoryResponse,
    OverallStatsInfo,
    PlayerStatsInfo,
    PlayersResponse,
    SessionListResponse,
    StartGameRequest,
    SubmitRoundRequest,
    ThemeRequest,
    ThemeResponse,
)
from .service import APIService, GameNotFound, HistoryImportError, PlayerNotFound, SessionNotFound

logger = logging.getLogger(__name__)


def create_app(service: APIService | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()
    api_service = service or APIService(session_manager=SessionManager.from_settings(settings))

    app = FastAPI(
        title="Five Crowns Scorekeeper API",
        description="Score tracking, history and statistics for Five Crowns.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = api_service
    logger.info("API ready with %s storage", settings.storage)

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return make_error_response(
            ErrorCode.VALIDATION_ERROR, str(exc), details={"errors": exc.errors}
        )

    @app.exception_handler(StateError)
    async def handle_state_error(request: Request, exc: StateError) -> JSONResponse:
        return make_error_response(ErrorCode.INVALID_STATE, str(exc), status_code=409)

    @app.exception_handler(SessionNotFound)
    async def handle_session_not_found(request: Request, exc: SessionNotFound) -> JSONResponse:
        return make_error_response(ErrorCode.SESSION_NOT_FOUND, str(exc), status_code=404)

    @app.exception_handler(GameNotFound)
    async def handle_game_not_found(request: Request, exc: GameNotFound) -> JSONResponse:
        return make_error_response(ErrorCode.GAME_NOT_FOUND, str(exc), status_code=404)

    @app.exception_handler(PlayerNotFound)
    async def handle_player_not_found(request: Request, exc: PlayerNotFound) -> JSONResponse:
        return make_error_response(ErrorCode.PLAYER_NOT_FOUND, str(exc), status_code=404)

    @app.exception_handler(HistoryImportError)
    async def handle_history_import(request: Request, exc: HistoryImportError) -> JSONResponse:
        return make_error_response(
            ErrorCode.INVALID_HISTORY, str(exc), details={"errors": exc.errors}
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return make_error_response(
            ErrorCode.INTERNAL_ERROR, "Internal server error", status_code=500
        )

    error_responses: dict[int | str, dict[str, Any]] = {
        400: {"model": ErrorResponse, "description": "Invalid input"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "Not allowed in the current game state"},
    }

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return api_service.health()

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=GameStateResponse,
        responses={400: error_responses[400]},
        tags=["Sessions"],
        summary="Create a session, restoring its saved game if the id is known",
    )
    async def create_session(request: Optional[CreateSessionRequest] = None) -> GameStateResponse:
        session_id = request.session_id if request else None
        return api_service.create_session(session_id)

    @app.get("/api/v1/sessions", response_model=SessionListResponse, tags=["Sessions"])
    async def list_sessions() -> SessionListResponse:
        return api_service.list_sessions()

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=GameStateResponse,
        responses={404: error_responses[404]},
        tags=["Sessions"],
        summary="Get the scoresheet",
    )
    async def get_game(session_id: str) -> GameStateResponse:
        return api_service.get_game(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(
        session_id: str,
        discard: Annotated[bool, Query(description="Also delete the saved game")] = False,
    ) -> EndSessionResponse:
        return api_service.end_session(session_id, discard=discard)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/players",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Add a player during setup",
    )
    async def add_player(session_id: str, request: AddPlayerRequest) -> GameStateResponse:
        return api_service.add_player(session_id, request.name)

    @app.delete(
        "/api/v1/sessions/{session_id}/players/{index}",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Remove a player during setup",
    )
    async def remove_player(session_id: str, index: int) -> GameStateResponse:
        return api_service.remove_player(session_id, index)

    @app.post(
        "/api/v1/sessions/{session_id}/start",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Start the game",
    )
    async def start_game(
        session_id: str, request: Optional[StartGameRequest] = None
    ) -> GameStateResponse:
        players = request.players if request else None
        return api_service.start_game(session_id, players)

    @app.post(
        "/api/v1/sessions/{session_id}/rounds",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Submit scores for the current round",
    )
    async def submit_round(session_id: str, request: SubmitRoundRequest) -> GameStateResponse:
        return api_service.submit_round(session_id, request.scores)

    @app.delete(
        "/api/v1/sessions/{session_id}/rounds/last",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Undo the most recent round",
    )
    async def undo_round(session_id: str) -> GameStateResponse:
        return api_service.undo_round(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=GameStateResponse,
        responses={404: error_responses[404]},
        tags=["Game"],
        summary="Discard the game and return to setup",
    )
    async def reset_game(session_id: str) -> GameStateResponse:
        return api_service.reset_game(session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/export",
        responses={404: error_responses[404]},
        tags=["Game"],
        summary="Download the game as a versioned export file",
    )
    async def export_game(session_id: str) -> JSONResponse:
        return JSONResponse(content=api_service.export_game(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/import",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Replace the game with an export file",
    )
    async def import_game(session_id: str, request: Request) -> GameStateResponse:
        payload = await request.body()
        return api_service.import_game(session_id, payload)

    # =========================================================================
    # History Endpoints
    # =========================================================================

    @app.get("/api/v1/history", response_model=HistoryResponse, tags=["History"])
    async def get_history(
        limit: Annotated[int, Query(ge=0, description="Most recent games to return")] = 10,
    ) -> HistoryResponse:
        return api_service.get_history(limit)

    @app.delete("/api/v1/history", response_model=HistoryResponse, tags=["History"])
    async def clear_history() -> HistoryResponse:
        return api_service.clear_history()

    @app.get("/api/v1/history/export", tags=["History"], summary="Download the history")
    async def export_history() -> Response:
        return Response(content=api_service.export_history(), media_type="application/json")

    @app.post(
        "/api/v1/history/import",
        response_model=ImportHistoryResponse,
        responses={400: error_responses[400]},
        tags=["History"],
        summary="Merge an exported history",
    )
    async def import_history(request: Request) -> ImportHistoryResponse:
        payload = await request.body()
        return api_service.import_history(payload)

    @app.delete(
        "/api/v1/history/{game_id}",
        response_model=DeleteGameResponse,
        responses={404: {"model": ErrorResponse, "description": "Game not found"}},
        tags=["History"],
    )
    async def delete_game(game_id: int) -> DeleteGameResponse:
        return api_service.delete_game(game_id)

    # =========================================================================
    # Statistics Endpoints
    # =========================================================================

    @app.get("/api/v1/stats", response_model=Optional[OverallStatsInfo], tags=["Statistics"])
    async def overall_stats() -> Optional[OverallStatsInfo]:
        return api_service.get_overall_stats()

    @app.get("/api/v1/stats/players", response_model=PlayersResponse, tags=["Statistics"])
    async def all_players() -> PlayersResponse:
        return api_service.get_all_players()

    @app.get(
        "/api/v1/stats/players/{name}",
        response_model=PlayerStatsInfo,
        responses={404: {"model": ErrorResponse, "description": "Player not found"}},
        tags=["Statistics"],
    )
    async def player_stats(name: str) -> PlayerStatsInfo:
        return api_service.get_player_stats(name)

    # =========================================================================
    # Preferences
    # =========================================================================

    @app.get("/api/v1/preferences/theme", response_model=ThemeResponse, tags=["Preferences"])
    async def get_theme() -> ThemeResponse:
        return api_service.get_theme()

    @app.put("/api/v1/preferences/theme", response_model=ThemeResponse, tags=["Preferences"])
    async def set_theme(request: ThemeRequest) -> ThemeResponse:
        return api_service.set_theme(request.theme)

    return app
