"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a front end and the scorekeeper.

Error Codes:
- VALIDATION_ERROR: Input violates a precondition (details.errors lists every problem)
- INVALID_STATE: Operation not allowed right now (e.g. undo at round 1)
- SESSION_NOT_FOUND: Session does not exist or has been ended
- GAME_NOT_FOUND: No history record with that id
- PLAYER_NOT_FOUND: Player never appears in the history
- INVALID_HISTORY: History import payload was rejected
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_STATE = "INVALID_STATE"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    INVALID_HISTORY = "INVALID_HISTORY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    session_id: Optional[str] = Field(None, description="Reuse an id to restore its saved game")


class AddPlayerRequest(BaseModel):
    name: str


class StartGameRequest(BaseModel):
    players: Optional[list[str]] = Field(
        None, description="Roster in seating order; defaults to the players added so far"
    )


class SubmitRoundRequest(BaseModel):
    scores: list[Optional[Union[StrictInt, StrictFloat]]] = Field(
        ..., description="One score per player, in seating order"
    )


class ThemeRequest(BaseModel):
    theme: Theme


# =============================================================================
# Shared Models
# =============================================================================

class RoundInfo(BaseModel):
    round: int
    cards: Optional[int] = Field(None, description="Cards dealt this round; null once complete")
    max_rounds: int = 11

    model_config = {"from_attributes": True}


class WinnerInfo(BaseModel):
    name: str
    score: Union[int, float]
    index: int

    model_config = {"from_attributes": True}


class PlayerInfo(BaseModel):
    """A player's row on the scoresheet."""
    index: int
    name: str
    total: Union[int, float] = 0
    scores: list[Optional[Union[int, float]]] = Field(default_factory=list)


class PlayerStatsInfo(BaseModel):
    player_name: str
    total_games: int
    wins: int
    losses: int
    win_rate: float = Field(..., description="Percentage, one decimal")
    avg_score: float
    best_score: Union[int, float]
    worst_score: Union[int, float]

    model_config = {"from_attributes": True}


class OverallStatsInfo(BaseModel):
    total_games: int
    unique_players: int
    best_player: str
    best_win_rate: float
    avg_game_score: float

    model_config = {"from_attributes": True}


class HistoryRecordInfo(BaseModel):
    id: int
    date: str
    players: list[str]
    scores: list[list[Optional[Union[int, float]]]]
    winner: WinnerInfo
    total_rounds: int
    timestamp: int

    model_config = {"from_attributes": True}


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    """Complete scoresheet for display."""
    session_id: str
    players: list[PlayerInfo] = Field(default_factory=list)
    started: bool = False
    complete: bool = False
    current_round: RoundInfo
    winner: Optional[WinnerInfo] = None
    recorded_game_id: Optional[int] = Field(
        None, description="History id once the completed game has been recorded"
    )
    warnings: list[str] = Field(default_factory=list, description="Non-fatal storage problems")
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    sessions: list[str]
    count: int
    api_version: str = "v1"


class EndSessionResponse(BaseModel):
    success: bool
    session_id: str
    api_version: str = "v1"


class HistoryResponse(BaseModel):
    games: list[HistoryRecordInfo] = Field(default_factory=list)
    count: int = 0
    api_version: str = "v1"


class DeleteGameResponse(BaseModel):
    success: bool
    game_id: int
    warnings: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class ImportHistoryResponse(BaseModel):
    success: bool
    total_games: int
    warnings: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class PlayersResponse(BaseModel):
    players: list[str]
    api_version: str = "v1"


class ThemeResponse(BaseModel):
    theme: Optional[Theme] = None
    api_version: str = "v1"
