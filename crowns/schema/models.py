"""
Wire Models - Pydantic models for every shape that crosses a boundary.

Shapes:
- GameSnapshot: persisted game in progress
- ExportEnvelope: versioned export file wrapping an ExportedGame
- GameRecord: one completed game in the history log

Field names are snake_case in Python and camelCase on the wire
(`current_round` <-> `currentRound`). Dump with `by_alias=True`.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, model_validator
from pydantic.alias_generators import to_camel

from ..rules import MAX_ROUNDS, ROUND_CARDS

EXPORT_VERSION = "1.0"

ScoreValue = Optional[Union[StrictInt, StrictFloat]]


def iso_timestamp(moment: datetime | None = None) -> str:
    """UTC ISO-8601 with millisecond precision, e.g. 2026-01-31T14:30:00.000Z"""
    moment = moment or datetime.now(tz=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WireModel(BaseModel):
    """Base for camelCase wire models."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# Game snapshots
# =============================================================================

class GameSnapshot(WireModel):
    """Minimal game state, as persisted between loads."""
    players: list[str]
    scores: list[list[ScoreValue]]
    current_round: int


class ExportedGame(GameSnapshot):
    """Game state as written into an export file."""
    max_rounds: int = MAX_ROUNDS
    round_cards: list[int] = Field(default_factory=lambda: list(ROUND_CARDS))


class ExportEnvelope(WireModel):
    """Versioned export file."""
    version: str = EXPORT_VERSION
    export_date: Optional[str] = None
    game: ExportedGame


# =============================================================================
# History records
# =============================================================================

class WinnerInfo(WireModel):
    name: str
    score: Union[StrictInt, StrictFloat]
    index: int


class GameRecord(WireModel):
    """
    A completed game. Never mutated once created.

    `total_rounds` counts the scored cells in the first player's row,
    which assumes every row was filled in lockstep.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    date: str = ""
    players: list[str]
    scores: list[list[ScoreValue]]
    winner: WinnerInfo
    total_rounds: int = 0
    timestamp: int

    @model_validator(mode="before")
    @classmethod
    def fill_identity(cls, data: Any) -> Any:
        """Older exports may carry only one of id/timestamp."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("id") is None and data.get("timestamp") is not None:
            data["id"] = data["timestamp"]
        if data.get("timestamp") is None and data.get("id") is not None:
            data["timestamp"] = data["id"]
        if data.get("id") is None:
            data["id"] = 0
            data["timestamp"] = 0
        if data.get("totalRounds") is None and data.get("total_rounds") is None:
            scores = data.get("scores")
            if isinstance(scores, list) and scores and isinstance(scores[0], list):
                data["totalRounds"] = sum(1 for s in scores[0] if s is not None)
        return data
