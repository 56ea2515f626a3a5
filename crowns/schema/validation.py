"""
Boundary Validation - Turns untrusted payloads into typed models.

Validates that:
1. The payload is well-formed JSON with the expected structure
2. Field types match the wire models
3. The roster has at least two distinct, non-empty names
4. The score matrix agrees with the roster and with currentRound

Every violation is collected and raised together as one ValidationError,
so callers can show the full list instead of fixing one field at a time.
"""

from __future__ import annotations
import json
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..rules import MAX_ROUNDS, MIN_PLAYERS, ROUND_CARDS
from .models import EXPORT_VERSION, ExportEnvelope, GameRecord, GameSnapshot

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_json(text: str | bytes) -> Any:
    """Decode JSON text, raising ValidationError when malformed."""
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Malformed JSON: {e}") from e


def validate_snapshot(data: Any) -> GameSnapshot:
    """Validate a persisted {players, scores, currentRound} snapshot."""
    snapshot = _build(GameSnapshot, data)
    errors = check_consistency(snapshot)
    if errors:
        raise ValidationError(errors)
    return snapshot


def validate_envelope(data: Any) -> ExportEnvelope:
    """
    Validate an export envelope.

    Raises ValidationError if the payload is not an object, has no
    `game` key, fails the wire model, or describes an inconsistent game.
    """
    if not isinstance(data, dict):
        raise ValidationError("Import data must be a JSON object")
    if "game" not in data:
        raise ValidationError("Invalid import data: missing 'game'")

    envelope = _build(ExportEnvelope, data)

    errors: list[str] = []
    if envelope.version != EXPORT_VERSION:
        errors.append(f"version: unsupported export version '{envelope.version}'")
    if envelope.game.max_rounds != MAX_ROUNDS:
        errors.append(f"game.maxRounds: expected {MAX_ROUNDS}, got {envelope.game.max_rounds}")
    if list(envelope.game.round_cards) != list(ROUND_CARDS):
        errors.append("game.roundCards: does not match the Five Crowns deal")
    errors.extend(f"game.{e}" for e in check_consistency(envelope.game))

    if errors:
        raise ValidationError(errors)
    return envelope


def check_consistency(snapshot: GameSnapshot) -> list[str]:
    """
    Cross-check roster, score matrix and current round.

    Rules:
    - at least MIN_PLAYERS players, names non-empty and unique
    - one row of MAX_ROUNDS cells per player
    - 1 <= currentRound <= MAX_ROUNDS + 1
    - no scores recorded for the current round or later

    Unscored cells inside played rounds are tolerated; they total zero.
    """
    errors: list[str] = []
    players = snapshot.players

    if len(players) < MIN_PLAYERS:
        errors.append(f"players: at least {MIN_PLAYERS} players required")

    seen: set[str] = set()
    for index, name in enumerate(players):
        if not name.strip():
            errors.append(f"players.{index}: name cannot be empty")
        elif name in seen:
            errors.append(f"players.{index}: duplicate player '{name}'")
        seen.add(name)

    if len(snapshot.scores) != len(players):
        errors.append(
            f"scores: expected {len(players)} rows, got {len(snapshot.scores)}"
        )

    round_ok = 1 <= snapshot.current_round <= MAX_ROUNDS + 1
    if not round_ok:
        errors.append(
            f"currentRound: must be between 1 and {MAX_ROUNDS + 1}, got {snapshot.current_round}"
        )

    for index, row in enumerate(snapshot.scores):
        if len(row) != MAX_ROUNDS:
            errors.append(f"scores.{index}: expected {MAX_ROUNDS} rounds, got {len(row)}")
            continue
        if not round_ok:
            continue
        ahead = [
            r + 1 for r in range(snapshot.current_round - 1, MAX_ROUNDS)
            if row[r] is not None
        ]
        if ahead:
            errors.append(
                f"scores.{index}: rounds {ahead} are scored but currentRound is {snapshot.current_round}"
            )

    return errors


def validate_record(data: Any) -> GameRecord:
    """Validate one history record; players, scores and winner are required."""
    if not isinstance(data, dict):
        raise ValidationError("Invalid game record: not an object")
    missing = [key for key in ("players", "scores", "winner") if data.get(key) is None]
    if missing:
        raise ValidationError([f"{key}: field required" for key in missing])
    return _build(GameRecord, data)


def validate_history(data: Any) -> list[GameRecord]:
    """Validate a whole history payload (a JSON array of records)."""
    if not isinstance(data, list):
        raise ValidationError("Invalid history format: expected a list of games")

    records: list[GameRecord] = []
    errors: list[str] = []
    for position, item in enumerate(data):
        try:
            records.append(validate_record(item))
        except ValidationError as e:
            errors.extend(f"[{position}] {msg}" for msg in e.errors)

    if errors:
        raise ValidationError(errors)
    return records


def _build(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_format_errors(e)) from e


def _format_errors(exc: PydanticValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return messages
