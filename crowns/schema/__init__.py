"""Wire schemas and boundary validation."""

from .models import (
    EXPORT_VERSION,
    ExportEnvelope,
    ExportedGame,
    GameRecord,
    GameSnapshot,
    WinnerInfo,
    iso_timestamp,
)
from .validation import (
    check_consistency,
    parse_json,
    validate_envelope,
    validate_history,
    validate_record,
    validate_snapshot,
)

__all__ = [
    "EXPORT_VERSION",
    "ExportEnvelope",
    "ExportedGame",
    "GameRecord",
    "GameSnapshot",
    "WinnerInfo",
    "iso_timestamp",
    "check_consistency",
    "parse_json",
    "validate_envelope",
    "validate_history",
    "validate_record",
    "validate_snapshot",
]
