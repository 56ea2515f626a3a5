"""
Persistence Port - Key-value storage consumed by the engines.

The engines never touch storage directly. They hold a PersistenceStore
and read/write plain JSON-compatible values under named slots.

Contract:
- save() returns success and never raises
- load() returns None for a missing slot or unreadable stored data
- the store has no knowledge of what the values mean
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Protocol


class Slot(str, Enum):
    """Named storage slots."""
    CURRENT_GAME = "fiveCrownsGame"
    HISTORY = "fiveCrownsHistory"
    THEME = "fiveCrownsTheme"  # Display preference, owned by the front end


class PersistenceStore(Protocol):
    """Protocol for slot-keyed persistence."""

    def save(self, slot: Slot, value: Any) -> bool: ...

    def load(self, slot: Slot) -> Any | None: ...

    def clear(self, slot: Slot) -> bool: ...

    def exists(self, slot: Slot) -> bool: ...
