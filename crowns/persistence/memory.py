"""
In-memory store - values are serialized to JSON text and kept in a dict.

Serializing on save keeps the same failure modes as the file store
(unserializable values fail the write) and hands out fresh copies on load.
"""

from __future__ import annotations
import json
import logging
from typing import Any

from .port import Slot

logger = logging.getLogger(__name__)


class MemoryStore:
    """Process-local PersistenceStore."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def save(self, slot: Slot, value: Any) -> bool:
        try:
            self._data[Slot(slot).value] = json.dumps(value)
        except (TypeError, ValueError):
            logger.warning("Failed to save slot %s", Slot(slot).value, exc_info=True)
            return False
        return True

    def load(self, slot: Slot) -> Any | None:
        raw = self._data.get(Slot(slot).value)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable data in slot %s", Slot(slot).value)
            return None

    def clear(self, slot: Slot) -> bool:
        self._data.pop(Slot(slot).value, None)
        return True

    def exists(self, slot: Slot) -> bool:
        return Slot(slot).value in self._data
