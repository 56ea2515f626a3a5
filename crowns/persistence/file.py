"""
JSON File Store - One JSON file per slot under a data directory.

Layout:
    <data_dir>/fiveCrownsGame.json
    <data_dir>/fiveCrownsHistory.json
    <data_dir>/fiveCrownsTheme.json

Writes go through a temp file that is renamed over the target, so a crash
mid-write leaves the previous value in place.
"""

from __future__ import annotations
import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .port import Slot

logger = logging.getLogger(__name__)


class JsonFileStore:
    """
    File-backed PersistenceStore.

    Usage:
        store = JsonFileStore("~/.five-crowns")
        store.save(Slot.CURRENT_GAME, snapshot)
        snapshot = store.load(Slot.CURRENT_GAME)
    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir).expanduser()

    def save(self, slot: Slot, value: Any) -> bool:
        """Serialize value and atomically replace the slot file."""
        path = self._get_path(slot)
        try:
            content = json.dumps(value)
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.data_dir), suffix=".tmp", prefix=".slot_")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                Path(tmp_path).replace(path)
            except BaseException:
                with contextlib.suppress(OSError):
                    Path(tmp_path).unlink()
                raise
        except (OSError, TypeError, ValueError):
            logger.warning("Failed to save slot %s to %s", Slot(slot).value, path, exc_info=True)
            return False
        return True

    def load(self, slot: Slot) -> Any | None:
        """Read the slot; missing or unreadable files load as None."""
        path = self._get_path(slot)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError):
            logger.warning("Failed to load slot %s from %s", Slot(slot).value, path)
            return None

    def clear(self, slot: Slot) -> bool:
        try:
            self._get_path(slot).unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to clear slot %s", Slot(slot).value, exc_info=True)
            return False
        return True

    def exists(self, slot: Slot) -> bool:
        return self._get_path(slot).exists()

    def _get_path(self, slot: Slot) -> Path:
        return self.data_dir / f"{Slot(slot).value}.json"
