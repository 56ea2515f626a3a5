"""
Application Context - Explicit owner of one game and the shared history.

Instead of page-wide singletons, every transport operation receives an
AppContext. It wires the data flow between the engines:

    submit_round -> game complete -> statistics.save_game(snapshot)

so front ends never have to remember to record a finished game.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..engine_core import GameEngine
from ..engine_core.state import Score
from ..errors import StorageError
from ..persistence import MemoryStore, PersistenceStore
from ..schema import GameRecord
from ..statistics import StatisticsEngine

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """
    One game plus the history it reports into.

    `recorded_game_id` is the history id of the current game once it
    has completed. Undoing the final round withdraws that record, so a
    corrected final round is recorded again instead of twice.
    """
    game: GameEngine
    statistics: StatisticsEngine
    recorded_game_id: int | None = field(default=None)

    @classmethod
    def create(
        cls,
        game_store: PersistenceStore | None = None,
        statistics: StatisticsEngine | None = None,
    ) -> AppContext:
        """Build a context; missing collaborators default to in-memory ones."""
        game_store = game_store or MemoryStore()
        statistics = statistics or StatisticsEngine(store=game_store)
        return cls(game=GameEngine(store=game_store), statistics=statistics)

    def submit_round(self, round_scores: Sequence[Score]) -> bool:
        """Submit a round; record the game in history when it completes."""
        complete = self.game.submit_round(round_scores)
        if complete:
            record = self.statistics.save_game(self.game.export_state())
            self.recorded_game_id = record.id
        return complete

    def undo_last_round(self):
        was_complete = self.game.is_game_complete()
        self.game.undo_last_round()
        if was_complete and self.recorded_game_id is not None:
            self.statistics.delete_game(self.recorded_game_id)
            logger.info("Withdrew game %d from history after undo", self.recorded_game_id)
            self.recorded_game_id = None

    def start_new_game(self, player_names: Sequence[str] | None = None):
        self.game.start_new_game(player_names)
        self.recorded_game_id = None

    def import_game(self, text: str | bytes):
        self.game.import_from_json(text)
        self.recorded_game_id = None

    def reset(self):
        self.game.reset()
        self.recorded_game_id = None

    @property
    def last_recorded(self) -> GameRecord | None:
        if self.recorded_game_id is None:
            return None
        return self.statistics.get_game(self.recorded_game_id)

    def storage_warnings(self) -> list[str]:
        """Non-fatal persistence failures from the most recent writes."""
        errors: list[StorageError | None] = [
            self.game.storage_error,
            self.statistics.storage_error,
        ]
        return [str(e) for e in errors if e is not None]
