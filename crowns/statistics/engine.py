"""
Statistics Engine - Bounded history of completed games.

The log:
- Is ordered most-recent-first
- Never holds more than MAX_HISTORY records; the oldest are dropped
- Holds immutable records; games are only added, deleted or cleared

Winners are recomputed from each snapshot's raw scores rather than
trusted from the caller, using the same lowest-total, first-seat rule
as the game engine.
"""

from __future__ import annotations
import json
import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable

from ..engine_core.state import player_total, select_winner
from ..errors import StorageError, ValidationError
from ..persistence import PersistenceStore, Slot
from ..rules import MAX_HISTORY
from ..schema import (
    GameRecord,
    GameSnapshot,
    WinnerInfo,
    iso_timestamp,
    parse_json,
    validate_history,
    validate_record,
    validate_snapshot,
)
from .models import OverallStats, PlayerStats

logger = logging.getLogger(__name__)


def round_half_up(value: float, places: int = 1) -> float:
    """Round to `places` decimals with halves going up (12.25 -> 12.3)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class StatisticsEngine:
    """
    Owns the completed-game log and computes statistics from it.

    Usage:
        stats = StatisticsEngine(store=JsonFileStore(data_dir))
        record = stats.save_game(engine.export_state())
        stats.get_player_stats("Alice")
    """

    def __init__(
        self,
        store: PersistenceStore,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self._clock = clock
        self.storage_error: StorageError | None = None
        self.last_import_errors: list[str] = []
        self.history: list[GameRecord] = self._load_history()

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def save_game(self, snapshot: dict[str, Any] | GameSnapshot) -> GameRecord:
        """
        Append a completed game to the front of the log.

        Args:
            snapshot: Game snapshot ({players, scores, currentRound, ...})

        Returns:
            The created record
        """
        if isinstance(snapshot, GameSnapshot):
            snapshot = snapshot.to_wire()
        game = validate_snapshot(snapshot)

        winner = select_winner(game.players, game.scores)
        record_id = self._next_id()
        record = GameRecord(
            id=record_id,
            date=iso_timestamp(),
            players=list(game.players),
            scores=[list(row) for row in game.scores],
            winner=WinnerInfo(name=winner.name, score=winner.score, index=winner.index),
            total_rounds=sum(1 for s in game.scores[0] if s is not None),
            timestamp=record_id,
        )

        self.history.insert(0, record)
        del self.history[MAX_HISTORY:]
        logger.info("Recorded game %d won by %s (%s)", record.id, winner.name, winner.score)
        self._save_history()
        return record

    def delete_game(self, game_id: int) -> bool:
        """Remove one record. Returns False if no record had that id."""
        remaining = [game for game in self.history if game.id != game_id]
        if len(remaining) == len(self.history):
            return False
        self.history = remaining
        self._save_history()
        return True

    def clear_history(self):
        self.history = []
        logger.info("History cleared")
        self._save_history()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_history(self) -> list[GameRecord]:
        return list(self.history)

    def get_recent_games(self, limit: int = 10) -> list[GameRecord]:
        return self.history[:max(limit, 0)]

    def get_game(self, game_id: int) -> GameRecord | None:
        for game in self.history:
            if game.id == game_id:
                return game
        return None

    def get_player_stats(self, player_name: str) -> PlayerStats | None:
        """Stats for every stored game the named player took part in."""
        games = [game for game in self.history if player_name in game.players]
        if not games:
            return None

        total_games = len(games)
        wins = sum(1 for game in games if game.winner.name == player_name)

        totals = []
        for game in games:
            index = game.players.index(player_name)
            row = game.scores[index] if index < len(game.scores) else []
            totals.append(player_total(row))

        return PlayerStats(
            player_name=player_name,
            total_games=total_games,
            wins=wins,
            losses=total_games - wins,
            win_rate=round_half_up(wins / total_games * 100),
            avg_score=round_half_up(sum(totals) / total_games),
            best_score=min(totals),
            worst_score=max(totals),
        )

    def get_all_players(self) -> list[str]:
        """Distinct player names across the history, sorted."""
        return sorted({name for game in self.history for name in game.players})

    def get_overall_stats(self) -> OverallStats | None:
        """
        Summary of the whole log.

        The best player is the highest win rate; on a tie the name that
        sorts first keeps the title.
        """
        if not self.history:
            return None

        names = self.get_all_players()
        player_stats = [self.get_player_stats(name) for name in names]

        best = player_stats[0]
        for current in player_stats[1:]:
            if current.win_rate > best.win_rate:
                best = current

        game_averages = [
            sum(player_total(row) for row in game.scores) / len(game.players)
            for game in self.history
            if game.players
        ]
        avg_game_score = (
            round_half_up(sum(game_averages) / len(game_averages)) if game_averages else 0.0
        )

        return OverallStats(
            total_games=len(self.history),
            unique_players=len(names),
            best_player=best.player_name,
            best_win_rate=best.win_rate,
            avg_game_score=avg_game_score,
        )

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    def export_history(self) -> str:
        return json.dumps([game.to_wire() for game in self.history], indent=2)

    def import_history(self, text: str | bytes) -> bool:
        """
        Merge an exported history into the log.

        Records whose id is already present are skipped. Records exported
        without an id or timestamp each get a fresh id. The result is
        re-sorted newest first and trimmed to MAX_HISTORY.

        Returns:
            False (leaving the log unchanged) if the payload is malformed
        """
        try:
            data = parse_json(text)
            imported = validate_history(data)
        except ValidationError as e:
            self.last_import_errors = e.errors
            logger.warning("Failed to import history: %s", "; ".join(e.errors))
            return False

        self.last_import_errors = []
        known_ids = {game.id for game in self.history}
        new_games = []
        taken_ids = known_ids | {game.id for game in imported}
        fresh_id = self._next_id()
        for item, game in zip(data, imported):
            if item.get("id") is None and item.get("timestamp") is None:
                while fresh_id in taken_ids:
                    fresh_id += 1
                taken_ids.add(fresh_id)
                game = game.model_copy(update={"id": fresh_id})
            if game.id in known_ids:
                continue
            known_ids.add(game.id)
            new_games.append(game)

        merged = sorted(self.history + new_games, key=lambda g: g.timestamp, reverse=True)
        self.history = merged[:MAX_HISTORY]
        logger.info("Imported %d of %d games", len(new_games), len(imported))
        self._save_history()
        return True

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _next_id(self) -> int:
        """Epoch milliseconds, bumped past the newest stored id if needed."""
        now_ms = int(self._clock() * 1000)
        newest = max((game.id for game in self.history), default=0)
        return max(now_ms, newest + 1)

    def _load_history(self) -> list[GameRecord]:
        data = self.store.load(Slot.HISTORY)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring stored history: not a list")
            return []

        history = []
        for item in data:
            try:
                history.append(validate_record(item))
            except ValidationError as e:
                logger.warning("Skipping stored game record: %s", "; ".join(e.errors))
        return history[:MAX_HISTORY]

    def _save_history(self) -> bool:
        ok = self.store.save(Slot.HISTORY, [game.to_wire() for game in self.history])
        if ok:
            self.storage_error = None
        else:
            self.storage_error = StorageError(Slot.HISTORY.value)
            logger.warning("History not persisted; continuing in memory")
        return ok
