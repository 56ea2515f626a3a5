"""
Game Engine - Applies player and round operations to the live Game.

The engine is the single point of mutation for a Game:
- Validates before mutating; a failed call leaves the state untouched
- Persists the snapshot after every state change
- Storage failures are recorded on `storage_error` and logged, never raised

Lifecycle:
    setup (add/remove players) -> start_new_game -> submit_round x 11 -> complete
    undo_last_round steps back one round, including out of the complete state
"""

from __future__ import annotations
import json
import logging
from typing import Sequence

from ..errors import StateError, StorageError, ValidationError
from ..persistence import PersistenceStore, Slot
from ..schema import EXPORT_VERSION, iso_timestamp, parse_json, validate_envelope, validate_snapshot
from .state import (
    MAX_ROUNDS,
    MIN_PLAYERS,
    ROUND_CARDS,
    Game,
    RoundInfo,
    Score,
    Winner,
    empty_scores,
    is_score,
    player_total,
    select_winner,
)

logger = logging.getLogger(__name__)


class GameEngine:
    """
    Owns one live Game and its persisted snapshot.

    Usage:
        engine = GameEngine(store=MemoryStore())
        engine.add_player("Alice")
        engine.add_player("Bob")
        engine.start_new_game()
        complete = engine.submit_round([10, 15])
    """

    max_rounds = MAX_ROUNDS
    round_cards = ROUND_CARDS

    def __init__(self, store: PersistenceStore, game: Game | None = None):
        self.store = store
        self.game = game or Game()
        self.storage_error: StorageError | None = None

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def players(self) -> list[str]:
        return self.game.players

    @property
    def scores(self) -> list[list[Score]]:
        return self.game.scores

    @property
    def current_round(self) -> int:
        return self.game.current_round

    @property
    def is_started(self) -> bool:
        return self.game.is_started

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def add_player(self, name: str) -> bool:
        """
        Add a player during setup.

        Raises:
            ValidationError: name is empty after trimming, or already taken
            StateError: scoring has started
        """
        if self.game.is_started:
            raise StateError("Cannot add players after the game has started")

        trimmed = name.strip()
        if not trimmed:
            raise ValidationError("Player name cannot be empty")
        if trimmed in self.game.players:
            raise ValidationError("Player already exists")

        self.game.players.append(trimmed)
        return True

    def remove_player(self, index: int):
        """Remove a player during setup. Out-of-range indexes are ignored."""
        if self.game.is_started:
            raise StateError("Cannot remove players after the game has started")

        if 0 <= index < len(self.game.players):
            removed = self.game.players.pop(index)
            logger.debug("Removed player %s", removed)

    def start_new_game(self, player_names: Sequence[str] | None = None):
        """
        Start a game with the given roster (defaults to the setup roster).

        Allocates a players x MAX_ROUNDS matrix of unscored cells
        and resets the round counter.
        """
        names = list(self.game.players if player_names is None else player_names)
        if len(names) < MIN_PLAYERS:
            raise ValidationError(f"At least {MIN_PLAYERS} players required")

        errors = []
        trimmed: list[str] = []
        for index, name in enumerate(names):
            clean = name.strip()
            if not clean:
                errors.append(f"players.{index}: name cannot be empty")
            elif clean in trimmed:
                errors.append(f"players.{index}: duplicate player '{clean}'")
            trimmed.append(clean)
        if errors:
            raise ValidationError(errors)

        self.game = Game(players=trimmed, scores=empty_scores(len(trimmed)), current_round=1)
        logger.info("Started game with %d players", len(trimmed))
        self.save_state()

    # -------------------------------------------------------------------------
    # Rounds
    # -------------------------------------------------------------------------

    def submit_round(self, round_scores: Sequence[Score]) -> bool:
        """
        Record one score per player for the current round.

        Values are stored as given; negative or fractional scores are
        allowed for house-rule variants. Anything other than a number
        or None is rejected before the game changes.

        Returns:
            True if this was the final round
        """
        if self.game.is_complete:
            raise StateError("Game is already complete")
        if not self.game.is_started:
            raise StateError("Game has not started")

        round_scores = list(round_scores)
        if len(round_scores) != len(self.game.players):
            raise ValidationError("Score count must match player count")
        bad = [
            f"scores.{index}: must be a number or null, got {score!r}"
            for index, score in enumerate(round_scores)
            if not is_score(score)
        ]
        if bad:
            raise ValidationError(bad)

        column = self.game.current_round - 1
        for index, score in enumerate(round_scores):
            self.game.scores[index][column] = score

        self.game.current_round += 1
        logger.debug("Recorded round %d: %s", column + 1, round_scores)
        self.save_state()

        if self.game.is_complete:
            logger.info("Game complete, winner: %s", self.get_winner())
        return self.game.is_complete

    def undo_last_round(self):
        """Clear the most recently submitted round and step back to it."""
        if self.game.current_round == 1:
            raise StateError("No rounds to undo")

        self.game.current_round -= 1
        column = self.game.current_round - 1
        for row in self.game.scores:
            row[column] = None

        logger.debug("Undid round %d", column + 1)
        self.save_state()

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    def get_current_round_info(self) -> RoundInfo:
        """Round number and cards dealt; cards is None once complete."""
        current = self.game.current_round
        cards = ROUND_CARDS[current - 1] if current <= MAX_ROUNDS else None
        return RoundInfo(round=current, cards=cards, max_rounds=MAX_ROUNDS)

    def get_player_total(self, index: int) -> int | float:
        """Sum of a player's recorded scores."""
        if not 0 <= index < len(self.game.players):
            raise IndexError(f"No player at index {index}")
        if not self.game.is_started:
            return 0
        return player_total(self.game.scores[index])

    def get_all_totals(self) -> list[int | float]:
        return [self.get_player_total(i) for i in range(len(self.game.players))]

    def get_score(self, index: int, round_number: int) -> Score:
        """Score for a player in a 1-based round."""
        if not 1 <= round_number <= MAX_ROUNDS:
            raise IndexError(f"Round must be between 1 and {MAX_ROUNDS}")
        return self.game.scores[index][round_number - 1]

    def get_winner(self) -> Winner | None:
        """Lowest total once the game is complete; first seat wins ties."""
        if not self.game.is_complete:
            return None
        return select_winner(self.game.players, self.game.scores)

    def is_game_complete(self) -> bool:
        return self.game.is_complete

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    def export_state(self) -> dict:
        """Plain snapshot including the fixed round structure."""
        state = self.game.snapshot()
        state["maxRounds"] = MAX_ROUNDS
        state["roundCards"] = list(ROUND_CARDS)
        return state

    def export_envelope(self) -> dict:
        return {
            "version": EXPORT_VERSION,
            "exportDate": iso_timestamp(),
            "game": self.export_state(),
        }

    def export_json(self) -> str:
        """Versioned export file contents."""
        return json.dumps(self.export_envelope(), indent=2)

    def import_from_json(self, text: str | bytes):
        """
        Replace the live game with an exported one.

        Raises ValidationError listing every problem with the payload;
        the current game is left untouched in that case.
        """
        envelope = validate_envelope(parse_json(text))
        imported = envelope.game

        self.game = Game(
            players=list(imported.players),
            scores=[list(row) for row in imported.scores],
            current_round=imported.current_round,
        )
        logger.info(
            "Imported game with %d players at round %d",
            len(self.game.players), self.game.current_round,
        )
        self.save_state()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save_state(self) -> bool:
        """Persist the snapshot. Failure is recorded, not raised."""
        ok = self.store.save(Slot.CURRENT_GAME, self.game.snapshot())
        self._record_storage(ok)
        return ok

    def load_state(self) -> bool:
        """
        Restore the persisted snapshot.

        Returns False when nothing usable is stored; a snapshot that
        fails validation is treated the same as a missing one.
        """
        data = self.store.load(Slot.CURRENT_GAME)
        if data is None:
            return False
        try:
            snapshot = validate_snapshot(data)
        except ValidationError as e:
            logger.warning("Ignoring invalid saved game: %s", "; ".join(e.errors))
            return False

        self.game = Game(
            players=list(snapshot.players),
            scores=[list(row) for row in snapshot.scores],
            current_round=snapshot.current_round,
        )
        return True

    def has_saved_game(self) -> bool:
        return self.store.exists(Slot.CURRENT_GAME)

    def reset(self):
        """Discard the current game and its saved snapshot."""
        self.game = Game()
        ok = self.store.clear(Slot.CURRENT_GAME)
        self._record_storage(ok)
        logger.info("Game reset")

    def _record_storage(self, ok: bool):
        if ok:
            self.storage_error = None
        else:
            self.storage_error = StorageError(Slot.CURRENT_GAME.value)
            logger.warning("Game state not persisted; continuing in memory")
