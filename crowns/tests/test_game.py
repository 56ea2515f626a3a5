"""
Tests for the game engine.

Tests:
- Roster management during setup
- Round submission, completion and undo
- Totals and winner selection
- Export/import and persistence
"""

import json

import pytest

from ..engine_core import GameEngine
from ..errors import StateError, StorageError, ValidationError
from ..persistence import Slot
from ..rules import MAX_ROUNDS, ROUND_CARDS
from .conftest import FailingStore


def play_rounds(engine, rounds):
    for scores in rounds:
        engine.submit_round(scores)


class TestSetup:
    """Tests for adding and removing players."""

    def test_initial_state(self, engine):
        """New engine is empty at round 1."""
        assert engine.players == []
        assert engine.scores == []
        assert engine.current_round == 1
        assert engine.max_rounds == 11
        assert list(engine.round_cards) == [3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13]

    def test_add_player_trims(self, engine):
        assert engine.add_player("  Alice  ") is True
        assert engine.players == ["Alice"]

    def test_add_player_rejects_empty(self, engine):
        with pytest.raises(ValidationError):
            engine.add_player("   ")
        assert engine.players == []

    def test_add_player_rejects_duplicate(self, engine):
        engine.add_player("Alice")
        with pytest.raises(ValidationError, match="already exists"):
            engine.add_player(" Alice ")

    def test_names_are_case_sensitive(self, engine):
        engine.add_player("alice")
        engine.add_player("Alice")
        assert engine.players == ["alice", "Alice"]

    def test_add_does_not_allocate_scores(self, engine):
        engine.add_player("Alice")
        assert engine.scores == []
        assert not engine.is_started

    def test_remove_player(self, engine):
        for name in ("Alice", "Bob", "Carol"):
            engine.add_player(name)
        engine.remove_player(1)
        assert engine.players == ["Alice", "Carol"]

    def test_remove_out_of_bounds_is_noop(self, engine):
        engine.add_player("Alice")
        engine.remove_player(5)
        engine.remove_player(-1)
        assert engine.players == ["Alice"]

    def test_roster_locked_after_start(self, two_player_engine):
        with pytest.raises(StateError):
            two_player_engine.remove_player(0)
        with pytest.raises(StateError):
            two_player_engine.add_player("Carol")
        assert two_player_engine.players == ["Alice", "Bob"]


class TestStartNewGame:
    """Tests for starting a game."""

    @pytest.mark.parametrize("names", [
        ["A", "B"],
        ["A", "B", "C"],
        ["A", "B", "C", "D", "E", "F", "G"],
    ])
    def test_allocates_empty_matrix(self, engine, names):
        engine.start_new_game(names)
        assert len(engine.scores) == len(names)
        for row in engine.scores:
            assert row == [None] * MAX_ROUNDS
        assert engine.current_round == 1

    def test_requires_two_players(self, engine):
        with pytest.raises(ValidationError):
            engine.start_new_game(["Solo"])
        assert not engine.is_started

    def test_uses_setup_roster_by_default(self, engine):
        engine.add_player("Alice")
        engine.add_player("Bob")
        engine.start_new_game()
        assert engine.players == ["Alice", "Bob"]

    def test_rejects_duplicate_names(self, engine):
        with pytest.raises(ValidationError) as exc:
            engine.start_new_game(["Alice", "Alice", " "])
        assert len(exc.value.errors) == 2

    def test_persists_snapshot(self, engine, store):
        engine.start_new_game(["Alice", "Bob"])
        saved = store.load(Slot.CURRENT_GAME)
        assert saved["players"] == ["Alice", "Bob"]
        assert saved["currentRound"] == 1
        assert saved["scores"] == [[None] * MAX_ROUNDS] * 2

    def test_restart_replaces_game(self, two_player_engine):
        two_player_engine.submit_round([5, 5])
        two_player_engine.start_new_game(["Carol", "Dave", "Eve"])
        assert two_player_engine.players == ["Carol", "Dave", "Eve"]
        assert two_player_engine.current_round == 1


class TestSubmitRound:
    """Tests for recording rounds."""

    def test_records_scores(self, two_player_engine):
        complete = two_player_engine.submit_round([10, 15])
        assert complete is False
        assert two_player_engine.get_score(0, 1) == 10
        assert two_player_engine.get_score(1, 1) == 15
        assert two_player_engine.current_round == 2

    def test_wrong_length_is_atomic(self, two_player_engine):
        with pytest.raises(ValidationError):
            two_player_engine.submit_round([10, 15, 20])
        assert two_player_engine.current_round == 1
        assert two_player_engine.scores == [[None] * MAX_ROUNDS] * 2

    def test_accepts_house_rule_values(self, two_player_engine):
        two_player_engine.submit_round([-5, 2.5])
        assert two_player_engine.get_player_total(0) == -5
        assert two_player_engine.get_player_total(1) == 2.5

    @pytest.mark.parametrize("bad", [True, "10", [1]])
    def test_rejects_non_numeric_scores(self, two_player_engine, store, bad):
        """Non-numbers are refused before anything is written or persisted."""
        two_player_engine.submit_round([1, 2])
        before = two_player_engine.export_state()
        saved = store.load(Slot.CURRENT_GAME)

        with pytest.raises(ValidationError) as exc:
            two_player_engine.submit_round([bad, 2])

        assert exc.value.errors[0].startswith("scores.0:")
        assert two_player_engine.export_state() == before
        assert store.load(Slot.CURRENT_GAME) == saved

    def test_accepts_unscored_cells(self, two_player_engine):
        two_player_engine.submit_round([None, 4])
        assert two_player_engine.get_score(0, 1) is None
        assert two_player_engine.current_round == 2

    def test_completes_only_after_eleventh_round(self, two_player_engine):
        for round_number in range(1, MAX_ROUNDS + 1):
            assert not two_player_engine.is_game_complete()
            complete = two_player_engine.submit_round([1, 2])
            assert complete is (round_number == MAX_ROUNDS)
        assert two_player_engine.is_game_complete()
        assert two_player_engine.current_round == MAX_ROUNDS + 1

    def test_rejects_submit_after_completion(self, two_player_engine):
        play_rounds(two_player_engine, [[0, 0]] * MAX_ROUNDS)
        with pytest.raises(StateError):
            two_player_engine.submit_round([1, 1])
        assert two_player_engine.current_round == MAX_ROUNDS + 1

    def test_rejects_submit_before_start(self, engine):
        engine.add_player("Alice")
        engine.add_player("Bob")
        with pytest.raises(StateError):
            engine.submit_round([1, 2])


class TestUndo:
    """Tests for undoing the last round."""

    def test_undo_at_round_one_fails(self, two_player_engine):
        with pytest.raises(StateError):
            two_player_engine.undo_last_round()

    def test_undo_clears_round(self, two_player_engine):
        two_player_engine.submit_round([10, 15])
        two_player_engine.submit_round([20, 25])
        two_player_engine.undo_last_round()
        assert two_player_engine.current_round == 2
        assert two_player_engine.get_score(0, 2) is None
        assert two_player_engine.get_score(1, 2) is None
        assert two_player_engine.get_score(0, 1) == 10

    def test_undo_then_resubmit_restores_state(self, two_player_engine):
        two_player_engine.submit_round([10, 15])
        two_player_engine.submit_round([20, 25])
        before = two_player_engine.export_state()

        two_player_engine.undo_last_round()
        two_player_engine.submit_round([20, 25])

        assert two_player_engine.export_state() == before

    def test_undo_from_completed_game(self, two_player_engine):
        play_rounds(two_player_engine, [[1, 2]] * MAX_ROUNDS)
        two_player_engine.undo_last_round()
        assert not two_player_engine.is_game_complete()
        assert two_player_engine.current_round == MAX_ROUNDS
        assert two_player_engine.get_score(0, MAX_ROUNDS) is None
        assert two_player_engine.get_winner() is None


class TestTotalsAndWinner:
    """Tests for derived values."""

    def test_total_ignores_unscored_cells(self, two_player_engine):
        two_player_engine.game.scores[0][:3] = [10, None, 20]
        assert two_player_engine.get_player_total(0) == 30

    def test_total_before_start_is_zero(self, engine):
        engine.add_player("Alice")
        assert engine.get_player_total(0) == 0

    def test_total_bad_index(self, two_player_engine):
        with pytest.raises(IndexError):
            two_player_engine.get_player_total(2)

    def test_concrete_scenario(self, two_player_engine):
        """Alice and Bob play a full game; Alice wins with 60."""
        play_rounds(two_player_engine, [[10, 15], [20, 25], [30, 35]])
        assert two_player_engine.get_player_total(0) == 60
        assert two_player_engine.get_player_total(1) == 75
        assert two_player_engine.get_all_totals() == [60, 75]
        assert two_player_engine.current_round == 4
        assert two_player_engine.get_winner() is None

        play_rounds(two_player_engine, [[0, 0]] * 8)
        assert two_player_engine.current_round == 12
        assert two_player_engine.is_game_complete()

        winner = two_player_engine.get_winner()
        assert winner.to_dict() == {"name": "Alice", "score": 60, "index": 0}

    def test_tie_goes_to_first_seat(self, engine):
        engine.start_new_game(["Alice", "Bob", "Carol"])
        play_rounds(engine, [[5, 5, 9]] * 8 + [[0, 0, 0]] * 3)
        assert engine.get_all_totals() == [40, 40, 72]
        winner = engine.get_winner()
        assert winner.name == "Alice"
        assert winner.index == 0

    def test_lowest_total_wins(self, engine):
        engine.start_new_game(["Alice", "Bob", "Carol"])
        play_rounds(engine, [[9, 7, 3]] * MAX_ROUNDS)
        assert engine.get_winner().name == "Carol"


class TestRoundInfo:

    def test_cards_follow_round(self, two_player_engine):
        info = two_player_engine.get_current_round_info()
        assert (info.round, info.cards, info.max_rounds) == (1, 3, 11)
        play_rounds(two_player_engine, [[0, 0]] * 4)
        assert two_player_engine.get_current_round_info().cards == ROUND_CARDS[4]

    def test_no_cards_after_completion(self, two_player_engine):
        play_rounds(two_player_engine, [[0, 0]] * MAX_ROUNDS)
        info = two_player_engine.get_current_round_info()
        assert info.round == 12
        assert info.cards is None


class TestExportImport:
    """Tests for export files."""

    def test_export_state_shape(self, two_player_engine):
        two_player_engine.submit_round([3, 4])
        state = two_player_engine.export_state()
        assert state["players"] == ["Alice", "Bob"]
        assert state["currentRound"] == 2
        assert state["maxRounds"] == 11
        assert state["roundCards"] == list(ROUND_CARDS)

    def test_envelope(self, two_player_engine):
        envelope = json.loads(two_player_engine.export_json())
        assert envelope["version"] == "1.0"
        assert envelope["exportDate"].endswith("Z")
        assert envelope["game"]["players"] == ["Alice", "Bob"]

    def test_round_trip(self, two_player_engine, store):
        play_rounds(two_player_engine, [[10, 15], [20, 25]])
        payload = two_player_engine.export_json()
        expected = two_player_engine.export_state()

        other = GameEngine(store=store)
        other.import_from_json(payload)

        assert other.players == expected["players"]
        assert other.scores == expected["scores"]
        assert other.current_round == expected["currentRound"]

    def test_missing_game_key_leaves_game_untouched(self, two_player_engine):
        two_player_engine.submit_round([1, 2])
        before = two_player_engine.export_state()
        with pytest.raises(ValidationError):
            two_player_engine.import_from_json(json.dumps({"version": "1.0"}))
        assert two_player_engine.export_state() == before

    def test_malformed_json(self, two_player_engine):
        with pytest.raises(ValidationError, match="Malformed JSON"):
            two_player_engine.import_from_json("{not json")

    def test_too_few_players(self, two_player_engine):
        payload = {
            "version": "1.0",
            "game": {"players": ["Solo"], "scores": [[None] * 11], "currentRound": 1},
        }
        with pytest.raises(ValidationError):
            two_player_engine.import_from_json(json.dumps(payload))
        assert two_player_engine.players == ["Alice", "Bob"]

    def test_rejects_scores_beyond_current_round(self, engine):
        scores = [[1, 2, 3, 4, 5] + [None] * 6, [1, 2, 3, 4, 5] + [None] * 6]
        payload = {
            "version": "1.0",
            "game": {"players": ["A", "B"], "scores": scores, "currentRound": 3},
        }
        with pytest.raises(ValidationError) as exc:
            engine.import_from_json(json.dumps(payload))
        assert len(exc.value.errors) == 2
        assert engine.players == []

    def test_import_persists(self, engine, store):
        payload = {
            "version": "1.0",
            "game": {"players": ["A", "B"], "scores": [[None] * 11] * 2, "currentRound": 1},
        }
        engine.import_from_json(json.dumps(payload))
        assert store.load(Slot.CURRENT_GAME)["players"] == ["A", "B"]


class TestPersistence:
    """Tests for save/load/reset."""

    def test_load_restores_saved_game(self, two_player_engine, store):
        two_player_engine.submit_round([7, 8])
        restored = GameEngine(store=store)
        assert restored.load_state() is True
        assert restored.players == ["Alice", "Bob"]
        assert restored.get_player_total(1) == 8
        assert restored.current_round == 2

    def test_load_without_saved_game(self, engine):
        assert engine.load_state() is False
        assert engine.has_saved_game() is False

    def test_load_ignores_invalid_snapshot(self, engine, store):
        store.save(Slot.CURRENT_GAME, {"players": ["A"], "scores": [], "currentRound": 99})
        assert engine.load_state() is False
        assert engine.players == []

    def test_reset_clears_everything(self, two_player_engine, store):
        two_player_engine.submit_round([1, 1])
        two_player_engine.reset()
        assert two_player_engine.players == []
        assert two_player_engine.scores == []
        assert two_player_engine.current_round == 1
        assert not store.exists(Slot.CURRENT_GAME)

    def test_storage_failure_keeps_memory_state(self):
        engine = GameEngine(store=FailingStore())
        engine.start_new_game(["Alice", "Bob"])
        complete = engine.submit_round([10, 20])

        assert complete is False
        assert engine.current_round == 2
        assert engine.get_player_total(1) == 20
        assert isinstance(engine.storage_error, StorageError)
        assert engine.storage_error.slot == Slot.CURRENT_GAME.value

    def test_storage_error_clears_after_success(self, two_player_engine):
        two_player_engine.storage_error = StorageError("fiveCrownsGame")
        two_player_engine.submit_round([1, 1])
        assert two_player_engine.storage_error is None
