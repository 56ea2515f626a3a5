"""
Tests for the application context and session manager.
"""

import time

import pytest

from ..config import Settings
from ..errors import ValidationError
from ..persistence import JsonFileStore, MemoryStore, Slot
from ..rules import MAX_ROUNDS
from ..session import AppContext, SessionManager
from ..statistics import StatisticsEngine


def finish_game(context, final=(3, 4)):
    context.start_new_game(["Alice", "Bob"])
    for _ in range(MAX_ROUNDS - 1):
        context.submit_round([1, 2])
    return context.submit_round(list(final))


class TestAppContext:
    """Tests for game completion flowing into history."""

    @pytest.fixture
    def context(self, store, statistics):
        return AppContext.create(game_store=store, statistics=statistics)

    def test_records_completed_game(self, context):
        assert finish_game(context) is True
        record = context.last_recorded

        assert record is not None
        assert record.id == context.recorded_game_id
        assert record.winner.name == "Alice"
        assert record.winner.score == 13
        assert len(context.statistics.get_history()) == 1

    def test_incomplete_game_not_recorded(self, context):
        context.start_new_game(["Alice", "Bob"])
        context.submit_round([1, 2])
        assert context.recorded_game_id is None
        assert context.statistics.get_history() == []

    def test_undo_withdraws_record(self, context):
        finish_game(context)
        context.undo_last_round()

        assert context.recorded_game_id is None
        assert context.statistics.get_history() == []
        assert context.game.current_round == MAX_ROUNDS

    def test_corrected_final_round_recorded_once(self, context):
        finish_game(context, final=(3, 4))
        context.undo_last_round()
        context.submit_round([20, 0])

        history = context.statistics.get_history()
        assert len(history) == 1
        assert history[0].winner.name == "Bob"

    def test_bad_final_round_leaves_game_open(self, context, store):
        context.start_new_game(["Alice", "Bob"])
        for _ in range(MAX_ROUNDS - 1):
            context.submit_round([1, 2])

        with pytest.raises(ValidationError):
            context.submit_round([True, 2])

        assert not context.game.is_game_complete()
        assert context.game.current_round == MAX_ROUNDS
        assert context.statistics.get_history() == []

        restored = AppContext.create(game_store=store, statistics=context.statistics)
        assert restored.game.load_state() is True
        assert restored.game.current_round == MAX_ROUNDS

    def test_undo_mid_game_keeps_history(self, context):
        finish_game(context)
        context.start_new_game(["Carol", "Dave"])
        context.submit_round([1, 1])
        context.undo_last_round()
        assert len(context.statistics.get_history()) == 1

    def test_new_game_forgets_record(self, context):
        finish_game(context)
        context.start_new_game(["Carol", "Dave"])
        assert context.recorded_game_id is None
        assert context.last_recorded is None

    def test_storage_warnings(self, context):
        assert context.storage_warnings() == []
        context.statistics.store = _BrokenStore()
        finish_game(context)
        assert context.storage_warnings() == [f"Failed to persist '{Slot.HISTORY.value}'"]

    def test_create_defaults(self):
        context = AppContext.create()
        assert isinstance(context.game.store, MemoryStore)
        assert context.statistics.get_history() == []


class _BrokenStore(MemoryStore):
    def save(self, slot, value) -> bool:
        return False


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.fixture
    def manager(self):
        return SessionManager()

    def test_create_session(self, manager):
        session = manager.create_session()
        assert session.session_id in manager.list_sessions()
        assert session.context.game.players == []

    def test_create_with_id(self, manager):
        session = manager.create_session("table-1")
        assert session.session_id == "table-1"
        assert manager.create_session("table-1") is session

    @pytest.mark.parametrize("session_id", ["../etc", "a b", "x" * 65])
    def test_rejects_unsafe_ids(self, manager, session_id):
        with pytest.raises(ValidationError):
            manager.create_session(session_id)

    def test_sessions_share_history(self, manager):
        first = manager.create_session("one")
        second = manager.create_session("two")
        finish_game(first.context)
        assert second.context.statistics.get_history() == first.context.statistics.get_history()
        assert len(manager.statistics.history) == 1

    def test_sessions_have_separate_games(self, manager):
        first = manager.create_session("one")
        second = manager.create_session("two")
        first.context.start_new_game(["Alice", "Bob"])
        assert second.context.game.players == []

    def test_get_session(self, manager):
        assert manager.get_session("missing") is None
        session = manager.create_session("table")
        assert manager.get_session("table") is session

    def test_get_or_create(self, manager):
        session = manager.get_or_create("table")
        assert manager.get_or_create("table") is session

    def test_end_session(self, manager):
        manager.create_session("table")
        assert manager.end_session("table") is True
        assert manager.end_session("table") is False
        assert manager.list_sessions() == []

    def test_cleanup_stale_sessions(self, manager):
        stale = manager.create_session("stale")
        manager.create_session("fresh")
        stale.last_active = time.time() - 7200

        assert manager.cleanup_stale_sessions(max_age_seconds=3600) == 1
        assert manager.list_sessions() == ["fresh"]


class TestFileBackedSessions:
    """Sessions restored from disk."""

    @pytest.fixture
    def settings(self, tmp_path):
        return Settings(storage="file", data_dir=tmp_path)

    def test_from_settings_memory(self):
        manager = SessionManager.from_settings(Settings(storage="memory"))
        assert isinstance(manager.shared_store, MemoryStore)

    def test_game_restored_in_new_manager(self, settings, tmp_path):
        manager = SessionManager.from_settings(settings)
        session = manager.create_session("table")
        session.context.start_new_game(["Alice", "Bob"])
        session.context.submit_round([5, 6])

        assert (tmp_path / "sessions" / "table" / "fiveCrownsGame.json").exists()

        restored = SessionManager.from_settings(settings).create_session("table")
        assert restored.context.game.players == ["Alice", "Bob"]
        assert restored.context.game.current_round == 2

    def test_history_shared_on_disk(self, settings, tmp_path):
        manager = SessionManager.from_settings(settings)
        finish_game(manager.create_session("table").context)

        statistics = StatisticsEngine(store=JsonFileStore(tmp_path))
        assert len(statistics.history) == 1

    def test_discard_clears_saved_game(self, settings):
        manager = SessionManager.from_settings(settings)
        manager.create_session("table").context.start_new_game(["Alice", "Bob"])
        manager.end_session("table", discard=True)

        restored = SessionManager.from_settings(settings).create_session("table")
        assert restored.context.game.players == []
