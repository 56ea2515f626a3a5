"""
Pytest fixtures for Crowns tests.
"""

import itertools

import pytest

from ..engine_core import GameEngine
from ..persistence import MemoryStore
from ..rules import MAX_ROUNDS
from ..statistics import StatisticsEngine


class FailingStore(MemoryStore):
    """Store whose writes always fail, like a full disk."""

    def save(self, slot, value) -> bool:
        return False

    def clear(self, slot) -> bool:
        return False


def completed_snapshot(players, totals):
    """Finished game where each player scored their whole total in round one."""
    scores = [[total] + [0] * (MAX_ROUNDS - 1) for total in totals]
    return {"players": list(players), "scores": scores, "currentRound": MAX_ROUNDS + 1}


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def engine(store: MemoryStore) -> GameEngine:
    """Engine in setup with no players."""
    return GameEngine(store=store)


@pytest.fixture
def two_player_engine(engine: GameEngine) -> GameEngine:
    """Alice and Bob, game started at round 1."""
    engine.add_player("Alice")
    engine.add_player("Bob")
    engine.start_new_game()
    return engine


@pytest.fixture
def clock():
    """Deterministic clock advancing one second per call."""
    ticks = itertools.count(1_700_000_000)
    return lambda: float(next(ticks))


@pytest.fixture
def statistics(store: MemoryStore, clock) -> StatisticsEngine:
    return StatisticsEngine(store=store, clock=clock)
