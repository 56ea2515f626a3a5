"""
Game State - The live Five Crowns scoresheet.

Design principles:
- Score matrix is indexed by player position, never by name
- Round structure is fixed: eleven rounds dealing 3 to 13 cards
- Scoring helpers are pure so statistics can reuse them on stored snapshots
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence, Union

from ..rules import MAX_ROUNDS, MIN_PLAYERS, ROUND_CARDS

Score = Union[int, float, None]


@dataclass(frozen=True)
class RoundInfo:
    """Descriptor of the round being played."""
    round: int
    cards: int | None  # None once the game is complete
    max_rounds: int = MAX_ROUNDS


@dataclass(frozen=True)
class Winner:
    """Lowest total at the end of the game."""
    name: str
    score: int | float
    index: int

    def to_dict(self) -> dict:
        return {"name": self.name, "score": self.score, "index": self.index}


@dataclass
class Game:
    """
    Game aggregate.

    `scores` stays empty during setup and is allocated as a
    players x MAX_ROUNDS matrix of None when the game starts.
    `current_round` runs from 1 to MAX_ROUNDS + 1; the last value
    means the game is complete.
    """
    players: list[str] = field(default_factory=list)
    scores: list[list[Score]] = field(default_factory=list)
    current_round: int = 1

    @property
    def is_started(self) -> bool:
        return len(self.scores) > 0

    @property
    def is_complete(self) -> bool:
        return self.current_round > MAX_ROUNDS

    def snapshot(self) -> dict:
        """Wire shape persisted between page loads."""
        return {
            "players": list(self.players),
            "scores": [list(row) for row in self.scores],
            "currentRound": self.current_round,
        }


def empty_scores(num_players: int) -> list[list[Score]]:
    """Allocate a fresh matrix with no scores recorded."""
    return [[None] * MAX_ROUNDS for _ in range(num_players)]


def is_score(value) -> bool:
    """A recordable cell: None or a real number (bool is not a score)."""
    return value is None or (isinstance(value, (int, float)) and not isinstance(value, bool))


def player_total(row: Sequence[Score]) -> int | float:
    """Sum a player's row; unscored cells count as zero."""
    return sum(score for score in row if score is not None)


def select_winner(players: Sequence[str], scores: Sequence[Sequence[Score]]) -> Winner:
    """
    Pick the winner of a scoresheet.

    Lowest total wins. On a tie the first player in seating order
    wins: a later player only replaces the leader with a strictly
    lower total.
    """
    if not players:
        raise ValueError("Cannot select a winner without players")
    if len(scores) != len(players):
        raise ValueError("Score rows must match player count")

    totals = [player_total(row) for row in scores]
    best_index = 0
    for index, total in enumerate(totals):
        if total < totals[best_index]:
            best_index = index

    return Winner(name=players[best_index], score=totals[best_index], index=best_index)
