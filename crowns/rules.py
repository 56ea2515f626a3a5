"""Five Crowns round structure."""

MAX_ROUNDS = 11

# Cards dealt per round: 3 in the first round up to 13 in the eleventh
ROUND_CARDS: tuple[int, ...] = tuple(range(3, 3 + MAX_ROUNDS))

MIN_PLAYERS = 2

# Completed games kept in the history log
MAX_HISTORY = 50
