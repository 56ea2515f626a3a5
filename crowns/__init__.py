"""
Crowns - Five Crowns Scorekeeper

Tracks players and per-round scores across the eleven rounds of Five Crowns.
The package provides:
- Game state management (roster, score matrix, undo)
- Winner selection (lowest total wins)
- Persistence of the game in progress
- A bounded history of completed games with derived statistics
"""

__version__ = "0.1.0"
