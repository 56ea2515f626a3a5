"""
Crowns CLI - Command-line interface for the scorekeeper.

Usage:
    crowns serve                      Run the HTTP API
    crowns game [--session ID]        Show a saved scoresheet
    crowns stats [--player NAME]      Show overall or per-player statistics
    crowns players                    List players found in the history
    crowns export-history [-o FILE]   Write the history as JSON
    crowns import-history FILE        Merge an exported history
    crowns clear-history              Delete every recorded game
"""

import argparse
import sys

from .config import Settings, get_settings
from .logging_setup import setup_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Five Crowns Scorekeeper",
        prog="crowns",
    )
    parser.add_argument("--data-dir", help="Override the data directory")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Bind port")

    stats_parser = subparsers.add_parser("stats", help="Show statistics")
    stats_parser.add_argument("--player", help="Show statistics for one player")

    game_parser = subparsers.add_parser("game", help="Show a saved scoresheet")
    game_parser.add_argument("--session", default=None, help="Session id (default: default)")
    game_parser.add_argument("--export", dest="export_file", help="Also write the export file here")

    subparsers.add_parser("players", help="List players in the history")

    export_parser = subparsers.add_parser("export-history", help="Export the history")
    export_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    import_parser = subparsers.add_parser("import-history", help="Import a history file")
    import_parser.add_argument("history_file", help="Path to an exported history")

    subparsers.add_parser("clear-history", help="Delete all recorded games")

    args = parser.parse_args(argv)

    settings = get_settings()
    if args.data_dir:
        settings = settings.model_copy(update={"data_dir": args.data_dir, "storage": "file"})

    commands = {
        "serve": cmd_serve,
        "game": cmd_game,
        "stats": cmd_stats,
        "players": cmd_players,
        "export-history": cmd_export_history,
        "import-history": cmd_import_history,
        "clear-history": cmd_clear_history,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    handler(args, settings)


def _statistics(settings: Settings):
    from .session import SessionManager
    return SessionManager.from_settings(settings).statistics


def cmd_serve(args, settings: Settings):
    """Run the API with uvicorn."""
    import uvicorn
    from .api import create_app

    setup_logging(settings.log_dir, settings.log_level)
    app = create_app(settings=settings)
    uvicorn.run(app, host=args.host or settings.host, port=args.port or settings.port)


def cmd_game(args, settings: Settings):
    """Print the saved scoresheet of a session."""
    from .session import DEFAULT_SESSION_ID, SessionManager

    manager = SessionManager.from_settings(settings)
    game = manager.get_or_create(args.session or DEFAULT_SESSION_ID).context.game

    if not game.players:
        print("No saved game")
        return

    info = game.get_current_round_info()
    if game.is_game_complete():
        winner = game.get_winner()
        print(f"Complete: {winner.name} wins with {winner.score}")
    elif game.is_started:
        print(f"Round {info.round} of {info.max_rounds} ({info.cards} cards)")
    else:
        print("Setup")

    for index, name in enumerate(game.players):
        print(f"  {name:<20} {game.get_player_total(index)}")

    if args.export_file:
        with open(args.export_file, "w", encoding="utf-8") as f:
            f.write(game.export_json())
        print(f"Game written to {args.export_file}")


def cmd_stats(args, settings: Settings):
    """Print overall or per-player statistics."""
    statistics = _statistics(settings)

    if args.player:
        stats = statistics.get_player_stats(args.player)
        if stats is None:
            print(f"No games recorded for {args.player}")
            sys.exit(1)
        print(f"Player: {stats.player_name}")
        print(f"Games: {stats.total_games} ({stats.wins} won, {stats.losses} lost)")
        print(f"Win rate: {stats.win_rate}%")
        print(f"Average score: {stats.avg_score}")
        print(f"Best / worst: {stats.best_score} / {stats.worst_score}")
        return

    overall = statistics.get_overall_stats()
    if overall is None:
        print("No games recorded yet")
        return
    print(f"Games: {overall.total_games}")
    print(f"Players: {overall.unique_players}")
    print(f"Best player: {overall.best_player} ({overall.best_win_rate}% wins)")
    print(f"Average game score: {overall.avg_game_score}")

    print("\nRecent games:")
    for game in statistics.get_recent_games(5):
        print(f"  {game.date}  {game.winner.name} won with {game.winner.score}  ({', '.join(game.players)})")


def cmd_players(args, settings: Settings):
    for name in _statistics(settings).get_all_players():
        print(name)


def cmd_export_history(args, settings: Settings):
    content = _statistics(settings).export_history()
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(content)
        print(f"History written to {args.output}")
    else:
        print(content)


def cmd_import_history(args, settings: Settings):
    try:
        with open(args.history_file, "r", encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.history_file}")
        sys.exit(1)

    statistics = _statistics(settings)
    if not statistics.import_history(content):
        print("Import failed:")
        for e in statistics.last_import_errors:
            print(f"  - {e}")
        sys.exit(1)
    print(f"History now holds {len(statistics.history)} games")


def cmd_clear_history(args, settings: Settings):
    _statistics(settings).clear_history()
    print("History cleared")


if __name__ == "__main__":
    main()
