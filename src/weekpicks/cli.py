"""Command-line interface for scoring, standings and stats refresh."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from weekpicks.config_loader import ScoringProfile
from weekpicks.errors import WeekpicksError
from weekpicks.persistence import PickStore
from weekpicks.scoring import ApiSportsStatsFetcher, StatsRefresher, calculate_points
from weekpicks.service import ContestService
from weekpicks.settings import Settings, load_settings


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Weekly pick contest tools")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path (overrides WEEKPICKS_DB_PATH)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    points = subparsers.add_parser("points", help="Score a JSON stat line")
    points.add_argument("stats", type=Path, help="JSON file with category values")
    points.add_argument("--scoring-profile", type=Path, default=None, help="Scoring coefficients JSON")
    points.add_argument("--save-profile", type=Path, default=None, help="Write the coefficients used to a JSON profile")

    standings = subparsers.add_parser("standings", help="Print the contest leaderboard")
    standings.add_argument("contest_id")
    standings.add_argument("--period", type=int, action="append", default=None, help="Restrict to period (repeatable)")

    refresh = subparsers.add_parser("refresh", help="Refresh player stats for a period")
    refresh.add_argument("contest_id")
    refresh.add_argument("period", type=int)
    refresh.add_argument(
        "--game-map",
        type=Path,
        required=True,
        help="JSON mapping of player id to provider game id for the period",
    )
    refresh.add_argument(
        "--kickoffs",
        type=Path,
        default=None,
        help="JSON list of ISO kickoff times; without a game in progress the refresh is skipped",
    )
    refresh.add_argument("--force", action="store_true", help="Ignore the refresh interval and game window")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args()


def _cmd_points(args: argparse.Namespace) -> None:
    profile = ScoringProfile.load(args.scoring_profile) if args.scoring_profile else ScoringProfile(name="default")
    categories = json.loads(args.stats.read_text(encoding="utf-8"))
    points = calculate_points(categories, profile.coefficients)
    print(f"{points:.2f} points ({profile.name} scoring)")
    if args.save_profile:
        profile.save(args.save_profile)
        print(f"Saved scoring profile to {args.save_profile}")


def _cmd_standings(service: ContestService, args: argparse.Namespace) -> None:
    entries = service.leaderboard(args.contest_id, periods=args.period)
    if not entries:
        print("No participants")
        return
    for entry in entries:
        behind = f"-{entry.points_behind_leader:.2f}" if entry.points_behind_leader else "-"
        print(f"{entry.rank:>3}  {entry.label:<24} {entry.total_points:>8.2f}  {behind}")


def _cmd_refresh(store: PickStore, settings: Settings, args: argparse.Namespace) -> None:
    game_map = json.loads(args.game_map.read_text(encoding="utf-8"))
    fetcher = ApiSportsStatsFetcher(
        base_url=settings.stats_api_url,
        api_key=settings.stats_api_key,
        game_lookup={(str(player_id), args.period): str(game_id) for player_id, game_id in game_map.items()},
        timeout=settings.http_timeout,
    )
    kickoff_lookup = None
    if args.kickoffs:
        kickoffs = [datetime.fromisoformat(raw) for raw in json.loads(args.kickoffs.read_text(encoding="utf-8"))]

        def kickoff_lookup(period: int) -> list[datetime]:
            return kickoffs

    try:
        refresher = StatsRefresher(
            store,
            fetcher,
            min_interval=settings.sync_min_interval,
            kickoff_lookup=kickoff_lookup,
        )
        summary = refresher.refresh(args.contest_id, args.period, force=args.force)
    finally:
        fetcher.close()
    if summary.status == "no_active_games":
        print(f"No games in progress for period {summary.period}; nothing refreshed")
        return
    print(
        f"Refreshed period {summary.period}: {summary.succeeded} ok, "
        f"{summary.skipped} skipped, {summary.failed} failed in {summary.duration_seconds:.2f}s"
    )
    for result in summary.results:
        if result.status == "failed":
            print(f"  {result.player_id}: {result.error}")


def main() -> None:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "points":
        _cmd_points(args)
        return

    settings = load_settings()
    db_path = str(args.db) if args.db else settings.db_path

    if args.command == "serve":
        import uvicorn

        from weekpicks.api import create_app

        uvicorn.run(create_app(store=PickStore(db_path), settings=settings), host=args.host, port=args.port)
        return

    store = PickStore(db_path)
    try:
        if args.command == "standings":
            _cmd_standings(ContestService(store), args)
        elif args.command == "refresh":
            _cmd_refresh(store, settings, args)
    except WeekpicksError as exc:
        raise SystemExit(exc.message) from exc


if __name__ == "__main__":
    main()
