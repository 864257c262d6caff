"""Rate-limited batch refresh of player statistics for a period."""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Literal, Optional

from weekpicks.errors import NotFoundError, RateLimitedError, UpstreamFetchError
from weekpicks.models import PlayerPeriodStat
from weekpicks.persistence import PickStore
from weekpicks.scoring.calculator import calculate_points
from weekpicks.scoring.merge import merge_stats
from weekpicks.scoring.provider import StatsFetcher


logger = logging.getLogger(__name__)

PlayerOutcome = Literal["success", "skipped", "failed"]
RunStatus = Literal["completed", "no_active_games"]

# A game counts as in progress for this long after kickoff.
GAME_ACTIVE_WINDOW = timedelta(hours=4)


@dataclass(frozen=True)
class PlayerRefreshResult:
    player_id: str
    status: PlayerOutcome
    points: Optional[float] = None
    error: Optional[str] = None


@dataclass
class RefreshSummary:
    contest_id: str
    period: int
    started_at: datetime
    attempted: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    status: RunStatus = "completed"
    active_games: Optional[int] = None
    results: List[PlayerRefreshResult] = field(default_factory=list)

    def record(self, result: PlayerRefreshResult) -> None:
        self.results.append(result)
        self.attempted += 1
        if result.status == "success":
            self.succeeded += 1
        elif result.status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


KickoffLookup = Callable[[int], Iterable[datetime]]


def count_active_games(
    kickoffs: Iterable[datetime],
    now: datetime,
    window: timedelta = GAME_ACTIVE_WINDOW,
) -> int:
    """Games of the period that kicked off no more than ``window`` ago."""

    return sum(1 for kickoff in kickoffs if kickoff <= now <= kickoff + window)


class StatsRefresher:
    """Fetch, merge and store stats for every player picked in a period.

    A failing player is recorded and skipped; the rest of the batch continues.
    Every run that reaches the player loop is written to the sync log, and the
    minimum interval is measured from the last logged run. When
    ``kickoff_lookup`` is given, a non-forced run only proceeds while a game of
    the period is in progress.
    """

    def __init__(
        self,
        store: PickStore,
        fetcher: StatsFetcher,
        *,
        clock: Callable[[], datetime] = _utc_now,
        min_interval: float = 60,
        kickoff_lookup: Optional[KickoffLookup] = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.clock = clock
        self.min_interval = min_interval
        self.kickoff_lookup = kickoff_lookup

    def check_rate_limit(self, contest_id: str, period: int, now: datetime) -> None:
        last = self.store.last_sync(contest_id, period, successful_only=False)
        if last is None:
            return
        elapsed = (now - last.finished_at).total_seconds()
        if elapsed < self.min_interval:
            raise RateLimitedError(last.finished_at, self.min_interval)

    def refresh(self, contest_id: str, period: int, *, force: bool = False) -> RefreshSummary:
        contest = self.store.get_contest(contest_id)
        if contest is None:
            raise NotFoundError("contest", contest_id)

        started_at = self.clock()
        summary = RefreshSummary(contest_id=contest_id, period=period, started_at=started_at)
        if not force:
            self.check_rate_limit(contest_id, period, started_at)
            if self.kickoff_lookup is not None:
                summary.active_games = count_active_games(self.kickoff_lookup(period), started_at)
                if not summary.active_games:
                    logger.info("No games in progress for contest=%s period=%s; refresh skipped", contest_id, period)
                    summary.status = "no_active_games"
                    return summary

        started = time.perf_counter()
        coefficients = self.store.get_active_coefficients()

        player_ids: list[str] = []
        for selection in self.store.list_selections(contest_id, period=period):
            if selection.player_id not in player_ids:
                player_ids.append(selection.player_id)
        logger.info("Refreshing stats for %s players (contest=%s period=%s)", len(player_ids), contest_id, period)

        completed = False
        try:
            for player_id in player_ids:
                summary.record(self._refresh_player(contest.season, period, player_id, coefficients))
            completed = True
        finally:
            summary.duration_seconds = time.perf_counter() - started
            if completed:
                notes = None if player_ids else "No picks to sync"
            else:
                notes = f"Aborted after {summary.attempted}/{len(player_ids)} players"
            self.store.log_sync(
                contest_id=contest_id,
                period=period,
                started_at=started_at,
                finished_at=self.clock(),
                attempted=summary.attempted,
                succeeded=summary.succeeded,
                skipped=summary.skipped,
                failed=summary.failed,
                success=completed,
                notes=notes,
            )
        logger.info(
            "Stats refresh finished contest=%s period=%s attempted=%s succeeded=%s skipped=%s failed=%s in %.2fs",
            contest_id,
            period,
            summary.attempted,
            summary.succeeded,
            summary.skipped,
            summary.failed,
            summary.duration_seconds,
        )
        return summary

    def _refresh_player(self, season: int, period: int, player_id: str, coefficients) -> PlayerRefreshResult:
        try:
            incoming = self.fetcher(player_id, period)
        except UpstreamFetchError as exc:
            logger.warning("Skipping player %s for period %s: %s", player_id, period, exc.reason)
            return PlayerRefreshResult(player_id=player_id, status="failed", error=exc.reason)
        if incoming is None:
            return PlayerRefreshResult(player_id=player_id, status="skipped")

        try:
            existing = self.store.get_stat(season, period, player_id)
            merged = merge_stats(existing.category_values if existing else None, incoming)
            self.store.upsert_stat(
                season,
                PlayerPeriodStat(player_id=player_id, period=period, category_values=merged, updated_at=self.clock()),
            )
        except (sqlite3.Error, TypeError, ValueError) as exc:
            logger.warning("Could not store stats for player %s in period %s: %s", player_id, period, exc)
            return PlayerRefreshResult(player_id=player_id, status="failed", error=str(exc) or type(exc).__name__)
        return PlayerRefreshResult(
            player_id=player_id,
            status="success",
            points=calculate_points(merged, coefficients),
        )
