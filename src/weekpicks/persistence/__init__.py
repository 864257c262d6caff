"""Persistence layer for contests, picks, player stats and sync runs."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from weekpicks.models import (
    Contest,
    Participant,
    PeriodWindow,
    PlayerPeriodStat,
    ScoringCoefficients,
    Selection,
)


@dataclass
class SyncLogRecord:
    log_id: int
    contest_id: str
    period: int
    started_at: datetime
    finished_at: datetime
    attempted: int
    succeeded: int
    skipped: int
    failed: int
    success: bool
    duration_seconds: float
    notes: Optional[str]


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class PickStore:
    """SQLite-backed store for contest state."""

    def __init__(self, db_path: Path | str):
        self._use_uri = False
        if isinstance(db_path, str) and db_path.startswith("file:"):
            self.db_path: Path | str = db_path
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        else:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS contests (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                season INTEGER NOT NULL,
                mode TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS participants (
                contest_id TEXT NOT NULL,
                participant_id TEXT NOT NULL,
                label TEXT NOT NULL,
                joined_at TEXT NOT NULL,
                PRIMARY KEY (contest_id, participant_id)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS period_windows (
                contest_id TEXT NOT NULL,
                period INTEGER NOT NULL,
                opens_at TEXT NOT NULL,
                deadline_at TEXT,
                PRIMARY KEY (contest_id, period)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS selections (
                contest_id TEXT NOT NULL,
                participant_id TEXT,
                period INTEGER NOT NULL,
                slot TEXT NOT NULL,
                player_id TEXT NOT NULL,
                player_name TEXT NOT NULL DEFAULT '',
                committed_at TEXT,
                UNIQUE (contest_id, participant_id, period, slot)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS player_period_stats (
                season INTEGER NOT NULL,
                period INTEGER NOT NULL,
                player_id TEXT NOT NULL,
                categories_json TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (season, period, player_id)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS scoring_settings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                coefficients_json TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sync_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                contest_id TEXT NOT NULL,
                period INTEGER NOT NULL,
                started_at TEXT NOT NULL,
                finished_at TEXT NOT NULL,
                attempted INTEGER NOT NULL,
                succeeded INTEGER NOT NULL,
                skipped INTEGER NOT NULL,
                failed INTEGER NOT NULL,
                success INTEGER NOT NULL,
                duration_seconds REAL NOT NULL,
                notes TEXT
            )
            """
        )
        conn.commit()

    # Contests and participants

    def save_contest(self, contest: Contest, *, created_at: Optional[datetime] = None) -> Contest:
        created_at = created_at or datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO contests (id, name, season, mode, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    season = excluded.season,
                    mode = excluded.mode
                """,
                (contest.contest_id, contest.name, contest.season, contest.mode.upper(), created_at.isoformat()),
            )
            conn.commit()
        return contest

    def get_contest(self, contest_id: str) -> Optional[Contest]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM contests WHERE id = ?", (contest_id,)).fetchone()
            if row is None:
                return None
            return Contest(contest_id=row["id"], name=row["name"], season=row["season"], mode=row["mode"])

    def save_participant(
        self,
        contest_id: str,
        participant: Participant,
        *,
        joined_at: Optional[datetime] = None,
    ) -> Participant:
        joined_at = joined_at or datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO participants (contest_id, participant_id, label, joined_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(contest_id, participant_id) DO UPDATE SET label = excluded.label
                """,
                (contest_id, participant.participant_id, participant.label, joined_at.isoformat()),
            )
            conn.commit()
        return participant

    def list_participants(self, contest_id: str) -> List[Participant]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM participants WHERE contest_id = ? ORDER BY joined_at, participant_id",
                (contest_id,),
            ).fetchall()
        return [Participant(participant_id=row["participant_id"], label=row["label"]) for row in rows]

    # Period windows

    def save_window(self, contest_id: str, window: PeriodWindow) -> PeriodWindow:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO period_windows (contest_id, period, opens_at, deadline_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(contest_id, period) DO UPDATE SET
                    opens_at = excluded.opens_at,
                    deadline_at = excluded.deadline_at
                """,
                (contest_id, window.period, window.opens_at.isoformat(), _iso(window.deadline_at)),
            )
            conn.commit()
        return window

    def get_window(self, contest_id: str, period: int) -> Optional[PeriodWindow]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM period_windows WHERE contest_id = ? AND period = ?",
                (contest_id, period),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_window(row)

    def list_windows(self, contest_id: str) -> List[PeriodWindow]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM period_windows WHERE contest_id = ? ORDER BY period",
                (contest_id,),
            ).fetchall()
        return [self._row_to_window(row) for row in rows]

    # Selections

    def commit_selections(self, selections: Iterable[Selection]) -> List[Selection]:
        """Write every slot in one transaction; re-running identical picks is a no-op."""

        rows = list(selections)
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO selections (
                    contest_id, participant_id, period, slot, player_id, player_name, committed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(contest_id, participant_id, period, slot) DO UPDATE SET
                    committed_at = CASE
                        WHEN selections.player_id = excluded.player_id THEN selections.committed_at
                        ELSE excluded.committed_at
                    END,
                    player_id = excluded.player_id,
                    player_name = excluded.player_name
                """,
                [
                    (
                        row.contest_id,
                        row.participant_id,
                        row.period,
                        row.slot,
                        row.player_id,
                        row.player_name,
                        _iso(row.committed_at),
                    )
                    for row in rows
                ],
            )
            conn.commit()
        return rows

    def clear_period(self, contest_id: str, participant_id: str, period: int) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM selections WHERE contest_id = ? AND participant_id = ? AND period = ?",
                (contest_id, participant_id, period),
            )
            conn.commit()
            return cursor.rowcount

    def list_selections(
        self,
        contest_id: str,
        *,
        period: int | None = None,
        participant_id: str | None = None,
    ) -> List[Selection]:
        query = "SELECT * FROM selections"
        conditions: list[str] = ["contest_id = ?"]
        params: list[str | int] = [contest_id]
        if period is not None:
            conditions.append("period = ?")
            params.append(period)
        if participant_id is not None:
            conditions.append("participant_id = ?")
            params.append(participant_id)
        query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY period, rowid"
        with self._connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_selection(row) for row in rows]

    # Player stats

    def get_stat(self, season: int, period: int, player_id: str) -> Optional[PlayerPeriodStat]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM player_period_stats WHERE season = ? AND period = ? AND player_id = ?",
                (season, period, player_id),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_stat(row)

    def list_stats(self, season: int, period: int) -> List[PlayerPeriodStat]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM player_period_stats WHERE season = ? AND period = ?",
                (season, period),
            ).fetchall()
        return [self._row_to_stat(row) for row in rows]

    def upsert_stat(self, season: int, stat: PlayerPeriodStat) -> PlayerPeriodStat:
        updated_at = stat.updated_at or datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO player_period_stats (season, period, player_id, categories_json, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(season, period, player_id) DO UPDATE SET
                    categories_json = excluded.categories_json,
                    updated_at = excluded.updated_at
                """,
                (season, stat.period, stat.player_id, json.dumps(stat.category_values), updated_at.isoformat()),
            )
            conn.commit()
        return stat.model_copy(update={"updated_at": updated_at})

    # Scoring settings

    def get_active_coefficients(self) -> ScoringCoefficients:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM scoring_settings WHERE is_active = 1 ORDER BY id DESC LIMIT 1"
            ).fetchone()
        if row is None:
            return ScoringCoefficients()
        return ScoringCoefficients.model_validate(json.loads(row["coefficients_json"]))

    def set_active_coefficients(self, coefficients: ScoringCoefficients, *, name: str = "custom") -> int:
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute("UPDATE scoring_settings SET is_active = 0 WHERE is_active = 1")
            cursor = conn.execute(
                """
                INSERT INTO scoring_settings (name, coefficients_json, is_active, created_at)
                VALUES (?, ?, 1, ?)
                """,
                (name, json.dumps(coefficients.model_dump()), now),
            )
            conn.commit()
            return int(cursor.lastrowid)

    # Sync logs

    def log_sync(
        self,
        *,
        contest_id: str,
        period: int,
        started_at: datetime,
        finished_at: datetime,
        attempted: int,
        succeeded: int,
        skipped: int,
        failed: int,
        success: bool,
        notes: Optional[str] = None,
    ) -> SyncLogRecord:
        duration = max(0.0, (finished_at - started_at).total_seconds())
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO sync_logs (
                    contest_id, period, started_at, finished_at, attempted, succeeded,
                    skipped, failed, success, duration_seconds, notes
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    contest_id,
                    period,
                    started_at.isoformat(),
                    finished_at.isoformat(),
                    attempted,
                    succeeded,
                    skipped,
                    failed,
                    1 if success else 0,
                    duration,
                    notes,
                ),
            )
            conn.commit()
            log_id = int(cursor.lastrowid)
        return SyncLogRecord(
            log_id=log_id,
            contest_id=contest_id,
            period=period,
            started_at=started_at,
            finished_at=finished_at,
            attempted=attempted,
            succeeded=succeeded,
            skipped=skipped,
            failed=failed,
            success=success,
            duration_seconds=duration,
            notes=notes,
        )

    def last_sync(self, contest_id: str, period: int, *, successful_only: bool = True) -> Optional[SyncLogRecord]:
        query = "SELECT * FROM sync_logs WHERE contest_id = ? AND period = ?"
        if successful_only:
            query += " AND success = 1"
        query += " ORDER BY id DESC LIMIT 1"
        with self._connect() as conn:
            row = conn.execute(query, (contest_id, period)).fetchone()
            if row is None:
                return None
            return self._row_to_sync_log(row)

    def list_sync_logs(self, contest_id: str, limit: int = 50) -> List[SyncLogRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM sync_logs WHERE contest_id = ? ORDER BY id DESC LIMIT ?",
                (contest_id, limit),
            ).fetchall()
        return [self._row_to_sync_log(row) for row in rows]

    # Row mapping

    def _row_to_window(self, row: sqlite3.Row) -> PeriodWindow:
        return PeriodWindow(
            period=row["period"],
            opens_at=datetime.fromisoformat(row["opens_at"]),
            deadline_at=_parse_ts(row["deadline_at"]),
        )

    def _row_to_selection(self, row: sqlite3.Row) -> Selection:
        return Selection(
            contest_id=row["contest_id"],
            period=row["period"],
            participant_id=row["participant_id"],
            slot=row["slot"],
            player_id=row["player_id"],
            player_name=row["player_name"] or "",
            committed_at=_parse_ts(row["committed_at"]),
        )

    def _row_to_stat(self, row: sqlite3.Row) -> PlayerPeriodStat:
        categories: Mapping[str, float] = json.loads(row["categories_json"])
        return PlayerPeriodStat(
            player_id=row["player_id"],
            period=row["period"],
            category_values=dict(categories),
            updated_at=_parse_ts(row["updated_at"]),
        )

    def _row_to_sync_log(self, row: sqlite3.Row) -> SyncLogRecord:
        return SyncLogRecord(
            log_id=row["id"],
            contest_id=row["contest_id"],
            period=row["period"],
            started_at=datetime.fromisoformat(row["started_at"]),
            finished_at=datetime.fromisoformat(row["finished_at"]),
            attempted=row["attempted"],
            succeeded=row["succeeded"],
            skipped=row["skipped"],
            failed=row["failed"],
            success=bool(row["success"]),
            duration_seconds=row["duration_seconds"],
            notes=row["notes"],
        )
