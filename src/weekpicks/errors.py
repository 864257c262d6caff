"""Error types raised by the contest rules and services."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence


class WeekpicksError(Exception):
    """Base error carrying a JSON-friendly ``detail`` payload."""

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = {"message": message, **detail}


class IncompleteSubmissionError(WeekpicksError):
    def __init__(self, missing_slots: Sequence[str]) -> None:
        self.missing_slots = list(missing_slots)
        super().__init__(
            f"Submission is missing required slots: {', '.join(self.missing_slots)}",
            missing_slots=self.missing_slots,
        )


class InvalidSlotError(WeekpicksError):
    def __init__(self, slots: Sequence[str]) -> None:
        self.slots = list(slots)
        super().__init__(
            f"Unknown roster slots: {', '.join(self.slots)}",
            invalid_slots=self.slots,
        )


class DuplicateSelectionError(WeekpicksError):
    """Commit rejected because players were already used.

    ``duplicates`` holds ``(slot, player_id)`` pairs for every offending pick.
    """

    def __init__(self, duplicates: Sequence[tuple[str, str]], *, reason: str = "already_used") -> None:
        self.duplicates = [(slot, player_id) for slot, player_id in duplicates]
        self.reason = reason
        players = ", ".join(f"{player_id} ({slot})" for slot, player_id in self.duplicates)
        super().__init__(
            f"Players not selectable: {players}",
            reason=reason,
            duplicates=[{"slot": slot, "player_id": player_id} for slot, player_id in self.duplicates],
        )


class PeriodLockedError(WeekpicksError):
    def __init__(self, period: int, reason: str) -> None:
        self.period = period
        self.reason = reason
        super().__init__(f"Period {period} is not editable: {reason}", period=period, reason=reason)


class UpstreamFetchError(WeekpicksError):
    def __init__(self, player_id: str, period: int, reason: str) -> None:
        self.player_id = player_id
        self.period = period
        self.reason = reason
        super().__init__(
            f"Stats fetch failed for player {player_id} in period {period}: {reason}",
            player_id=player_id,
            period=period,
            reason=reason,
        )


class RateLimitedError(WeekpicksError):
    def __init__(self, last_run_at: datetime, min_interval: float) -> None:
        self.last_run_at = last_run_at
        self.min_interval = min_interval
        super().__init__(
            f"Stats refresh attempted less than {min_interval:g} seconds after the last run",
            last_run_at=last_run_at.isoformat(),
            min_interval_seconds=min_interval,
        )


class NotFoundError(WeekpicksError):
    def __init__(self, kind: str, key: Any) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.capitalize()} {key!r} not found", kind=kind, key=str(key))
