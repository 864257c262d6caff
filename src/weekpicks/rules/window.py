"""Lifecycle state of a period for one participant."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from weekpicks.config import ContestRules
from weekpicks.models import PeriodWindow


class WindowState(str, Enum):
    FUTURE_LOCKED = "future_locked"
    OPEN_NOT_SUBMITTED = "open_not_submitted"
    SUBMITTED = "submitted"
    PAST_NO_PICKS = "past_no_picks"


def is_past(now: datetime, deadline_at: Optional[datetime]) -> bool:
    """Deadline check shared by every rule: reaching the deadline counts as past."""

    if deadline_at is None:
        return False
    return now >= deadline_at


def resolve_window_state(window: PeriodWindow, now: datetime, is_complete: bool) -> WindowState:
    if now < window.opens_at:
        return WindowState.FUTURE_LOCKED
    if is_complete:
        return WindowState.SUBMITTED
    if is_past(now, window.deadline_at):
        return WindowState.PAST_NO_PICKS
    return WindowState.OPEN_NOT_SUBMITTED


def is_editable(window: PeriodWindow, now: datetime) -> bool:
    return window.opens_at <= now and not is_past(now, window.deadline_at)


def is_period_in_contest(rules: ContestRules, period: int) -> bool:
    return rules.has_period(period)


def current_open_period(windows: Iterable[PeriodWindow], now: datetime) -> Optional[PeriodWindow]:
    """Return the earliest window currently accepting picks, if any."""

    for window in sorted(windows, key=lambda item: item.period):
        if is_editable(window, now):
            return window
    return None
