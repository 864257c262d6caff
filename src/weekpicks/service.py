"""Contest operations wiring the rules engine to storage and an injected clock."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from weekpicks.cache import TTLCache
from weekpicks.config import ContestRules, get_rules
from weekpicks.errors import (
    IncompleteSubmissionError,
    InvalidSlotError,
    NotFoundError,
    PeriodLockedError,
    WeekpicksError,
)
from weekpicks.leaderboard import (
    LeaderboardEntry,
    PlayerAggregate,
    combine_totals,
    participant_totals,
    player_aggregates,
    rank_entries,
)
from weekpicks.models import Contest, Participant, PeriodWindow, Selection
from weekpicks.persistence import PickStore
from weekpicks.rules import (
    RevealStatus,
    WindowState,
    build_reveal_status,
    check_use_once,
    forbidden_player_ids,
    is_complete,
    is_editable,
    is_period_in_contest,
    missing_slots,
    resolve_window_state,
    visible_for_viewer,
)
from weekpicks.scoring import RefreshSummary, StatsRefresher


logger = logging.getLogger(__name__)

_REVEAL_TTL_DEFAULT = 30


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContestService:
    def __init__(
        self,
        store: PickStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        refresher: Optional[StatsRefresher] = None,
        reveal_cache_ttl: float = _REVEAL_TTL_DEFAULT,
    ) -> None:
        self.store = store
        self.clock = clock
        self.refresher = refresher
        self.reveal_cache_ttl = reveal_cache_ttl
        self.cache = TTLCache(clock)

    # Lookups

    def _require_contest(self, contest_id: str) -> tuple[Contest, ContestRules]:
        contest = self.store.get_contest(contest_id)
        if contest is None:
            raise NotFoundError("contest", contest_id)
        return contest, get_rules(contest.mode)

    def _require_window(self, contest_id: str, period: int) -> PeriodWindow:
        window = self.store.get_window(contest_id, period)
        if window is None:
            raise NotFoundError("period", f"{contest_id}/{period}")
        return window

    def _labels(self, contest_id: str) -> Dict[str, str]:
        return {item.participant_id: item.label for item in self.store.list_participants(contest_id)}

    def _require_participant(self, contest_id: str, participant_id: str) -> None:
        if participant_id not in self._labels(contest_id):
            raise NotFoundError("participant", participant_id)

    # Setup helpers for external collaborators

    def create_contest(self, contest: Contest) -> Contest:
        get_rules(contest.mode)
        return self.store.save_contest(contest)

    def add_participant(self, contest_id: str, participant: Participant) -> Participant:
        self._require_contest(contest_id)
        return self.store.save_participant(contest_id, participant)

    def set_window(self, contest_id: str, window: PeriodWindow) -> PeriodWindow:
        _, rules = self._require_contest(contest_id)
        if not is_period_in_contest(rules, window.period):
            raise WeekpicksError(
                f"Period {window.period} is outside the {rules.mode} schedule",
                period=window.period,
            )
        return self.store.save_window(contest_id, window)

    # Submissions

    def commit_picks(
        self,
        contest_id: str,
        participant_id: str,
        period: int,
        picks: Mapping[str, str],
        *,
        player_names: Mapping[str, str] | None = None,
    ) -> List[Selection]:
        """Record a full period submission (slot -> player id) atomically."""

        _, rules = self._require_contest(contest_id)
        self._require_participant(contest_id, participant_id)
        window = self._require_window(contest_id, period)
        required = rules.required_slots

        unknown = [slot for slot in picks if slot not in required]
        if unknown:
            raise InvalidSlotError(unknown)
        # A blank player id leaves its slot unfilled.
        filled = {slot for slot, player_id in picks.items() if player_id and player_id.strip()}
        missing = missing_slots(filled, required)
        if missing:
            raise IncompleteSubmissionError(missing)

        existing = self.store.list_selections(contest_id, period=period, participant_id=participant_id)
        existing_picks = {selection.slot: selection.player_id for selection in existing}
        if existing_picks == dict(picks):
            return existing

        now = self.clock()
        if not is_editable(window, now):
            reason = "not open yet" if now < window.opens_at else "deadline has passed"
            raise PeriodLockedError(period, reason)
        if is_complete(set(existing_picks), required):
            raise PeriodLockedError(period, "already submitted")

        history = self.store.list_selections(contest_id, participant_id=participant_id)
        check_use_once(
            picks,
            history,
            participant_id=participant_id,
            period=period,
            required_slots=required,
        )

        names = player_names or {}
        selections = [
            Selection(
                contest_id=contest_id,
                period=period,
                participant_id=participant_id,
                slot=slot,
                player_id=picks[slot],
                player_name=names.get(slot, ""),
                committed_at=now,
            )
            for slot in required
        ]
        self.store.commit_selections(selections)
        self.cache.invalidate_prefix(("reveal", contest_id, period))
        logger.info("Committed picks contest=%s participant=%s period=%s", contest_id, participant_id, period)
        return selections

    def reset_period(self, contest_id: str, participant_id: str, period: int) -> int:
        """Operator reset: delete every slot for the participant/period."""

        self._require_contest(contest_id)
        removed = self.store.clear_period(contest_id, participant_id, period)
        self.cache.invalidate_prefix(("reveal", contest_id, period))
        logger.info(
            "Cleared %s picks contest=%s participant=%s period=%s",
            removed,
            contest_id,
            participant_id,
            period,
        )
        return removed

    def period_states(self, contest_id: str, participant_id: str) -> Dict[int, WindowState]:
        _, rules = self._require_contest(contest_id)
        self._require_participant(contest_id, participant_id)
        now = self.clock()
        slots_by_period: Dict[int, Set[str]] = {}
        for selection in self.store.list_selections(contest_id, participant_id=participant_id):
            slots_by_period.setdefault(selection.period, set()).add(selection.slot)
        return {
            window.period: resolve_window_state(
                window,
                now,
                is_complete(slots_by_period.get(window.period, set()), rules.required_slots),
            )
            for window in self.store.list_windows(contest_id)
        }

    def forbidden_players(self, contest_id: str, participant_id: str, period: int) -> Set[str]:
        _, rules = self._require_contest(contest_id)
        return forbidden_player_ids(
            self.store.list_selections(contest_id, participant_id=participant_id),
            participant_id=participant_id,
            period=period,
            required_slots=rules.required_slots,
        )

    # Reveal

    def reveal_status(self, contest_id: str, period: int, viewer_id: Optional[str]) -> RevealStatus:
        _, rules = self._require_contest(contest_id)
        window = self._require_window(contest_id, period)

        def load() -> RevealStatus:
            return build_reveal_status(
                self.store.list_selections(contest_id, period=period),
                viewer_id=viewer_id,
                participant_labels=self._labels(contest_id),
                required_slots=rules.required_slots,
                now=self.clock(),
                deadline_at=window.deadline_at,
            )

        # A cached status must not outlive the deadline flip.
        ttl = self.reveal_cache_ttl
        if window.deadline_at is not None:
            ttl = min(ttl, max(0.0, (window.deadline_at - self.clock()).total_seconds()))
        return self.cache.get_or_refresh(("reveal", contest_id, period, viewer_id), ttl, load)

    def visible_selections(self, contest_id: str, period: int, viewer_id: Optional[str]) -> List[Selection]:
        """Picks of one period the viewer may see; ``viewer_id=None`` is the privileged view."""

        _, rules = self._require_contest(contest_id)
        window = self._require_window(contest_id, period)
        return visible_for_viewer(
            self.store.list_selections(contest_id, period=period),
            viewer_id=viewer_id,
            required_slots=rules.required_slots,
            now=self.clock(),
            deadline_at=window.deadline_at,
        )

    # Scoring views

    def player_aggregates(self, contest_id: str, period: int, viewer_id: Optional[str]) -> List[PlayerAggregate]:
        contest, rules = self._require_contest(contest_id)
        visible = self.visible_selections(contest_id, period, viewer_id)
        stats = {stat.player_id: stat for stat in self.store.list_stats(contest.season, period)}
        return player_aggregates(
            visible,
            stats,
            coefficients=self.store.get_active_coefficients(),
            slot_order=rules.required_slots,
        )

    def leaderboard(
        self,
        contest_id: str,
        *,
        periods: Sequence[int] | None = None,
        viewer_id: Optional[str] = None,
    ) -> List[LeaderboardEntry]:
        self._require_contest(contest_id)
        known = [window.period for window in self.store.list_windows(contest_id)]
        selected: Iterable[int] = known if not periods else [period for period in periods if period in known]
        per_period = [
            participant_totals(self.player_aggregates(contest_id, period, viewer_id))
            for period in selected
        ]
        labels = self._labels(contest_id)
        return rank_entries(combine_totals(per_period), labels=labels, participant_ids=labels.keys())

    # Stats

    def refresh_stats(self, contest_id: str, period: int, *, force: bool = False) -> RefreshSummary:
        if self.refresher is None:
            raise WeekpicksError("No stats provider configured")
        self._require_contest(contest_id)
        return self.refresher.refresh(contest_id, period, force=force)
