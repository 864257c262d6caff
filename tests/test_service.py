from datetime import datetime, timedelta, timezone

import pytest

from weekpicks.errors import (
    DuplicateSelectionError,
    IncompleteSubmissionError,
    InvalidSlotError,
    NotFoundError,
    PeriodLockedError,
    WeekpicksError,
)
from weekpicks.models import Contest, Participant, PeriodWindow, PlayerPeriodStat, Selection
from weekpicks.persistence import PickStore
from weekpicks.rules import WindowState
from weekpicks.service import ContestService


OPENS = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)
DEADLINE = datetime(2025, 1, 11, 18, 0, tzinfo=timezone.utc)


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> _Clock:
    return _Clock(OPENS + timedelta(days=1))


@pytest.fixture
def service(tmp_path, clock: _Clock) -> ContestService:
    service = ContestService(PickStore(tmp_path / "service.sqlite"), clock=clock)
    service.create_contest(Contest(contest_id="c1", name="Playoff Picks", season=2024))
    for participant_id, label in (("alice", "Alice"), ("bob", "Bob"), ("carol", "Carol")):
        service.add_participant("c1", Participant(participant_id=participant_id, label=label))
    for offset, period in enumerate((1, 2)):
        service.set_window(
            "c1",
            PeriodWindow(
                period=period,
                opens_at=OPENS + timedelta(weeks=offset),
                deadline_at=DEADLINE + timedelta(weeks=offset),
            ),
        )
    return service


def _picks(prefix: str) -> dict[str, str]:
    return {"QB": f"{prefix}-qb", "RB": f"{prefix}-rb", "FLEX": f"{prefix}-wr"}


def test_partial_submission_is_rejected(service: ContestService):
    with pytest.raises(IncompleteSubmissionError) as excinfo:
        service.commit_picks("c1", "alice", 1, {"QB": "qb1", "RB": "rb1"})
    assert excinfo.value.missing_slots == ["FLEX"]
    assert service.store.list_selections("c1") == []


def test_unknown_slot_is_rejected(service: ContestService):
    with pytest.raises(InvalidSlotError):
        service.commit_picks("c1", "alice", 1, {**_picks("a"), "K": "k1"})


def test_commit_then_period_state_is_submitted(service: ContestService):
    selections = service.commit_picks("c1", "alice", 1, _picks("a"), player_names={"QB": "Joe Q"})
    assert [selection.slot for selection in selections] == ["QB", "RB", "FLEX"]
    assert selections[0].player_name == "Joe Q"

    states = service.period_states("c1", "alice")
    assert states == {1: WindowState.SUBMITTED, 2: WindowState.FUTURE_LOCKED}
    assert service.period_states("c1", "bob")[1] is WindowState.OPEN_NOT_SUBMITTED


def test_identical_resubmission_is_idempotent(service: ContestService, clock: _Clock):
    first = service.commit_picks("c1", "alice", 1, _picks("a"))
    clock.now = DEADLINE + timedelta(hours=1)
    again = service.commit_picks("c1", "alice", 1, _picks("a"))
    assert [item.player_id for item in again] == [item.player_id for item in first]
    assert again[0].committed_at == first[0].committed_at


def test_completed_period_cannot_be_changed(service: ContestService):
    service.commit_picks("c1", "alice", 1, _picks("a"))
    with pytest.raises(PeriodLockedError) as excinfo:
        service.commit_picks("c1", "alice", 1, _picks("b"))
    assert excinfo.value.reason == "already submitted"


def test_locked_windows(service: ContestService, clock: _Clock):
    with pytest.raises(PeriodLockedError) as excinfo:
        service.commit_picks("c1", "alice", 2, _picks("a"))
    assert excinfo.value.reason == "not open yet"

    clock.now = DEADLINE
    with pytest.raises(PeriodLockedError) as excinfo:
        service.commit_picks("c1", "alice", 1, _picks("a"))
    assert excinfo.value.reason == "deadline has passed"
    assert service.period_states("c1", "alice")[1] is WindowState.PAST_NO_PICKS


def test_players_are_used_once_per_contest(service: ContestService, clock: _Clock):
    service.commit_picks("c1", "alice", 1, _picks("a"))
    clock.now = OPENS + timedelta(weeks=1, days=1)

    assert service.forbidden_players("c1", "alice", 2) == {"a-qb", "a-rb", "a-wr"}
    with pytest.raises(DuplicateSelectionError) as excinfo:
        service.commit_picks("c1", "alice", 2, {"QB": "a-qb", "RB": "b-rb", "FLEX": "b-wr"})
    assert excinfo.value.duplicates == [("QB", "a-qb")]

    # Other participants may still pick the same players.
    service.commit_picks("c1", "bob", 2, _picks("a"))


def test_reset_period_reopens_submission(service: ContestService):
    service.commit_picks("c1", "alice", 1, _picks("a"))
    assert service.reset_period("c1", "alice", 1) == 3
    service.commit_picks("c1", "alice", 1, _picks("b"))
    assert {item.player_id for item in service.store.list_selections("c1")} == set(_picks("b").values())


def test_reveal_status_is_invalidated_on_commit(service: ContestService):
    service.commit_picks("c1", "alice", 1, _picks("a"))
    before = service.reveal_status("c1", 1, "bob")
    assert before.submitted_count == 1
    assert not before.can_view

    service.commit_picks("c1", "bob", 1, _picks("b"))
    after = service.reveal_status("c1", 1, "bob")
    assert after.submitted_count == 2
    assert after.can_view


def test_reveal_status_flips_at_deadline(service: ContestService, clock: _Clock):
    assert not service.reveal_status("c1", 1, "carol").can_view
    clock.now = DEADLINE
    status = service.reveal_status("c1", 1, "carol")
    assert status.can_view
    assert status.past_deadline


def test_visible_selections_follow_reveal_rule(service: ContestService, clock: _Clock):
    service.commit_picks("c1", "alice", 1, _picks("a"))
    service.commit_picks("c1", "bob", 1, _picks("b"))

    assert {item.participant_id for item in service.visible_selections("c1", 1, "carol")} == set()
    assert {item.participant_id for item in service.visible_selections("c1", 1, "bob")} == {"alice", "bob"}
    assert len(service.visible_selections("c1", 1, None)) == 6

    clock.now = DEADLINE
    assert {item.participant_id for item in service.visible_selections("c1", 1, "carol")} == {"alice", "bob"}


def test_leaderboard_ranks_across_periods(service: ContestService, clock: _Clock):
    service.commit_picks("c1", "alice", 1, _picks("a"))
    service.commit_picks("c1", "bob", 1, _picks("b"))
    store = service.store
    store.upsert_stat(2024, PlayerPeriodStat(player_id="a-qb", period=1, category_values={"pass_tds": 2}))
    store.upsert_stat(2024, PlayerPeriodStat(player_id="b-rb", period=1, category_values={"rush_yds": 100}))

    clock.now = DEADLINE
    entries = service.leaderboard("c1")
    assert [(entry.participant_id, entry.total_points, entry.rank) for entry in entries] == [
        ("alice", 10.0, 1),
        ("bob", 10.0, 1),
        ("carol", 0.0, 3),
    ]
    assert entries[2].points_behind_leader == 10.0

    aggregates = service.player_aggregates("c1", 1, None)
    assert {item.player_id for item in aggregates if item.has_reported_stats} == {"a-qb", "b-rb"}
    assert service.leaderboard("c1", periods=[2])[0].total_points == 0.0


def test_unknown_entities(service: ContestService):
    with pytest.raises(NotFoundError):
        service.commit_picks("missing", "alice", 1, _picks("a"))
    with pytest.raises(NotFoundError):
        service.commit_picks("c1", "dave", 1, _picks("a"))
    with pytest.raises(NotFoundError):
        service.commit_picks("c1", "alice", 3, _picks("a"))


def test_window_outside_schedule_and_missing_refresher(service: ContestService):
    with pytest.raises(WeekpicksError):
        service.set_window("c1", PeriodWindow(period=9, opens_at=OPENS))
    with pytest.raises(WeekpicksError):
        service.refresh_stats("c1", 1)


def test_blank_player_id_counts_as_missing_slot(service: ContestService):
    with pytest.raises(IncompleteSubmissionError) as excinfo:
        service.commit_picks("c1", "alice", 1, {"QB": "qb1", "RB": "  ", "FLEX": ""})
    assert excinfo.value.missing_slots == ["RB", "FLEX"]
    assert service.store.list_selections("c1") == []


def test_period_states_for_unknown_participant(service: ContestService):
    with pytest.raises(NotFoundError):
        service.period_states("c1", "dave")


def _scored_period(service: ContestService) -> None:
    service.commit_picks("c1", "alice", 1, _picks("a"))
    service.commit_picks("c1", "bob", 1, _picks("b"))
    # carol only has a legacy partial row that shares alice's quarterback
    service.store.commit_selections(
        [Selection(contest_id="c1", period=1, participant_id="carol", slot="QB", player_id="a-qb")]
    )
    service.store.upsert_stat(2024, PlayerPeriodStat(player_id="a-qb", period=1, category_values={"pass_tds": 2}))
    service.store.upsert_stat(2024, PlayerPeriodStat(player_id="b-rb", period=1, category_values={"rush_yds": 100}))


def test_unsubmitted_viewer_sees_only_own_scores_before_deadline(service: ContestService):
    _scored_period(service)

    aggregates = service.player_aggregates("c1", 1, "carol")
    assert [(item.player_id, item.selectors) for item in aggregates] == [("a-qb", ["carol"])]

    totals = {entry.participant_id: entry.total_points for entry in service.leaderboard("c1", viewer_id="carol")}
    assert totals == {"carol": 10.0, "alice": 0.0, "bob": 0.0}


def test_submitted_viewer_sees_only_submitted_opponents_before_deadline(service: ContestService, clock: _Clock):
    _scored_period(service)

    aggregates = service.player_aggregates("c1", 1, "alice")
    selectors = {selector for item in aggregates for selector in item.selectors}
    assert selectors == {"alice", "bob"}
    qb = next(item for item in aggregates if item.player_id == "a-qb")
    assert qb.selectors == ["alice"]

    entries = service.leaderboard("c1", viewer_id="alice")
    assert [(entry.participant_id, entry.total_points, entry.rank) for entry in entries] == [
        ("alice", 10.0, 1),
        ("bob", 10.0, 1),
        ("carol", 0.0, 3),
    ]

    clock.now = DEADLINE
    qb = next(item for item in service.player_aggregates("c1", 1, "alice") if item.player_id == "a-qb")
    assert qb.selectors == ["alice", "carol"]
