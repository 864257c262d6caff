"""Decide which participants' picks a viewer may see for a period.

A viewer sees another participant's picks for a period once the viewer has a
complete submission of their own for that period, or once the period deadline
(first kickoff) has been reached. Before the deadline only participants who
have themselves completed a submission are revealed. Records lacking a
participant identity never pass a filter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Literal, Mapping, Optional, Sequence

from weekpicks.models import Selection
from weekpicks.rules.submissions import group_by_participant, is_complete, submitted_participant_ids
from weekpicks.rules.window import is_past


RevealReason = Literal["all_submitted", "past_kickoff", "not_revealed"]


@dataclass(frozen=True)
class SubmittedParticipant:
    participant_id: str
    label: str


@dataclass(frozen=True)
class RevealStatus:
    """Roster-level view that never exposes the picks themselves."""

    viewer_submitted_complete: bool
    past_deadline: bool
    submitted_participant_ids: List[str]
    submitted_participants: List[SubmittedParticipant]
    total_participants: int
    submitted_count: int
    deadline_at: Optional[datetime]
    all_submitted: bool = False
    reason: RevealReason = "not_revealed"
    can_view: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "can_view", can_view(self.viewer_submitted_complete, self.past_deadline))


def past_deadline(now: datetime, deadline_at: Optional[datetime]) -> bool:
    return is_past(now, deadline_at)


def can_view(viewer_complete: bool, is_past_deadline: bool) -> bool:
    return viewer_complete or is_past_deadline


def filter_visible(
    selections: Iterable[Selection],
    submitted_ids: Iterable[str],
    is_past_deadline: bool,
) -> List[Selection]:
    if is_past_deadline:
        return [selection for selection in selections if selection.participant_id]
    allowed = set(submitted_ids)
    return [
        selection
        for selection in selections
        if selection.participant_id and selection.participant_id in allowed
    ]


def visible_for_viewer(
    selections: Sequence[Selection],
    *,
    viewer_id: Optional[str],
    required_slots: Iterable[str],
    now: datetime,
    deadline_at: Optional[datetime],
) -> List[Selection]:
    """Selections of one period visible to ``viewer_id``.

    ``viewer_id=None`` is the privileged view and returns every identified selection.
    The viewer's own picks are always included.
    """

    if viewer_id is None:
        return filter_visible(selections, (), True)

    required = tuple(required_slots)
    groups = group_by_participant(selections)
    is_past_deadline = past_deadline(now, deadline_at)
    viewer_complete = is_complete(groups.get(viewer_id, set()), required)
    if not can_view(viewer_complete, is_past_deadline):
        return [selection for selection in selections if selection.participant_id == viewer_id]
    return filter_visible(selections, submitted_participant_ids(groups, required), is_past_deadline)


def build_reveal_status(
    selections: Iterable[Selection],
    *,
    viewer_id: Optional[str],
    participant_labels: Mapping[str, str],
    required_slots: Iterable[str],
    now: datetime,
    deadline_at: Optional[datetime],
) -> RevealStatus:
    """Summarize who has submitted without revealing what they picked.

    ``participant_labels`` lists every contest participant (id -> display label).
    Submissions from ids outside it still count; their label falls back to the id.
    """

    required = tuple(required_slots)
    groups = group_by_participant(selections)
    submitted_ids = submitted_participant_ids(groups, required)
    is_past_deadline = past_deadline(now, deadline_at)
    viewer_complete = bool(viewer_id) and is_complete(groups.get(viewer_id or "", set()), required)

    total = len(participant_labels)
    submitted_count = len(submitted_ids)
    all_submitted = total > 0 and submitted_count >= total

    reason: RevealReason = "not_revealed"
    if all_submitted:
        reason = "all_submitted"
    elif is_past_deadline:
        reason = "past_kickoff"

    return RevealStatus(
        viewer_submitted_complete=viewer_complete,
        past_deadline=is_past_deadline,
        submitted_participant_ids=submitted_ids,
        submitted_participants=[
            SubmittedParticipant(participant_id=pid, label=participant_labels.get(pid) or pid)
            for pid in submitted_ids
        ],
        total_participants=total,
        submitted_count=submitted_count,
        deadline_at=deadline_at,
        all_submitted=all_submitted,
        reason=reason,
    )
