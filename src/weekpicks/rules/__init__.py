"""Period lifecycle, submission, use-once and reveal rules."""

from .reveal import (
    RevealStatus,
    SubmittedParticipant,
    build_reveal_status,
    can_view,
    filter_visible,
    past_deadline,
    visible_for_viewer,
)
from .submissions import group_by_participant, is_complete, missing_slots, submitted_participant_ids
from .use_once import check_use_once, forbidden_player_ids
from .window import WindowState, current_open_period, is_editable, is_period_in_contest, resolve_window_state

__all__ = [
    "RevealStatus",
    "SubmittedParticipant",
    "WindowState",
    "build_reveal_status",
    "can_view",
    "check_use_once",
    "current_open_period",
    "filter_visible",
    "forbidden_player_ids",
    "group_by_participant",
    "is_complete",
    "is_editable",
    "is_period_in_contest",
    "missing_slots",
    "past_deadline",
    "resolve_window_state",
    "submitted_participant_ids",
    "visible_for_viewer",
]
