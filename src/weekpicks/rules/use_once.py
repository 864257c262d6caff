"""Prevent a participant from reusing a player across periods."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Mapping, Set

from weekpicks.errors import DuplicateSelectionError
from weekpicks.models import Selection
from weekpicks.rules.submissions import is_complete


def forbidden_player_ids(
    selections: Iterable[Selection],
    *,
    participant_id: str,
    period: int,
    required_slots: Iterable[str],
) -> Set[str]:
    """Players used by ``participant_id`` in completed periods before ``period``.

    Partial earlier periods do not lock their players.
    """

    required = tuple(required_slots)
    slots_by_period: Dict[int, Set[str]] = defaultdict(set)
    players_by_period: Dict[int, Set[str]] = defaultdict(set)
    for selection in selections:
        if selection.participant_id != participant_id or selection.period >= period:
            continue
        slots_by_period[selection.period].add(selection.slot)
        players_by_period[selection.period].add(selection.player_id)

    forbidden: Set[str] = set()
    for earlier, slots in slots_by_period.items():
        if is_complete(slots, required):
            forbidden.update(players_by_period[earlier])
    return forbidden


def check_use_once(
    picks: Mapping[str, str],
    history: Iterable[Selection],
    *,
    participant_id: str,
    period: int,
    required_slots: Iterable[str],
) -> None:
    """Raise DuplicateSelectionError when any pick in ``picks`` (slot -> player) is not allowed."""

    seen: Dict[str, str] = {}
    repeated: list[tuple[str, str]] = []
    for slot, player_id in picks.items():
        if player_id in seen:
            repeated.append((slot, player_id))
        seen.setdefault(player_id, slot)
    if repeated:
        raise DuplicateSelectionError(repeated, reason="repeated_in_period")

    forbidden = forbidden_player_ids(
        history,
        participant_id=participant_id,
        period=period,
        required_slots=required_slots,
    )
    duplicates = [(slot, player_id) for slot, player_id in picks.items() if player_id in forbidden]
    if duplicates:
        raise DuplicateSelectionError(duplicates)
