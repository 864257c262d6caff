"""Group raw selections by participant and track completeness."""

from __future__ import annotations

from typing import Collection, Dict, Iterable, List, Mapping, Set

from weekpicks.models import Selection


def group_by_participant(selections: Iterable[Selection]) -> Dict[str, Set[str]]:
    """Map participant id to the set of slots they filled.

    Duplicate (participant, slot) rows collapse; rows without an identity are skipped.
    """

    groups: Dict[str, Set[str]] = {}
    for selection in selections:
        participant_id = selection.participant_id
        if not participant_id:
            continue
        groups.setdefault(participant_id, set()).add(selection.slot)
    return groups


def is_complete(slots: Collection[str], required_slots: Iterable[str]) -> bool:
    return all(slot in slots for slot in required_slots)


def missing_slots(slots: Collection[str], required_slots: Iterable[str]) -> List[str]:
    return [slot for slot in required_slots if slot not in slots]


def submitted_participant_ids(
    groups: Mapping[str, Collection[str]],
    required_slots: Iterable[str],
) -> List[str]:
    required = tuple(required_slots)
    return [participant_id for participant_id, slots in groups.items() if is_complete(slots, required)]
