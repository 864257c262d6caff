"""Roll picks and player points up into per-player views and standings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from weekpicks.models import PlayerPeriodStat, ScoringCoefficients, Selection
from weekpicks.scoring.calculator import stat_points


@dataclass(frozen=True)
class PlayerAggregate:
    """Who picked a player in one slot, and what the player scored."""

    player_id: str
    player_name: str
    slot: str
    selectors: List[str]
    points: float
    has_reported_stats: bool


@dataclass(frozen=True)
class LeaderboardEntry:
    participant_id: str
    label: str
    total_points: float
    rank: int
    points_behind_leader: float


def player_aggregates(
    selections: Iterable[Selection],
    stats: Mapping[str, PlayerPeriodStat],
    *,
    coefficients: Optional[ScoringCoefficients] = None,
    slot_order: Sequence[str] = (),
) -> List[PlayerAggregate]:
    """Group one period's selections by (slot, player).

    Pass only selections the requesting viewer is allowed to see.
    """

    grouped: Dict[tuple[str, str], dict] = {}
    for selection in selections:
        if not selection.participant_id:
            continue
        key = (selection.slot, selection.player_id)
        entry = grouped.get(key)
        if entry is None:
            stat = stats.get(selection.player_id)
            entry = grouped[key] = {
                "player_name": selection.player_name,
                "selectors": [],
                "points": stat_points(stat, coefficients),
                "has_reported_stats": stat is not None,
            }
        if selection.participant_id not in entry["selectors"]:
            entry["selectors"].append(selection.participant_id)

    slot_index = {slot: idx for idx, slot in enumerate(slot_order)}
    ordered = sorted(
        grouped.items(),
        key=lambda item: (
            slot_index.get(item[0][0], len(slot_index)),
            item[0][0],
            -item[1]["points"],
            item[1]["player_name"],
        ),
    )
    return [
        PlayerAggregate(
            player_id=player_id,
            player_name=data["player_name"],
            slot=slot,
            selectors=list(data["selectors"]),
            points=data["points"],
            has_reported_stats=data["has_reported_stats"],
        )
        for (slot, player_id), data in ordered
    ]


def participant_totals(aggregates: Iterable[PlayerAggregate]) -> Dict[str, float]:
    """Sum player points per selector identity."""

    totals: Dict[str, float] = {}
    for aggregate in aggregates:
        for participant_id in aggregate.selectors:
            totals[participant_id] = totals.get(participant_id, 0.0) + aggregate.points
    return totals


def combine_totals(per_period: Iterable[Mapping[str, float]]) -> Dict[str, float]:
    combined: Dict[str, float] = {}
    for totals in per_period:
        for participant_id, points in totals.items():
            combined[participant_id] = combined.get(participant_id, 0.0) + points
    return combined


def rank_entries(
    totals: Mapping[str, float],
    *,
    labels: Mapping[str, str] | None = None,
    participant_ids: Iterable[str] = (),
) -> List[LeaderboardEntry]:
    """Sort totals descending and assign shared competition ranks (1, 2, 2, 4).

    Everyone in ``participant_ids`` is listed, with 0 points when absent from ``totals``.
    """

    labels = labels or {}
    scores: Dict[str, float] = {participant_id: 0.0 for participant_id in participant_ids}
    for participant_id, points in totals.items():
        scores[participant_id] = round(points, 2)

    ordered = sorted(
        scores.items(),
        key=lambda item: (-item[1], labels.get(item[0], item[0]).lower(), item[0]),
    )
    if not ordered:
        return []

    leader_total = ordered[0][1]
    entries: List[LeaderboardEntry] = []
    previous_total: float | None = None
    rank = 0
    for position, (participant_id, total) in enumerate(ordered, start=1):
        if previous_total is None or total != previous_total:
            rank = position
            previous_total = total
        entries.append(
            LeaderboardEntry(
                participant_id=participant_id,
                label=labels.get(participant_id) or participant_id,
                total_points=total,
                rank=rank,
                points_behind_leader=round(max(0.0, leader_total - total), 2),
            )
        )
    return entries
