"""Player roll-ups and ranked standings."""

from .ranker import (
    LeaderboardEntry,
    PlayerAggregate,
    combine_totals,
    participant_totals,
    player_aggregates,
    rank_entries,
)

__all__ = [
    "LeaderboardEntry",
    "PlayerAggregate",
    "combine_totals",
    "participant_totals",
    "player_aggregates",
    "rank_entries",
]
