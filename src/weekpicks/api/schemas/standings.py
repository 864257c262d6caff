from __future__ import annotations

from typing import List

from pydantic import BaseModel


class PlayerAggregateResponse(BaseModel):
    player_id: str
    player_name: str
    slot: str
    selectors: List[str]
    points: float
    has_reported_stats: bool


class LeaderboardEntryResponse(BaseModel):
    participant_id: str
    label: str
    total_points: float
    rank: int
    points_behind_leader: float


class LeaderboardResponse(BaseModel):
    contest_id: str
    periods: List[int]
    entries: List[LeaderboardEntryResponse]
