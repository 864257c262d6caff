from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel

from weekpicks.models import ScoringCoefficients


class PlayerRefreshResponse(BaseModel):
    player_id: str
    status: str
    points: float | None = None
    error: str | None = None


class RefreshSummaryResponse(BaseModel):
    contest_id: str
    period: int
    started_at: datetime
    attempted: int
    succeeded: int
    skipped: int
    failed: int
    duration_seconds: float
    status: Literal["completed", "no_active_games"] = "completed"
    active_games: int | None = None
    results: List[PlayerRefreshResponse]


class ScoringSettingsRequest(BaseModel):
    name: str = "custom"
    coefficients: ScoringCoefficients
