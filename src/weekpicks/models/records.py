"""Canonical contest records shared across rules, storage and API layers."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


STAT_CATEGORIES: tuple[str, ...] = (
    "pass_yds",
    "pass_tds",
    "interceptions",
    "rush_yds",
    "rush_tds",
    "rec_yds",
    "rec_tds",
    "fumbles_lost",
    "two_pt_conversions",
)


class Selection(BaseModel):
    """One participant's pick for one slot in one period."""

    contest_id: str = Field(..., min_length=1)
    period: int
    participant_id: Optional[str] = None
    slot: str
    player_id: str = Field(..., min_length=1)
    player_name: str = ""
    committed_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class PeriodWindow(BaseModel):
    period: int
    opens_at: datetime
    deadline_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class PlayerPeriodStat(BaseModel):
    player_id: str = Field(..., min_length=1)
    period: int
    category_values: Dict[str, float] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    def value(self, category: str) -> float:
        return float(self.category_values.get(category) or 0)


class ScoringCoefficients(BaseModel):
    """Active point settings; defaults are standard scoring."""

    pass_yds_per_point: float = Field(default=25.0, gt=0)
    rush_yds_per_point: float = Field(default=10.0, gt=0)
    rec_yds_per_point: float = Field(default=10.0, gt=0)
    pass_td_points: float = 5.0
    rush_td_points: float = 6.0
    rec_td_points: float = 6.0
    interception_points: float = -2.0
    fumble_lost_points: float = -2.0
    two_pt_conversion_points: float = 2.0

    model_config = ConfigDict(frozen=True)


class Participant(BaseModel):
    """Stable identity plus a display label that may change over time."""

    participant_id: str = Field(..., min_length=1)
    label: str = ""

    model_config = ConfigDict(frozen=True)


class Contest(BaseModel):
    contest_id: str = Field(..., min_length=1)
    name: str = ""
    season: int
    mode: str = "PLAYOFFS"

    model_config = ConfigDict(frozen=True)
