from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class PickRequest(BaseModel):
    picks: Dict[str, str] = Field(..., description="Roster slot -> player id")
    player_names: Dict[str, str] = Field(default_factory=dict)


class SelectionResponse(BaseModel):
    participant_id: str
    period: int
    slot: str
    player_id: str
    player_name: str
    committed_at: datetime | None = None


class PeriodStateResponse(BaseModel):
    period: int
    state: str


class ForbiddenPlayersResponse(BaseModel):
    participant_id: str
    period: int
    player_ids: List[str]
