"""Pydantic models for API I/O."""

from .picks import ForbiddenPlayersResponse, PeriodStateResponse, PickRequest, SelectionResponse
from .reveal import RevealStatusResponse, SubmittedParticipantResponse
from .standings import LeaderboardEntryResponse, LeaderboardResponse, PlayerAggregateResponse
from .stats import PlayerRefreshResponse, RefreshSummaryResponse, ScoringSettingsRequest

__all__ = [
    "ForbiddenPlayersResponse",
    "LeaderboardEntryResponse",
    "LeaderboardResponse",
    "PeriodStateResponse",
    "PickRequest",
    "PlayerAggregateResponse",
    "PlayerRefreshResponse",
    "RefreshSummaryResponse",
    "RevealStatusResponse",
    "ScoringSettingsRequest",
    "SelectionResponse",
    "SubmittedParticipantResponse",
]
