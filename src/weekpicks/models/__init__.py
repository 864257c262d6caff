"""Shared pydantic records."""

from .records import (
    STAT_CATEGORIES,
    Contest,
    Participant,
    PeriodWindow,
    PlayerPeriodStat,
    ScoringCoefficients,
    Selection,
)

__all__ = [
    "STAT_CATEGORIES",
    "Contest",
    "Participant",
    "PeriodWindow",
    "PlayerPeriodStat",
    "ScoringCoefficients",
    "Selection",
]
