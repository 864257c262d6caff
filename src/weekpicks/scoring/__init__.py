"""Point calculation, stat merging and provider refresh."""

from .calculator import DEFAULT_COEFFICIENTS, calculate_points, stat_points
from .merge import merge_stats
from .provider import ApiSportsStatsFetcher, StatsFetcher, extract_provider_stats
from .refresh import GAME_ACTIVE_WINDOW, PlayerRefreshResult, RefreshSummary, StatsRefresher, count_active_games

__all__ = [
    "DEFAULT_COEFFICIENTS",
    "GAME_ACTIVE_WINDOW",
    "ApiSportsStatsFetcher",
    "PlayerRefreshResult",
    "RefreshSummary",
    "StatsFetcher",
    "StatsRefresher",
    "calculate_points",
    "count_active_games",
    "extract_provider_stats",
    "merge_stats",
    "stat_points",
]
