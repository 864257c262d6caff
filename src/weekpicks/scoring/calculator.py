"""Convert per-period player statistics into fantasy points."""

from __future__ import annotations

from typing import Mapping, Optional

from weekpicks.models import PlayerPeriodStat, ScoringCoefficients


DEFAULT_COEFFICIENTS = ScoringCoefficients()


def _value(categories: Mapping[str, float | None], key: str) -> float:
    return float(categories.get(key) or 0)


def calculate_points(
    categories: Mapping[str, float | None],
    coefficients: Optional[ScoringCoefficients] = None,
) -> float:
    settings = coefficients or DEFAULT_COEFFICIENTS
    points = (
        _value(categories, "pass_tds") * settings.pass_td_points
        + _value(categories, "pass_yds") / settings.pass_yds_per_point
        + _value(categories, "rush_tds") * settings.rush_td_points
        + _value(categories, "rush_yds") / settings.rush_yds_per_point
        + _value(categories, "rec_tds") * settings.rec_td_points
        + _value(categories, "rec_yds") / settings.rec_yds_per_point
        + _value(categories, "interceptions") * settings.interception_points
        + _value(categories, "fumbles_lost") * settings.fumble_lost_points
        + _value(categories, "two_pt_conversions") * settings.two_pt_conversion_points
    )
    return round(points, 2)


def stat_points(stat: Optional[PlayerPeriodStat], coefficients: Optional[ScoringCoefficients] = None) -> float:
    if stat is None:
        return 0.0
    return calculate_points(stat.category_values, coefficients)
