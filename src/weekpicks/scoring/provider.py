"""Stats provider client and payload normalization."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

import httpx

from weekpicks.errors import UpstreamFetchError
from weekpicks.models import STAT_CATEGORIES


logger = logging.getLogger(__name__)

# (group name, stat name) -> category
_GROUP_STAT_MAP: dict[tuple[str, str], str] = {
    ("passing", "yards"): "pass_yds",
    ("passing", "passing touch downs"): "pass_tds",
    ("passing", "interceptions"): "interceptions",
    ("rushing", "yards"): "rush_yds",
    ("rushing", "rushing touch downs"): "rush_tds",
    ("receiving", "yards"): "rec_yds",
    ("receiving", "receiving touch downs"): "rec_tds",
    ("fumbles", "fumbles lost"): "fumbles_lost",
}
_TWO_POINT_GROUPS = {"passing", "rushing", "receiving"}


class StatsFetcher(Protocol):
    def __call__(self, player_id: str, period: int) -> Optional[dict[str, float]]:
        """Return category values, ``None`` when the player has no game, or raise UpstreamFetchError."""


def _to_float(raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def extract_provider_stats(payload: Mapping[str, Any] | None) -> dict[str, float]:
    """Normalize a grouped player-statistics payload into category values.

    Two-point conversions are credited from every group the player appears in.
    """

    stats = {category: 0.0 for category in STAT_CATEGORIES}
    response = (payload or {}).get("response") or []
    if not response or not response[0].get("groups"):
        logger.debug("No stat groups in provider payload")
        return stats

    two_point_total = 0.0
    for group in response[0]["groups"]:
        group_name = str(group.get("name") or "").lower()
        players = group.get("players") or []
        if not players:
            continue
        for stat in players[0].get("statistics") or []:
            stat_name = str(stat.get("name") or "").lower()
            value = _to_float(stat.get("value"))
            if stat_name == "two pt" and group_name in _TWO_POINT_GROUPS:
                two_point_total += value
                continue
            category = _GROUP_STAT_MAP.get((group_name, stat_name))
            if category:
                stats[category] = value
    stats["two_pt_conversions"] = two_point_total
    return stats


class ApiSportsStatsFetcher:
    """Fetch per-game player statistics over HTTP.

    ``game_lookup`` maps ``(player_id, period)`` to the provider game id; a player
    without a game is skipped rather than fetched.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None,
        game_lookup: Mapping[tuple[str, int], str],
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._game_lookup = game_lookup
        headers = {"accept": "application/json"}
        if api_key:
            headers["x-apisports-key"] = api_key
        self._client = client or httpx.Client(base_url=base_url, headers=headers, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __call__(self, player_id: str, period: int) -> Optional[dict[str, float]]:
        game_id = self._game_lookup.get((player_id, period))
        if game_id is None:
            logger.warning("No game found for player %s in period %s", player_id, period)
            return None
        try:
            resp = self._client.get(
                "/games/statistics/players",
                params={"id": game_id, "player": player_id},
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamFetchError(player_id, period, f"HTTP {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamFetchError(player_id, period, str(exc) or type(exc).__name__) from exc
        try:
            return extract_provider_stats(payload)
        except (AttributeError, TypeError, KeyError, IndexError) as exc:
            raise UpstreamFetchError(player_id, period, f"malformed payload: {exc}") from exc
