"""Environment-driven runtime settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "WEEKPICKS_DB_PATH"
_SYNC_INTERVAL_ENV = "WEEKPICKS_SYNC_MIN_INTERVAL"
_REVEAL_TTL_ENV = "WEEKPICKS_REVEAL_CACHE_TTL"
_STATS_URL_ENV = "WEEKPICKS_STATS_API_URL"
_STATS_KEY_ENV = "WEEKPICKS_STATS_API_KEY"
_ADMIN_TOKEN_ENV = "WEEKPICKS_ADMIN_TOKEN"
_HTTP_TIMEOUT_ENV = "WEEKPICKS_HTTP_TIMEOUT"

_SYNC_INTERVAL_DEFAULT = 60
_REVEAL_TTL_DEFAULT = 30
_HTTP_TIMEOUT_DEFAULT = 10.0
_STATS_URL_DEFAULT = "https://v1.american-football.api-sports.io"


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    db_path: str
    sync_min_interval: int
    reveal_cache_ttl: int
    stats_api_url: str
    stats_api_key: str | None
    admin_token: str | None
    http_timeout: float


def load_settings() -> Settings:
    default_db = Path(__file__).resolve().parent.parent / "weekpicks.sqlite"
    return Settings(
        db_path=os.getenv(_DB_PATH_ENV) or str(default_db),
        sync_min_interval=_env_int(_SYNC_INTERVAL_ENV, _SYNC_INTERVAL_DEFAULT, min_value=0),
        reveal_cache_ttl=_env_int(_REVEAL_TTL_ENV, _REVEAL_TTL_DEFAULT, min_value=0),
        stats_api_url=os.getenv(_STATS_URL_ENV) or _STATS_URL_DEFAULT,
        stats_api_key=os.getenv(_STATS_KEY_ENV) or None,
        admin_token=os.getenv(_ADMIN_TOKEN_ENV) or None,
        http_timeout=_env_float(_HTTP_TIMEOUT_ENV, _HTTP_TIMEOUT_DEFAULT, clamp_min=0.1),
    )
