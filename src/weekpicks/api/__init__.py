"""REST API for weekly pick contests."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Callable, List, Optional

from fastapi import FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from weekpicks.api.schemas import (
    ForbiddenPlayersResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    PeriodStateResponse,
    PickRequest,
    PlayerAggregateResponse,
    RefreshSummaryResponse,
    RevealStatusResponse,
    ScoringSettingsRequest,
    SelectionResponse,
)
from weekpicks.errors import (
    DuplicateSelectionError,
    IncompleteSubmissionError,
    InvalidSlotError,
    NotFoundError,
    PeriodLockedError,
    RateLimitedError,
    UpstreamFetchError,
    WeekpicksError,
)
from weekpicks.models import ScoringCoefficients, Selection
from weekpicks.persistence import PickStore
from weekpicks.scoring import StatsFetcher, StatsRefresher
from weekpicks.scoring.refresh import KickoffLookup
from weekpicks.service import ContestService, utc_now
from weekpicks.settings import Settings, load_settings


logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[WeekpicksError], int]] = [
    (NotFoundError, 404),
    (IncompleteSubmissionError, 400),
    (InvalidSlotError, 400),
    (DuplicateSelectionError, 409),
    (PeriodLockedError, 423),
    (RateLimitedError, 429),
    (UpstreamFetchError, 502),
]


def _status_for(exc: WeekpicksError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def _selection_to_response(selection: Selection) -> SelectionResponse:
    return SelectionResponse(
        participant_id=selection.participant_id or "",
        period=selection.period,
        slot=selection.slot,
        player_id=selection.player_id,
        player_name=selection.player_name,
        committed_at=selection.committed_at,
    )


def create_app(
    *,
    store: PickStore | None = None,
    clock: Callable[[], datetime] | None = None,
    fetcher: StatsFetcher | None = None,
    settings: Settings | None = None,
    kickoff_lookup: KickoffLookup | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="weekpicks")
    store = store or PickStore(settings.db_path)
    clock = clock or utc_now
    refresher = None
    if fetcher is not None:
        refresher = StatsRefresher(
            store,
            fetcher,
            clock=clock,
            min_interval=settings.sync_min_interval,
            kickoff_lookup=kickoff_lookup,
        )
    service = ContestService(
        store,
        clock=clock,
        refresher=refresher,
        reveal_cache_ttl=settings.reveal_cache_ttl,
    )
    app.state.store = store
    app.state.service = service

    @app.exception_handler(WeekpicksError)
    async def handle_weekpicks_error(request: Request, exc: WeekpicksError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=status, content={"detail": exc.detail})

    def _require_viewer(viewer: str | None) -> str:
        if not viewer:
            raise HTTPException(status_code=401, detail="X-Participant-Id header required")
        return viewer

    def _require_admin(token: str | None) -> None:
        if not settings.admin_token or token != settings.admin_token:
            raise HTTPException(status_code=403, detail="Admin token required")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/contests/{contest_id}/periods", response_model=List[PeriodStateResponse])
    async def period_states(
        contest_id: str,
        x_participant_id: str | None = Header(None),
    ) -> List[PeriodStateResponse]:
        viewer = _require_viewer(x_participant_id)
        states = service.period_states(contest_id, viewer)
        return [PeriodStateResponse(period=period, state=state.value) for period, state in states.items()]

    @app.put("/contests/{contest_id}/periods/{period}/picks", response_model=List[SelectionResponse])
    async def commit_picks(
        contest_id: str,
        period: int,
        payload: PickRequest,
        x_participant_id: str | None = Header(None),
    ) -> List[SelectionResponse]:
        viewer = _require_viewer(x_participant_id)
        selections = service.commit_picks(
            contest_id,
            viewer,
            period,
            payload.picks,
            player_names=payload.player_names,
        )
        return [_selection_to_response(selection) for selection in selections]

    @app.get("/contests/{contest_id}/periods/{period}/picks", response_model=List[SelectionResponse])
    async def list_picks(
        contest_id: str,
        period: int,
        x_participant_id: str | None = Header(None),
    ) -> List[SelectionResponse]:
        viewer = _require_viewer(x_participant_id)
        return [
            _selection_to_response(selection)
            for selection in service.visible_selections(contest_id, period, viewer)
        ]

    @app.get("/contests/{contest_id}/periods/{period}/forbidden", response_model=ForbiddenPlayersResponse)
    async def forbidden_players(
        contest_id: str,
        period: int,
        x_participant_id: str | None = Header(None),
    ) -> ForbiddenPlayersResponse:
        viewer = _require_viewer(x_participant_id)
        player_ids = sorted(service.forbidden_players(contest_id, viewer, period))
        return ForbiddenPlayersResponse(participant_id=viewer, period=period, player_ids=player_ids)

    @app.get("/contests/{contest_id}/periods/{period}/reveal", response_model=RevealStatusResponse)
    async def reveal_status(
        contest_id: str,
        period: int,
        x_participant_id: str | None = Header(None),
    ) -> RevealStatusResponse:
        viewer = _require_viewer(x_participant_id)
        status = service.reveal_status(contest_id, period, viewer)
        return RevealStatusResponse.model_validate(asdict(status))

    @app.get("/contests/{contest_id}/periods/{period}/players", response_model=List[PlayerAggregateResponse])
    async def player_aggregates(
        contest_id: str,
        period: int,
        x_participant_id: str | None = Header(None),
    ) -> List[PlayerAggregateResponse]:
        viewer = _require_viewer(x_participant_id)
        return [
            PlayerAggregateResponse.model_validate(asdict(aggregate))
            for aggregate in service.player_aggregates(contest_id, period, viewer)
        ]

    @app.get("/contests/{contest_id}/leaderboard", response_model=LeaderboardResponse)
    async def leaderboard(
        contest_id: str,
        period: Optional[List[int]] = Query(None),
        x_participant_id: str | None = Header(None),
    ) -> LeaderboardResponse:
        viewer = _require_viewer(x_participant_id)
        entries = service.leaderboard(contest_id, periods=period, viewer_id=viewer)
        known = [window.period for window in store.list_windows(contest_id)]
        periods = [item for item in period if item in known] if period else known
        return LeaderboardResponse(
            contest_id=contest_id,
            periods=periods,
            entries=[LeaderboardEntryResponse.model_validate(asdict(entry)) for entry in entries],
        )

    @app.post(
        "/admin/contests/{contest_id}/periods/{period}/refresh-stats",
        response_model=RefreshSummaryResponse,
    )
    async def refresh_stats(
        contest_id: str,
        period: int,
        force: bool = False,
        x_admin_token: str | None = Header(None),
    ) -> RefreshSummaryResponse:
        _require_admin(x_admin_token)
        if service.refresher is None:
            raise HTTPException(status_code=503, detail="No stats provider configured")
        summary = service.refresh_stats(contest_id, period, force=force)
        return RefreshSummaryResponse.model_validate(asdict(summary))

    @app.delete("/admin/contests/{contest_id}/periods/{period}/picks/{participant_id}")
    async def reset_period(
        contest_id: str,
        period: int,
        participant_id: str,
        x_admin_token: str | None = Header(None),
    ) -> dict[str, int]:
        _require_admin(x_admin_token)
        removed = service.reset_period(contest_id, participant_id, period)
        return {"removed": removed}

    @app.put("/admin/scoring", response_model=ScoringCoefficients)
    async def update_scoring(
        payload: ScoringSettingsRequest,
        x_admin_token: str | None = Header(None),
    ) -> ScoringCoefficients:
        _require_admin(x_admin_token)
        store.set_active_coefficients(payload.coefficients, name=payload.name)
        return store.get_active_coefficients()

    return app
