from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from weekpicks.api import create_app
from weekpicks.models import Contest, Participant, PeriodWindow
from weekpicks.persistence import PickStore
from weekpicks.settings import Settings


OPENS = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)
DEADLINE = datetime(2025, 1, 11, 18, 0, tzinfo=timezone.utc)
ADMIN = {"X-Admin-Token": "admin-token"}


class _Clock:
    def __init__(self) -> None:
        self.now = OPENS + timedelta(days=1)

    def __call__(self) -> datetime:
        return self.now


def _fetcher(player_id: str, period: int):
    if player_id == "qb1":
        return {"pass_yds": 300, "pass_tds": 2, "interceptions": 1}
    return None


def _settings(tmp_path) -> Settings:
    return Settings(
        db_path=str(tmp_path / "api.sqlite"),
        sync_min_interval=60,
        reveal_cache_ttl=30,
        stats_api_url="https://stats.test",
        stats_api_key=None,
        admin_token="admin-token",
        http_timeout=5.0,
    )


@pytest.fixture
async def client(tmp_path):
    settings = _settings(tmp_path)
    store = PickStore(settings.db_path)
    store.save_contest(Contest(contest_id="c1", name="Playoff Picks", season=2024))
    store.save_participant("c1", Participant(participant_id="alice", label="Alice"))
    store.save_participant("c1", Participant(participant_id="bob", label="Bob"))
    store.save_window("c1", PeriodWindow(period=1, opens_at=OPENS, deadline_at=DEADLINE))
    store.save_window("c1", PeriodWindow(period=2, opens_at=OPENS + timedelta(weeks=1)))

    clock = _Clock()
    app = create_app(store=store, clock=clock, fetcher=_fetcher, settings=settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        async_client.clock = clock
        yield async_client


def _as(participant_id: str) -> dict[str, str]:
    return {"X-Participant-Id": participant_id}


async def _commit(client: AsyncClient, participant_id: str, picks: dict[str, str], period: int = 1):
    return await client.put(
        f"/contests/c1/periods/{period}/picks",
        json={"picks": picks},
        headers=_as(participant_id),
    )


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.anyio
async def test_participant_header_required(client: AsyncClient):
    resp = await client.get("/contests/c1/periods")
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_period_states(client: AsyncClient):
    resp = await client.get("/contests/c1/periods", headers=_as("alice"))
    assert resp.status_code == 200
    assert resp.json() == [
        {"period": 1, "state": "open_not_submitted"},
        {"period": 2, "state": "future_locked"},
    ]


@pytest.mark.anyio
async def test_commit_and_reveal_flow(client: AsyncClient):
    resp = await _commit(client, "alice", {"QB": "qb1", "RB": "rb1"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["missing_slots"] == ["FLEX"]

    resp = await _commit(client, "alice", {"QB": "qb1", "RB": "rb1", "FLEX": "wr1"})
    assert resp.status_code == 200
    assert [item["slot"] for item in resp.json()] == ["QB", "RB", "FLEX"]

    resp = await _commit(client, "alice", {"QB": "qb1", "RB": "rb1", "FLEX": "wr1"})
    assert resp.status_code == 200

    resp = await _commit(client, "alice", {"QB": "qb2", "RB": "rb1", "FLEX": "wr1"})
    assert resp.status_code == 423
    assert resp.json()["detail"]["reason"] == "already submitted"

    reveal = await client.get("/contests/c1/periods/1/reveal", headers=_as("bob"))
    body = reveal.json()
    assert body["can_view"] is False
    assert body["submitted_participant_ids"] == ["alice"]
    assert body["submitted_participants"] == [{"participant_id": "alice", "label": "Alice"}]
    assert body["total_participants"] == 2

    hidden = await client.get("/contests/c1/periods/1/picks", headers=_as("bob"))
    assert hidden.json() == []

    await _commit(client, "bob", {"QB": "qb1", "RB": "rb2", "FLEX": "te1"})
    reveal = await client.get("/contests/c1/periods/1/reveal", headers=_as("bob"))
    assert reveal.json()["can_view"] is True
    assert reveal.json()["reason"] == "all_submitted"

    visible = await client.get("/contests/c1/periods/1/picks", headers=_as("bob"))
    assert {item["participant_id"] for item in visible.json()} == {"alice", "bob"}


@pytest.mark.anyio
async def test_duplicate_players_rejected(client: AsyncClient):
    resp = await _commit(client, "alice", {"QB": "qb1", "RB": "rb1", "FLEX": "rb1"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["reason"] == "repeated_in_period"

    await _commit(client, "alice", {"QB": "qb1", "RB": "rb1", "FLEX": "wr1"})
    client.clock.now = OPENS + timedelta(weeks=1, days=1)

    forbidden = await client.get("/contests/c1/periods/2/forbidden", headers=_as("alice"))
    assert forbidden.json()["player_ids"] == ["qb1", "rb1", "wr1"]

    resp = await _commit(client, "alice", {"QB": "qb1", "RB": "rb5", "FLEX": "wr5"}, period=2)
    assert resp.status_code == 409
    assert resp.json()["detail"]["duplicates"] == [{"slot": "QB", "player_id": "qb1"}]


@pytest.mark.anyio
async def test_unknown_contest_and_deadline(client: AsyncClient):
    resp = await client.get("/contests/nope/periods", headers=_as("alice"))
    assert resp.status_code == 404

    client.clock.now = DEADLINE
    resp = await _commit(client, "alice", {"QB": "qb1", "RB": "rb1", "FLEX": "wr1"})
    assert resp.status_code == 423
    assert resp.json()["detail"]["reason"] == "deadline has passed"


@pytest.mark.anyio
async def test_refresh_and_leaderboard(client: AsyncClient):
    await _commit(client, "alice", {"QB": "qb1", "RB": "rb1", "FLEX": "wr1"})
    await _commit(client, "bob", {"QB": "qb2", "RB": "rb2", "FLEX": "te1"})

    denied = await client.post("/admin/contests/c1/periods/1/refresh-stats")
    assert denied.status_code == 403

    resp = await client.post("/admin/contests/c1/periods/1/refresh-stats", headers=ADMIN)
    assert resp.status_code == 200
    summary = resp.json()
    assert summary["attempted"] == 6
    assert summary["succeeded"] == 1
    assert summary["skipped"] == 5

    again = await client.post("/admin/contests/c1/periods/1/refresh-stats", headers=ADMIN)
    assert again.status_code == 429
    forced = await client.post("/admin/contests/c1/periods/1/refresh-stats?force=true", headers=ADMIN)
    assert forced.status_code == 200

    board = await client.get("/contests/c1/leaderboard", headers=_as("alice"))
    payload = board.json()
    assert payload["periods"] == [1, 2]
    assert [(entry["participant_id"], entry["total_points"], entry["rank"]) for entry in payload["entries"]] == [
        ("alice", 20.0, 1),
        ("bob", 0.0, 2),
    ]
    assert payload["entries"][1]["points_behind_leader"] == 20.0

    players = await client.get("/contests/c1/periods/1/players", headers=_as("alice"))
    qb = next(item for item in players.json() if item["player_id"] == "qb1")
    assert qb["selectors"] == ["alice"]
    assert qb["has_reported_stats"] is True

    filtered = await client.get("/contests/c1/leaderboard?period=2&period=7", headers=_as("alice"))
    assert filtered.json()["periods"] == [2]


@pytest.mark.anyio
async def test_admin_reset_and_scoring(client: AsyncClient):
    await _commit(client, "alice", {"QB": "qb1", "RB": "rb1", "FLEX": "wr1"})
    resp = await client.delete("/admin/contests/c1/periods/1/picks/alice", headers=ADMIN)
    assert resp.json() == {"removed": 3}

    resp = await client.put(
        "/admin/scoring",
        json={"name": "six-point", "coefficients": {"pass_td_points": 6}},
        headers=ADMIN,
    )
    assert resp.status_code == 200
    assert resp.json()["pass_td_points"] == 6
    assert client.app.state.store.get_active_coefficients().pass_td_points == 6

    bad = await client.put(
        "/admin/scoring",
        json={"coefficients": {"pass_yds_per_point": 0}},
        headers=ADMIN,
    )
    assert bad.status_code == 422


@pytest.mark.anyio
async def test_blank_player_id_is_a_missing_slot(client: AsyncClient):
    resp = await _commit(client, "alice", {"QB": "", "RB": "rb1", "FLEX": "wr1"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["missing_slots"] == ["QB"]
    assert client.app.state.store.list_selections("c1") == []


@pytest.mark.anyio
async def test_period_states_require_membership(client: AsyncClient):
    resp = await client.get("/contests/c1/periods", headers=_as("dave"))
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_refresh_response_reports_completed_status(client: AsyncClient):
    await _commit(client, "alice", {"QB": "qb1", "RB": "rb1", "FLEX": "wr1"})
    resp = await client.post("/admin/contests/c1/periods/1/refresh-stats", headers=ADMIN)
    assert resp.json()["status"] == "completed"
