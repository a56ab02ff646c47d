"""
Analytics JSON API over the seeded demo squad (reference date 2025-01-15).
"""

import pytest

import main  # type: ignore
from club_data.repo import DEMO_PLAYER_LINKS, InMemoryClubRepo, UnavailableClubRepo, demo_tables
from utils.club_sessions import client_for, login_as


pytestmark = pytest.mark.anyio("asyncio")


async def _get(role: str, path: str, **params):
    sid = login_as(main, role)
    async with client_for(main, sid) as client:
        return await client.get(path, params=params or None)


@pytest.mark.anyio
async def test_team_metrics():
    r = await _get("coach", "/api/team/metrics")
    assert r.status_code == 200
    assert r.headers.get("Cache-Control") == "private, no-store"
    body = r.json()
    assert body["win_rate"] == 50
    assert body["training_attendance"] == 75
    assert body["available_players"] == 4
    assert body["team_goals"] == 6


@pytest.mark.anyio
async def test_squad_availability():
    r = await _get("management", "/api/squad/availability")
    assert r.json() == {"available": 3, "light_training": 1, "injured": 1, "suspended": 1, "total": 6}


@pytest.mark.anyio
async def test_players_list_includes_status():
    r = await _get("analyst", "/api/players")
    body = r.json()
    assert [p["name"] for p in body] == sorted(p["name"] for p in body)
    by_id = {p["id"]: p for p in body}
    assert by_id["p3"]["status"] == "injured"
    assert by_id["p4"]["status"] == "suspended"
    assert by_id["p1"]["position"] == "Forward"


@pytest.mark.anyio
async def test_player_disciplinary():
    r = await _get("coach", "/api/players/p2/disciplinary")
    body = r.json()
    assert body["yellow_cards"] == 4
    assert body["risk_level"] == "AT RISK"
    assert body["cards_until_suspension"] == 1
    assert isinstance(body["team_average_fair_play"], float)


@pytest.mark.anyio
async def test_unknown_player_is_404():
    r = await _get("coach", "/api/players/nobody/disciplinary")
    assert r.status_code == 404
    assert r.json() == {"error": "not_found"}


@pytest.mark.anyio
async def test_player_status_registration_warning():
    r = await _get("coach", "/api/players/p5/status")
    assert r.json() == {
        "status": "available",
        "status_text": "Available",
        "description": "Registration expires in 16 days",
    }


@pytest.mark.anyio
async def test_players_at_risk_for_compliance_roles_only():
    ok = await _get("management", "/api/players-at-risk")
    assert [(row["id"], row["risk_level"]) for row in ok.json()] == [
        ("p6", "HIGH"),
        ("p4", "HIGH"),
        ("p2", "MEDIUM"),
    ]
    denied = await _get("coach", "/api/players-at-risk")
    assert denied.status_code == 403


@pytest.mark.anyio
async def test_shot_stats_filters():
    r = await _get("analyst", "/api/shots/stats", player_id="p1", period="Second Half")
    stats = r.json()["statistics"]
    assert stats["total_shots"] == 2
    assert stats["goals"] == 1
    assert stats["blocked"] == 1


@pytest.mark.anyio
async def test_player_shot_stats_are_forced_to_own_record():
    r = await _get("player", "/api/shots/stats", player_id="p2")
    assert r.status_code == 200
    stats = r.json()["statistics"]
    assert stats["total_shots"] == 5
    assert stats["conversion_rate"] == 60.0


@pytest.mark.anyio
async def test_development_progress():
    r = await _get("performance_director", "/api/development/progress")
    body = r.json()
    assert body["targets_met_percentage"] == 75
    assert [t["team_name"] for t in body["teams"]] == ["U16", "U18", "U23"]


@pytest.mark.anyio
async def test_advanced_analytics_roles():
    ok = await _get("analyst", "/api/analytics/advanced")
    assert ok.status_code == 200
    body = ok.json()
    assert set(body) == {"shots", "goals_by_player", "development", "match_record"}
    assert body["goals_by_player"][0] == {"player_id": "p1", "name": "Marcus Reed", "goals": 3}
    assert body["match_record"] == {"wins": 2, "draws": 1, "losses": 1}

    denied = await _get("coach", "/api/analytics/advanced")
    assert denied.status_code == 403


@pytest.mark.anyio
async def test_report_export_not_implemented():
    r = await _get("coach", "/api/reports/p1")
    assert r.status_code == 501
    assert r.json()["error"] == "not_implemented"


@pytest.mark.anyio
async def test_fetch_failure_returns_502(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        main,
        "_fetch_profile_row",
        lambda identity: {"id": identity.sub, "email": identity.email, "full_name": "Chris", "role": "coach"},
    )
    monkeypatch.setattr(main, "REPO", UnavailableClubRepo())
    r = await _get("coach", "/api/team/metrics")
    assert r.status_code == 502
    assert r.json() == {"error": "fetch_failed"}


@pytest.mark.anyio
async def test_shot_stats_filter_by_period_name():
    r = await _get("analyst", "/api/shots/stats", period="First Half")
    assert r.status_code == 200
    stats = r.json()["statistics"]
    assert stats["total_shots"] == 4
    assert stats["goals"] == 3


@pytest.mark.anyio
async def test_player_record_comes_from_account_link():
    linked = await _get("player", "/api/profile")
    assert linked.json()["player_id"] == "p1"

    main.REPO.insert("users", {"id": "user-player-2", "email": "p2@test.com", "full_name": "Jonas Keller", "role": "player"})
    sid = main.SESSION_STORE.create(sub="user-player-2", email="p2@test.com").session_id
    async with client_for(main, sid) as client:
        profile = await client.get("/api/profile")
        shots = await client.get("/api/shots/stats")
    assert profile.json()["player_id"] is None
    assert shots.status_code == 403

    main.REPO.link_player("user-player-2", "p2")
    sid = main.SESSION_STORE.create(sub="user-player-2", email="p2@test.com").session_id
    async with client_for(main, sid) as client:
        own = await client.get("/api/players/p2/status")
        other = await client.get("/api/players/p1/status")
    assert own.status_code == 200
    assert other.status_code == 403


class _ScopeRecordingRepo(InMemoryClubRepo):
    def as_user(self, user_id, access_token=None):
        self.scopes.append((user_id, access_token))
        return super().as_user(user_id, access_token)


@pytest.mark.anyio
async def test_reads_use_each_sessions_own_token(monkeypatch: pytest.MonkeyPatch):
    repo = _ScopeRecordingRepo(demo_tables(), player_links=DEMO_PLAYER_LINKS)
    repo.scopes = []
    monkeypatch.setattr(main, "REPO", repo)
    coach = main.SESSION_STORE.create(sub="user-coach", email="coach@test.com", access_token="TOKEN-COACH")
    player = main.SESSION_STORE.create(sub="user-player", email="player@test.com", access_token="TOKEN-PLAYER")

    async with client_for(main, coach.session_id) as client:
        assert (await client.get("/api/team/metrics")).status_code == 200
    async with client_for(main, player.session_id) as client:
        assert (await client.get("/api/shots/stats")).status_code == 200
    async with client_for(main, coach.session_id) as client:
        assert (await client.get("/api/squad/availability")).status_code == 200

    tokens = {}
    for sub, token in repo.scopes:
        tokens.setdefault(sub, set()).add(token)
    assert tokens == {"user-coach": {"TOKEN-COACH"}, "user-player": {"TOKEN-PLAYER"}}
