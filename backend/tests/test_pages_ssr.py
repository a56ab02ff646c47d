"""
Server-rendered pages per role over the seeded demo squad.
"""

import pytest

import main  # type: ignore
from club_data.repo import UnavailableClubRepo
from utils.club_sessions import client_for, login_as


pytestmark = pytest.mark.anyio("asyncio")


async def _page(role: str, path: str, **kwargs):
    sid = login_as(main, role)
    async with client_for(main, sid) as client:
        return await client.get(path, **kwargs)


@pytest.mark.anyio
async def test_coach_dashboard_shows_availability_and_squad():
    r = await _page("coach", "/dashboard")
    assert r.status_code == 200
    assert 'id="team-metrics"' in r.text
    assert 'id="squad-availability"' in r.text
    assert 'id="squad"' in r.text
    assert 'id="players-at-risk"' not in r.text


@pytest.mark.anyio
async def test_management_dashboard_lists_players_at_risk():
    r = await _page("management", "/dashboard")
    assert 'id="players-at-risk"' in r.text
    assert "Samir Haddad" in r.text
    assert 'id="development-progress"' not in r.text


@pytest.mark.anyio
async def test_performance_director_dashboard_shows_development():
    r = await _page("performance_director", "/dashboard")
    assert 'id="development-progress"' in r.text
    assert 'id="team-progress"' in r.text


@pytest.mark.anyio
async def test_analyst_dashboard_shows_shooting():
    r = await _page("analyst", "/dashboard")
    assert 'id="shot-stats"' in r.text
    assert "62.5%" in r.text


@pytest.mark.anyio
async def test_player_dashboard_is_own_overview():
    r = await _page("player", "/dashboard")
    assert r.status_code == 200
    assert "Marcus Reed" in r.text
    assert 'id="disciplinary"' in r.text
    assert "9.9/10" in r.text
    assert 'id="team-metrics"' not in r.text
    assert "Jonas Keller" not in r.text


@pytest.mark.anyio
async def test_player_without_linked_record_sees_empty_state(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        main,
        "_fetch_profile_row",
        lambda identity: {"id": identity.sub, "email": identity.email, "full_name": "New Player", "role": "player"},
    )
    r = await _page("player", "/dashboard")
    assert "not linked to a player record" in r.text


@pytest.mark.anyio
async def test_dashboard_fetch_failure_shows_retry(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        main,
        "_fetch_profile_row",
        lambda identity: {"id": identity.sub, "email": identity.email, "full_name": "Chris", "role": "coach"},
    )
    monkeypatch.setattr(main, "REPO", UnavailableClubRepo())
    r = await _page("coach", "/dashboard")
    assert r.status_code == 200
    assert "could not be loaded" in r.text
    assert "Retry" in r.text


@pytest.mark.anyio
async def test_player_detail_and_missing_player():
    found = await _page("coach", "/player-analysis/players/p3")
    assert found.status_code == 200
    assert "Theo Laurent" in found.text
    assert "Currently injured" in found.text
    missing = await _page("coach", "/player-analysis/players/nobody")
    assert missing.status_code == 404


@pytest.mark.anyio
async def test_player_comparison():
    r = await _page("analyst", "/player-analysis/comparison", params={"a": "p1", "b": "p2"})
    assert r.text.count('class="compare-column"') == 2
    assert "Marcus Reed" in r.text and "Jonas Keller" in r.text


@pytest.mark.anyio
async def test_shot_map_filters():
    r = await _page("analyst", "/player-analysis/shot-map", params={"player_id": "p1", "outcome": "all"})
    assert r.status_code == 200
    assert "60.0%" in r.text
    assert 'id="shot-filters"' in r.text


@pytest.mark.anyio
async def test_shot_map_period_filter_uses_period_names():
    r = await _page("analyst", "/player-analysis/shot-map", params={"player_id": "p1", "period": "First Half"})
    assert r.status_code == 200
    assert '<option value="First Half" selected>First Half</option>' in r.text
    assert '<option value="Extra Time">Extra Time</option>' in r.text
    # Three first-half shots for p1, two of them goals.
    assert "66.7%" in r.text


@pytest.mark.anyio
async def test_team_performance_record():
    r = await _page("coach", "/team-performance/overview")
    assert 'id="match-record"' in r.text
    assert "2W · 1D · 1L" in r.text


@pytest.mark.anyio
async def test_tactical_analysis_splits_halves():
    r = await _page("coach", "/team-performance/tactical-analysis")
    assert "First half" in r.text
    assert "Second half" in r.text


@pytest.mark.anyio
async def test_stats_goals_and_development_pages():
    for path in ("/player-analysis/stats", "/player-analysis/goals-assists", "/player-analysis/development",
                 "/player-analysis", "/team-performance", "/reports", "/match-data-import"):
        r = await _page("admin", path)
        assert r.status_code == 200, path


@pytest.mark.anyio
async def test_compliance_page():
    r = await _page("management", "/compliance")
    assert "Diego Alvarez" in r.text
    assert "Not eligible for selection" in r.text


@pytest.mark.anyio
async def test_admin_users_grouped_by_role():
    r = await _page("admin", "/admin/users")
    assert 'id="role-admin"' in r.text
    assert 'id="role-unassigned"' in r.text
    assert r.text.index('id="role-admin"') < r.text.index('id="role-player"')


@pytest.mark.anyio
async def test_settings_and_profile_api():
    page = await _page("performance_director", "/settings")
    assert "Performance Director" in page.text
    api = await _page("performance_director", "/api/profile")
    assert api.json() == {
        "id": "user-pd",
        "email": "performance_director@test.com",
        "full_name": "Pat Director",
        "role": "performance_director",
        "role_label": "Performance Director",
        "player_id": None,
    }


@pytest.mark.anyio
async def test_breadcrumbs_follow_registry_labels():
    r = await _page("analyst", "/player-analysis/shot-map")
    assert 'aria-label="Breadcrumb"' in r.text
    assert "Player Analysis" in r.text
