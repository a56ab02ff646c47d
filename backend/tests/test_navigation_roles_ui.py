"""
Sidebar navigation per role: only links the role may open are rendered, the
active entry is marked, and HTMX navigation swaps the sidebar out-of-band.
"""

import pytest

import main  # type: ignore
from components.navigation import Navigation
from utils.club_sessions import client_for, login_as


pytestmark = pytest.mark.anyio("asyncio")


def _has_link(html: str, label: str) -> bool:
    return f'nav-text">{label}' in html


def test_navigation_without_user_only_offers_sign_in():
    html = Navigation(None, "/").render()
    assert _has_link(html, "Sign in")
    assert not _has_link(html, "Dashboard")


def test_navigation_marks_deepest_active_link():
    html = Navigation({"role": "analyst", "name": "Ana"}, "/player-analysis/shot-map").render()
    assert html.count('aria-current="page"') == 1
    shot_map = html.index('href="/player-analysis/shot-map"')
    assert 'aria-current="page"' in html[shot_map: html.index("</a>", shot_map)]


@pytest.mark.anyio
async def test_sidebar_for_player_is_minimal():
    sid = login_as(main, "player")
    async with client_for(main, sid) as c:
        r = await c.get("/dashboard")
    assert r.status_code == 200
    html = r.text
    assert _has_link(html, "Dashboard")
    assert _has_link(html, "Settings")
    assert _has_link(html, "Sign out")
    for hidden in ("Player Analysis", "Team Performance", "Compliance", "User Management", "Reports"):
        assert not _has_link(html, hidden)


@pytest.mark.anyio
async def test_sidebar_for_admin_lists_everything():
    sid = login_as(main, "admin")
    async with client_for(main, sid) as c:
        r = await c.get("/dashboard")
    html = r.text
    for label in ("Dashboard", "Player Analysis", "Shot Map", "Team Performance", "Match Data Import",
                  "Reports", "Compliance", "User Management", "Settings"):
        assert _has_link(html, label), label
    assert _pos(html, "Dashboard") < _pos(html, "Player Analysis") < _pos(html, "Settings")


@pytest.mark.anyio
async def test_sidebar_for_coach_hides_compliance_and_admin():
    sid = login_as(main, "coach")
    async with client_for(main, sid) as c:
        r = await c.get("/team-performance")
    html = r.text
    assert _has_link(html, "Match Data Import")
    assert not _has_link(html, "Compliance")
    assert not _has_link(html, "User Management")


@pytest.mark.anyio
async def test_htmx_navigation_returns_fragment_with_oob_sidebar():
    sid = login_as(main, "coach")
    async with client_for(main, sid) as c:
        r = await c.get("/team-performance", headers={"HX-Request": "true"})
    assert r.status_code == 200
    assert "<!DOCTYPE html>" not in r.text
    assert r.text.count('id="sidebar"') == 1
    assert 'hx-swap-oob="true"' in r.text


def _pos(html: str, label: str) -> int:
    return html.find(f'nav-text">{label}')
