"""
Role registry tests: surface lookup, fail-closed gaps and navigation.
"""
from __future__ import annotations

from identity_access.access import has_access
from identity_access.domain import Role
from identity_access.registry import (
    SURFACES,
    allowed_roles_for,
    is_public_path,
    label_for,
    match_surface,
    navigation_items,
)


def _hrefs(items):
    out = []
    for item in items:
        out.append(item.href)
        out.extend(child.href for child in item.children)
    return out


def test_public_paths_are_outside_the_registry():
    for path in ("/auth/login", "/auth/logout/success", "/static/css/touchline.css", "/health", "/favicon.ico"):
        assert is_public_path(path)
        assert allowed_roles_for(path) is None
    assert not is_public_path("/dashboard")


def test_unregistered_path_has_no_entry():
    assert allowed_roles_for("/secret-admin-panel") is None
    assert allowed_roles_for("/api/unknown") is None


def test_parameterised_surfaces_match_single_segments():
    surface, params = match_surface("/api/players/p7/disciplinary")
    assert surface.pattern == "/api/players/{player_id}/disciplinary"
    assert params == {"player_id": "p7"}
    assert match_surface("/api/players/p7/extra/disciplinary") is None


def test_literal_patterns_win_over_parameters():
    surface, params = match_surface("/api/players")
    assert surface.pattern == "/api/players"
    assert params == {}


def test_trailing_slash_is_normalised():
    assert allowed_roles_for("/compliance/") == allowed_roles_for("/compliance")


def test_dashboard_open_to_every_role():
    allowed = allowed_roles_for("/dashboard")
    assert all(has_access(role, allowed) for role in Role)


def test_compliance_and_user_management_are_narrow():
    assert allowed_roles_for("/compliance") == frozenset({Role.MANAGEMENT, Role.ADMIN})
    assert allowed_roles_for("/admin/users") == frozenset({Role.ADMIN})
    assert allowed_roles_for("/api/users") == frozenset({Role.ADMIN})


def test_player_scoped_api_includes_players_but_not_unassigned():
    allowed = allowed_roles_for("/api/players/p1/status")
    assert Role.PLAYER in allowed
    assert Role.UNASSIGNED not in allowed


def test_every_surface_names_only_known_roles():
    for surface in SURFACES:
        assert surface.allowed_roles <= frozenset(Role), surface.pattern


def test_navigation_shows_only_openable_links():
    for role in Role:
        for href in _hrefs(navigation_items(role)):
            assert has_access(role, allowed_roles_for(href)), (role, href)


def test_navigation_for_player_and_admin():
    player = _hrefs(navigation_items(Role.PLAYER))
    assert player == ["/dashboard", "/settings"]
    admin = _hrefs(navigation_items(Role.ADMIN))
    assert "/admin/users" in admin and "/compliance" in admin
    assert "/player-analysis/shot-map" in admin


def test_navigation_for_unknown_role_is_empty():
    assert navigation_items(None) == []
    assert navigation_items("owner") == []


def test_labels_fill_parameters():
    assert label_for("/player-analysis/players/p3") == "Player p3"
    assert label_for("/compliance") == "Compliance"
    assert label_for("/nowhere") is None
