"""
Access evaluator tests.

Covers the membership rule behind every gate and the fixed capability
predicates built on it.
"""
from __future__ import annotations

import pytest

from identity_access.access import (
    STAFF_ROLES,
    can_access_advanced_analytics,
    can_access_compliance_features,
    can_access_player_comparison,
    can_access_team_analytics,
    can_access_user_management,
    can_see_all_players,
    can_see_own_data_only,
    can_view_player,
    default_route_for_role,
    has_access,
)
from identity_access.domain import Role, parse_role, role_display_name


@pytest.mark.parametrize("role", list(Role))
def test_has_access_is_membership(role: Role):
    assert has_access(role, {role}) is True
    others = set(Role) - {role}
    assert has_access(role, others) is False


def test_has_access_denies_absent_and_unknown_roles():
    assert has_access(None, set(Role)) is False
    assert has_access("superuser", set(Role)) is False
    assert has_access("", set(Role)) is False


def test_has_access_accepts_role_strings_case_insensitively():
    assert has_access("Coach", {Role.COACH}) is True
    assert has_access(" admin ", {Role.ADMIN}) is True


def test_has_access_empty_allowed_set_denies_everyone():
    assert not any(has_access(role, frozenset()) for role in Role)


def test_has_access_is_idempotent():
    results = {has_access(Role.ANALYST, STAFF_ROLES) for _ in range(5)}
    assert results == {True}


def test_staff_predicates():
    staff = {Role.COACH, Role.ANALYST, Role.PERFORMANCE_DIRECTOR, Role.MANAGEMENT, Role.ADMIN}
    for role in Role:
        expected = role in staff
        assert can_see_all_players(role) is expected
        assert can_access_player_comparison(role) is expected
        assert can_access_team_analytics(role) is expected


def test_narrow_capabilities():
    assert {r for r in Role if can_access_advanced_analytics(r)} == {
        Role.ANALYST,
        Role.PERFORMANCE_DIRECTOR,
        Role.ADMIN,
    }
    assert {r for r in Role if can_access_user_management(r)} == {Role.ADMIN}
    assert {r for r in Role if can_access_compliance_features(r)} == {Role.MANAGEMENT, Role.ADMIN}
    assert {r for r in Role if can_see_own_data_only(r)} == {Role.PLAYER}


def test_unassigned_sees_no_player_data():
    assert can_see_all_players(Role.UNASSIGNED) is False
    assert can_see_own_data_only(Role.UNASSIGNED) is False
    assert can_view_player(Role.UNASSIGNED, None, "p1") is False


def test_player_views_only_own_record():
    assert can_view_player(Role.PLAYER, "p1", "p1") is True
    assert can_view_player(Role.PLAYER, "p1", "p2") is False
    assert can_view_player(Role.PLAYER, None, "p1") is False
    assert can_view_player(Role.COACH, None, "p2") is True


def test_default_route_is_dashboard_for_every_role():
    assert {default_route_for_role(r) for r in Role} == {"/dashboard"}


def test_parse_role_rejects_unknown_values():
    assert parse_role("performance_director") is Role.PERFORMANCE_DIRECTOR
    assert parse_role("owner") is None
    assert parse_role(42) is None
    assert role_display_name("owner") == "User"
    assert role_display_name(Role.PERFORMANCE_DIRECTOR) == "Performance Director"
