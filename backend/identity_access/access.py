"""
Access evaluation: the single membership check behind every gate.

Every page guard, API endpoint and conditional widget asks the same question
through `has_access`; the capability predicates below are fixed lookups over
it so a role outside a capability's set can never observe gated behaviour,
whichever surface it arrives through.
"""
from __future__ import annotations

from typing import Iterable, Optional

from identity_access.domain import Role, parse_role

STAFF_ROLES = frozenset({
    Role.COACH,
    Role.ANALYST,
    Role.PERFORMANCE_DIRECTOR,
    Role.MANAGEMENT,
    Role.ADMIN,
})
ADVANCED_ANALYTICS_ROLES = frozenset({Role.ANALYST, Role.PERFORMANCE_DIRECTOR, Role.ADMIN})
USER_MANAGEMENT_ROLES = frozenset({Role.ADMIN})
COMPLIANCE_ROLES = frozenset({Role.MANAGEMENT, Role.ADMIN})
OWN_DATA_ONLY_ROLES = frozenset({Role.PLAYER})

DEFAULT_LANDING_PATH = "/dashboard"


def has_access(role: Role | str | None, allowed_roles: Iterable[Role]) -> bool:
    """Return True iff `role` is a known role contained in `allowed_roles`.

    Absent or unknown roles are never granted anything. Pure and total: the
    same inputs always yield the same answer.
    """
    parsed = parse_role(role)
    if parsed is None:
        return False
    return any(parsed == allowed for allowed in allowed_roles)


def can_see_all_players(role: Role | str | None) -> bool:
    return has_access(role, STAFF_ROLES)


def can_see_own_data_only(role: Role | str | None) -> bool:
    return has_access(role, OWN_DATA_ONLY_ROLES)


def can_access_player_comparison(role: Role | str | None) -> bool:
    return has_access(role, STAFF_ROLES)


def can_access_team_analytics(role: Role | str | None) -> bool:
    return has_access(role, STAFF_ROLES)


def can_access_advanced_analytics(role: Role | str | None) -> bool:
    return has_access(role, ADVANCED_ANALYTICS_ROLES)


def can_access_user_management(role: Role | str | None) -> bool:
    return has_access(role, USER_MANAGEMENT_ROLES)


def can_access_compliance_features(role: Role | str | None) -> bool:
    return has_access(role, COMPLIANCE_ROLES)


def can_view_player(role: Role | str | None, own_player_id: Optional[str], player_id: str) -> bool:
    """Staff see every player; a player sees only the record linked to them."""
    if can_see_all_players(role):
        return True
    if can_see_own_data_only(role):
        return bool(own_player_id) and str(own_player_id) == str(player_id)
    return False


def default_route_for_role(role: Role | str | None) -> str:
    # Every role, including unassigned, lands on the dashboard which renders
    # the role-specific view.
    return DEFAULT_LANDING_PATH


__all__ = [
    "STAFF_ROLES",
    "ADVANCED_ANALYTICS_ROLES",
    "USER_MANAGEMENT_ROLES",
    "COMPLIANCE_ROLES",
    "OWN_DATA_ONLY_ROLES",
    "DEFAULT_LANDING_PATH",
    "has_access",
    "can_see_all_players",
    "can_see_own_data_only",
    "can_access_player_comparison",
    "can_access_team_analytics",
    "can_access_advanced_analytics",
    "can_access_user_management",
    "can_access_compliance_features",
    "can_view_player",
    "default_route_for_role",
]
