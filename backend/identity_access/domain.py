"""
Identity domain constants and simple helpers.

Why:
- Centralize the closed set of club roles so the access layer, the web layer
  and the profile resolver never drift apart.
- Unknown role strings never map to a role; callers decide how to degrade.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "admin"
    MANAGEMENT = "management"
    PERFORMANCE_DIRECTOR = "performance_director"
    ANALYST = "analyst"
    COACH = "coach"
    PLAYER = "player"
    UNASSIGNED = "unassigned"


# Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset(Role)

ROLE_DISPLAY_NAMES = {
    Role.ADMIN: "Administrator",
    Role.MANAGEMENT: "Management",
    Role.PERFORMANCE_DIRECTOR: "Performance Director",
    Role.ANALYST: "Analyst",
    Role.COACH: "Coach",
    Role.PLAYER: "Player",
    Role.UNASSIGNED: "Unassigned",
}

# Deterministic stand-in identities used when a development role override is
# configured. Emails mirror the seeded test accounts.
DEV_ROLE_EMAILS = {
    Role.ADMIN: "admin@test.com",
    Role.MANAGEMENT: "management@test.com",
    Role.PERFORMANCE_DIRECTOR: "performance_director@test.com",
    Role.ANALYST: "analyst@test.com",
    Role.COACH: "coach@test.com",
    Role.PLAYER: "player@test.com",
    Role.UNASSIGNED: "unassigned@test.com",
}


def parse_role(value: object) -> Optional[Role]:
    """Return the matching Role or None for anything outside the closed set."""
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def role_display_name(value: object) -> str:
    role = parse_role(value)
    return ROLE_DISPLAY_NAMES[role] if role else "User"


__all__ = [
    "Role",
    "ALLOWED_ROLES",
    "ROLE_DISPLAY_NAMES",
    "DEV_ROLE_EMAILS",
    "parse_role",
    "role_display_name",
]
