"""
Role registry: the static table of guarded surfaces and who may open them.

Why:
    Pages, JSON endpoints and navigation links all read their allowed roles
    from one table. A surface missing from the table is a configuration gap and
    callers must deny it for every role.

Notes:
    - Patterns use `{param}` placeholders for single path segments.
    - Public paths (auth flow, health, static assets) are not registered here;
      see `is_public_path`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from identity_access.access import (
    ADVANCED_ANALYTICS_ROLES,
    COMPLIANCE_ROLES,
    STAFF_ROLES,
    USER_MANAGEMENT_ROLES,
    has_access,
)
from identity_access.domain import Role

ALL_ROLES = frozenset(Role)
SIGNED_UP_ROLES = ALL_ROLES - {Role.UNASSIGNED}
IMPORT_ROLES = frozenset({Role.COACH, Role.ANALYST, Role.MANAGEMENT, Role.ADMIN})
PLAYER_SCOPED_ROLES = STAFF_ROLES | {Role.PLAYER}


@dataclass(frozen=True)
class Surface:
    pattern: str
    allowed_roles: frozenset
    label: str = ""
    icon: str = ""
    # Navigation placement: top-level entries have no parent.
    nav: bool = False
    parent: Optional[str] = None


SURFACES: Tuple[Surface, ...] = (
    Surface("/", ALL_ROLES, "Home"),
    Surface("/dashboard", ALL_ROLES, "Dashboard", "🏠", nav=True),
    Surface("/player-analysis", STAFF_ROLES, "Player Analysis", "📊", nav=True),
    Surface("/player-analysis/stats", STAFF_ROLES, "Player Stats", nav=True, parent="/player-analysis"),
    Surface("/player-analysis/comparison", STAFF_ROLES, "Player Comparison", nav=True, parent="/player-analysis"),
    Surface("/player-analysis/development", STAFF_ROLES, "Development", nav=True, parent="/player-analysis"),
    Surface("/player-analysis/shot-map", STAFF_ROLES, "Shot Map", nav=True, parent="/player-analysis"),
    Surface("/player-analysis/goals-assists", STAFF_ROLES, "Goals & Assists", nav=True, parent="/player-analysis"),
    Surface("/player-analysis/players/{player_id}", STAFF_ROLES, "Player {player_id}"),
    Surface("/team-performance", STAFF_ROLES, "Team Performance", "🏆", nav=True),
    Surface("/team-performance/overview", STAFF_ROLES, "Overview", nav=True, parent="/team-performance"),
    Surface("/team-performance/tactical-analysis", STAFF_ROLES, "Tactical Analysis", nav=True, parent="/team-performance"),
    Surface("/match-data-import", IMPORT_ROLES, "Match Data Import", "📥", nav=True),
    Surface("/reports", STAFF_ROLES, "Reports", "📄", nav=True),
    Surface("/compliance", COMPLIANCE_ROLES, "Compliance", "🛡", nav=True),
    Surface("/admin/users", USER_MANAGEMENT_ROLES, "User Management", "👥", nav=True),
    Surface("/settings", SIGNED_UP_ROLES, "Settings", "⚙", nav=True),
    # JSON API
    Surface("/api/me", ALL_ROLES),
    Surface("/api/profile", ALL_ROLES),
    Surface("/api/squad/availability", STAFF_ROLES),
    Surface("/api/team/metrics", STAFF_ROLES),
    Surface("/api/players", STAFF_ROLES),
    Surface("/api/players/{player_id}/disciplinary", PLAYER_SCOPED_ROLES),
    Surface("/api/players/{player_id}/status", PLAYER_SCOPED_ROLES),
    Surface("/api/players-at-risk", COMPLIANCE_ROLES),
    Surface("/api/shots/stats", PLAYER_SCOPED_ROLES),
    Surface("/api/development/progress", STAFF_ROLES),
    Surface("/api/analytics/advanced", ADVANCED_ANALYTICS_ROLES),
    Surface("/api/users", USER_MANAGEMENT_ROLES),
    Surface("/api/reports/{player_id}", STAFF_ROLES),
)

_BY_PATTERN: Dict[str, Surface] = {s.pattern: s for s in SURFACES}


def is_public_path(path: str) -> bool:
    return path.startswith(("/auth/", "/static/")) or path in ("/health", "/favicon.ico")


def _normalize(path: str) -> str:
    if not path:
        return "/"
    path = path.split("?", 1)[0].split("#", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _segments(path: str) -> List[str]:
    return [seg for seg in path.strip("/").split("/") if seg]


def _match_pattern(pattern: str, path: str) -> Optional[Dict[str, str]]:
    p_segs = _segments(pattern)
    segs = _segments(path)
    if len(p_segs) != len(segs):
        return None
    params: Dict[str, str] = {}
    for p_seg, seg in zip(p_segs, segs):
        if p_seg.startswith("{") and p_seg.endswith("}"):
            params[p_seg[1:-1]] = seg
        elif p_seg != seg:
            return None
    return params


def match_surface(path: str) -> Optional[Tuple[Surface, Dict[str, str]]]:
    """Return the registered surface for a concrete path plus its parameters.

    Literal patterns win over parameterised ones.
    """
    norm = _normalize(path)
    exact = _BY_PATTERN.get(norm)
    if exact is not None:
        return exact, {}
    for surface in SURFACES:
        if "{" not in surface.pattern:
            continue
        params = _match_pattern(surface.pattern, norm)
        if params is not None:
            return surface, params
    return None


def allowed_roles_for(path: str) -> Optional[frozenset]:
    """Allowed roles for `path`, or None when the path is not registered."""
    match = match_surface(path)
    return match[0].allowed_roles if match else None


def label_for(path: str) -> Optional[str]:
    match = match_surface(path)
    if not match:
        return None
    surface, params = match
    if not surface.label:
        return None
    try:
        return surface.label.format(**params)
    except KeyError:
        return surface.label


@dataclass
class NavItem:
    href: str
    label: str
    icon: str = ""
    children: List["NavItem"] = field(default_factory=list)


def navigation_items(role: Role | str | None) -> List[NavItem]:
    """Navigation tree limited to surfaces the role may open.

    A parent hidden from the role hides its children too.
    """
    items: List[NavItem] = []
    by_href: Dict[str, NavItem] = {}
    for surface in SURFACES:
        if not surface.nav or not has_access(role, surface.allowed_roles):
            continue
        item = NavItem(href=surface.pattern, label=surface.label, icon=surface.icon)
        if surface.parent is None:
            items.append(item)
            by_href[surface.pattern] = item
        else:
            parent = by_href.get(surface.parent)
            if parent is not None:
                parent.children.append(item)
    return items


__all__ = [
    "ALL_ROLES",
    "SIGNED_UP_ROLES",
    "IMPORT_ROLES",
    "PLAYER_SCOPED_ROLES",
    "Surface",
    "SURFACES",
    "NavItem",
    "is_public_path",
    "match_surface",
    "allowed_roles_for",
    "label_for",
    "navigation_items",
]
