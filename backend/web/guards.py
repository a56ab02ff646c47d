"""
Route guard decisions (pure).

`decide` maps a requested path and the actor context onto exactly one
decision. It performs no I/O: the HTTP middleware in `main` is the thin
effectful shell that turns decisions into redirects, loading pages, JSON
errors and one-time notices.

Decisions:
- Allow: render the surface.
- Redirect(to, notice): navigate elsewhere, optionally showing a notice once.
- Pending: the actor's profile is still resolving; render a neutral loading
  state and never the guarded content.
- ProfileUnavailable(message): resolution failed; show a retry affordance.
- Deny(reason): refused on the landing page itself (avoids redirect loops).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from identity_access.access import DEFAULT_LANDING_PATH, has_access
from identity_access.profiles import ProfileSnapshot, ProfileStatus
from identity_access.registry import allowed_roles_for, is_public_path

try:
    from .auth_utils import login_url
except ImportError:
    from auth_utils import login_url

ACCESS_DENIED_NOTICE = "Access Denied"
REASON_FORBIDDEN = "forbidden"
REASON_CONFIGURATION_GAP = "configuration_gap"
REASON_UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    to: str
    notice: Optional[str] = None
    reason: str = ""


@dataclass(frozen=True)
class Pending:
    pass


@dataclass(frozen=True)
class ProfileUnavailable:
    message: str


@dataclass(frozen=True)
class Deny:
    reason: str


Decision = Union[Allow, Redirect, Pending, ProfileUnavailable, Deny]


@dataclass(frozen=True)
class GuardContext:
    authenticated: bool
    dev_override: bool = False
    snapshot: Optional[ProfileSnapshot] = None
    query: str = ""


def decide_authenticated(path: str, ctx: GuardContext) -> Decision:
    """Authentication-only guard: any signed-in actor (or dev stand-in) passes."""
    if is_public_path(path):
        return Allow()
    if not ctx.authenticated and not ctx.dev_override:
        return Redirect(to=login_url(path, ctx.query), reason=REASON_UNAUTHENTICATED)
    return Allow()


def _refuse(path: str, reason: str) -> Decision:
    if path.rstrip("/") == DEFAULT_LANDING_PATH:
        return Deny(reason=reason)
    return Redirect(to=DEFAULT_LANDING_PATH, notice=ACCESS_DENIED_NOTICE, reason=reason)


def decide(path: str, ctx: GuardContext) -> Decision:
    """Role guard: authentication first, then the registry entry for `path`."""
    auth = decide_authenticated(path, ctx)
    if not isinstance(auth, Allow) or is_public_path(path):
        return auth

    snapshot = ctx.snapshot
    if snapshot is None or snapshot.status is ProfileStatus.LOADING:
        return Pending()
    if snapshot.status is ProfileStatus.ERROR:
        return ProfileUnavailable(message=snapshot.error or "")

    allowed = allowed_roles_for(path)
    if allowed is None:
        return _refuse(path, REASON_CONFIGURATION_GAP)
    if has_access(snapshot.role, allowed):
        return Allow()
    return _refuse(path, REASON_FORBIDDEN)


__all__ = [
    "ACCESS_DENIED_NOTICE",
    "REASON_FORBIDDEN",
    "REASON_CONFIGURATION_GAP",
    "REASON_UNAUTHENTICATED",
    "Allow",
    "Redirect",
    "Pending",
    "ProfileUnavailable",
    "Deny",
    "Decision",
    "GuardContext",
    "decide_authenticated",
    "decide",
]
