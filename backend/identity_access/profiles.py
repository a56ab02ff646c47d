"""
Profile resolution: turn an authenticated identity into an actor profile.

Why:
    Every role decision needs the actor's club role, which lives in the
    `users` table rather than in the session. Resolution is asynchronous and
    may fail, so each session owns a small state machine:

        loading --fetch ok--> resolved
        loading --fetch fails--> error (retried on the next resolve call)
        any    --identity changes--> loading (previous profile dropped)

Stale results:
    A fetch started for identity A must never be applied once the session has
    moved on to identity B. Each fetch captures a generation counter and the
    identity; the result is applied only if both still match.

Development override:
    When a stand-in role is configured (never in production, see config), the
    resolver synthesises a deterministic profile and never calls the backend.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional
import logging

import anyio

from identity_access.domain import DEV_ROLE_EMAILS, Role, parse_role, role_display_name

logger = logging.getLogger("touchline.identity_access")


class ProfileStatus(str, Enum):
    LOADING = "loading"
    RESOLVED = "resolved"
    ERROR = "error"


@dataclass(frozen=True)
class Identity:
    sub: str
    email: str = ""
    name: str = ""
    # Credential for reads on behalf of this account; not part of its identity.
    access_token: Optional[str] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ActorProfile:
    id: str
    email: str
    full_name: str
    role: Role
    player_id: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role.value,
            "player_id": self.player_id,
        }


@dataclass(frozen=True)
class ProfileSnapshot:
    status: ProfileStatus
    profile: Optional[ActorProfile] = None
    error: Optional[str] = None

    @property
    def role(self) -> Optional[Role]:
        return self.profile.role if self.profile else None


FetchProfile = Callable[[Identity], Optional[Mapping[str, Any]]]

PROFILE_ERROR_MESSAGE = "Your profile could not be loaded."


def dev_stand_in_profile(role: Role, *, player_id: Optional[str] = None) -> ActorProfile:
    return ActorProfile(
        id=f"dev-{role.value}",
        email=DEV_ROLE_EMAILS[role],
        full_name=f"Dev {role_display_name(role)}",
        role=role,
        player_id=player_id if role is Role.PLAYER else None,
    )


def profile_from_row(identity: Identity, row: Optional[Mapping[str, Any]]) -> ActorProfile:
    """Map a `users` row onto an ActorProfile.

    A missing row means the account exists but was never assigned a role.
    Unknown role strings are coerced to unassigned and logged. `player_id` is
    not a `users` column; the fetch adds it from the account's player link.
    """
    if row is None:
        return ActorProfile(
            id=identity.sub,
            email=identity.email,
            full_name=identity.name or identity.email,
            role=Role.UNASSIGNED,
        )
    raw_role = row.get("role")
    role = parse_role(raw_role)
    if role is None:
        logger.warning("Unknown role on profile %s coerced to unassigned", identity.sub)
        role = Role.UNASSIGNED
    player_id = row.get("player_id")
    return ActorProfile(
        id=str(row.get("id") or identity.sub),
        email=str(row.get("email") or identity.email),
        full_name=str(row.get("full_name") or identity.name or identity.email),
        role=role,
        player_id=str(player_id) if player_id not in (None, "") else None,
    )


class ProfileResolver:
    """Per-session resolver; the owning session is its only writer."""

    def __init__(
        self,
        fetch_profile: FetchProfile,
        *,
        dev_role: Optional[Role] = None,
        dev_player_id: Optional[str] = None,
    ) -> None:
        self._fetch = fetch_profile
        self._dev_role = dev_role
        self._dev_player_id = dev_player_id
        self._identity: Optional[Identity] = None
        self._generation = 0
        self._status = ProfileStatus.LOADING
        self._profile: Optional[ActorProfile] = None
        self._error: Optional[str] = None
        self._fetch_in_flight = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def snapshot(self) -> ProfileSnapshot:
        return ProfileSnapshot(status=self._status, profile=self._profile, error=self._error)

    def reset(self, identity: Optional[Identity]) -> int:
        """Drop any previous profile and start a new generation for `identity`."""
        self._generation += 1
        self._identity = identity
        self._status = ProfileStatus.LOADING
        self._profile = None
        self._error = None
        self._fetch_in_flight = False
        return self._generation

    def _is_current(self, generation: int, identity: Optional[Identity]) -> bool:
        return generation == self._generation and identity == self._identity

    async def resolve(self, identity: Optional[Identity]) -> ProfileSnapshot:
        if self._dev_role is not None:
            if self._status is not ProfileStatus.RESOLVED or self._profile is None:
                self.reset(identity)
                self._profile = dev_stand_in_profile(self._dev_role, player_id=self._dev_player_id)
                self._status = ProfileStatus.RESOLVED
            return self.snapshot()

        if identity is None:
            if self._identity is not None or self._profile is not None:
                self.reset(None)
            return self.snapshot()

        if identity == self._identity:
            if self._status is ProfileStatus.RESOLVED:
                return self.snapshot()
            if self._status is ProfileStatus.LOADING and self._fetch_in_flight:
                return self.snapshot()

        generation = self.reset(identity)
        self._fetch_in_flight = True
        try:
            row = await anyio.to_thread.run_sync(self._fetch, identity)
        except Exception as exc:
            if not self._is_current(generation, identity):
                return self.snapshot()
            logger.warning("Profile fetch failed: %s", exc.__class__.__name__)
            self._fetch_in_flight = False
            self._status = ProfileStatus.ERROR
            self._error = PROFILE_ERROR_MESSAGE
            return self.snapshot()

        if not self._is_current(generation, identity):
            # Superseded by a newer identity or retry; keep the newer state.
            return self.snapshot()
        self._fetch_in_flight = False
        self._profile = profile_from_row(identity, row)
        self._status = ProfileStatus.RESOLVED
        return self.snapshot()


class ProfileResolverRegistry:
    """One resolver per session key; no process-wide profile."""

    def __init__(
        self,
        fetch_profile: FetchProfile,
        *,
        dev_role: Optional[Role] = None,
        dev_player_id: Optional[str] = None,
    ) -> None:
        self._fetch = fetch_profile
        self._dev_role = dev_role
        self._dev_player_id = dev_player_id
        self._resolvers: Dict[str, ProfileResolver] = {}

    @property
    def dev_role(self) -> Optional[Role]:
        return self._dev_role

    def get(self, session_key: str) -> ProfileResolver:
        resolver = self._resolvers.get(session_key)
        if resolver is None:
            resolver = ProfileResolver(self._fetch, dev_role=self._dev_role, dev_player_id=self._dev_player_id)
            self._resolvers[session_key] = resolver
        return resolver

    def forget(self, session_key: str) -> None:
        self._resolvers.pop(session_key, None)

    def __len__(self) -> int:
        return len(self._resolvers)


__all__ = [
    "ProfileStatus",
    "Identity",
    "ActorProfile",
    "ProfileSnapshot",
    "FetchProfile",
    "PROFILE_ERROR_MESSAGE",
    "dev_stand_in_profile",
    "profile_from_row",
    "ProfileResolver",
    "ProfileResolverRegistry",
]
