"""
Profile resolver tests: state machine, stale results and the dev stand-in.
"""
from __future__ import annotations

import threading

import anyio
import pytest

from identity_access.domain import Role
from identity_access.profiles import (
    PROFILE_ERROR_MESSAGE,
    Identity,
    ProfileResolver,
    ProfileResolverRegistry,
    ProfileStatus,
    profile_from_row,
)

pytestmark = pytest.mark.anyio("asyncio")

ALICE = Identity(sub="user-a", email="a@test.com", name="Alice")
BOB = Identity(sub="user-b", email="b@test.com", name="Bob")


def _row(identity: Identity, role: str, player_id: str | None = None) -> dict:
    return {
        "id": identity.sub,
        "email": identity.email,
        "full_name": identity.name,
        "role": role,
        "player_id": player_id,
    }


async def test_resolves_role_from_row():
    resolver = ProfileResolver(lambda ident: _row(ident, "coach"))
    snap = await resolver.resolve(ALICE)
    assert snap.status is ProfileStatus.RESOLVED
    assert snap.profile.role is Role.COACH
    assert snap.profile.email == "a@test.com"


async def test_resolved_profile_is_not_refetched():
    calls = []

    def fetch(ident):
        calls.append(ident.sub)
        return _row(ident, "analyst")

    resolver = ProfileResolver(fetch)
    await resolver.resolve(ALICE)
    await resolver.resolve(ALICE)
    assert calls == ["user-a"]


async def test_missing_row_resolves_unassigned():
    resolver = ProfileResolver(lambda ident: None)
    snap = await resolver.resolve(ALICE)
    assert snap.status is ProfileStatus.RESOLVED
    assert snap.profile.role is Role.UNASSIGNED
    assert snap.profile.full_name == "Alice"


async def test_unknown_role_is_coerced_to_unassigned(caplog: pytest.LogCaptureFixture):
    resolver = ProfileResolver(lambda ident: _row(ident, "superuser"))
    with caplog.at_level("WARNING", logger="touchline.identity_access"):
        snap = await resolver.resolve(ALICE)
    assert snap.profile.role is Role.UNASSIGNED
    assert any("coerced to unassigned" in r.getMessage() for r in caplog.records)


async def test_fetch_error_then_retry_succeeds():
    attempts = {"n": 0}

    def fetch(ident):
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise ConnectionError("backend down")
        return _row(ident, "management")

    resolver = ProfileResolver(fetch)
    first = await resolver.resolve(ALICE)
    assert first.status is ProfileStatus.ERROR
    assert first.profile is None
    assert first.error == PROFILE_ERROR_MESSAGE

    second = await resolver.resolve(ALICE)
    assert second.status is ProfileStatus.RESOLVED
    assert second.profile.role is Role.MANAGEMENT


async def test_identity_change_drops_previous_profile():
    resolver = ProfileResolver(lambda ident: _row(ident, "admin" if ident is ALICE else "player", "p1"))
    await resolver.resolve(ALICE)
    snap = await resolver.resolve(BOB)
    assert snap.profile.id == "user-b"
    assert snap.profile.role is Role.PLAYER
    assert snap.profile.player_id == "p1"


async def test_sign_out_clears_profile():
    resolver = ProfileResolver(lambda ident: _row(ident, "admin"))
    await resolver.resolve(ALICE)
    snap = await resolver.resolve(None)
    assert snap.profile is None
    assert snap.status is ProfileStatus.LOADING


async def test_stale_fetch_for_previous_identity_is_discarded():
    alice_started = threading.Event()
    release_alice = threading.Event()

    def fetch(ident):
        if ident.sub == ALICE.sub:
            alice_started.set()
            release_alice.wait(timeout=5)
            return _row(ident, "admin")
        return _row(ident, "player", "p1")

    resolver = ProfileResolver(fetch)
    results = {}

    async def resolve_alice():
        results["alice"] = await resolver.resolve(ALICE)

    async with anyio.create_task_group() as tg:
        tg.start_soon(resolve_alice)
        await anyio.to_thread.run_sync(alice_started.wait, 5)
        results["bob"] = await resolver.resolve(BOB)
        release_alice.set()

    final = resolver.snapshot()
    assert final.profile.id == "user-b"
    assert final.profile.role is Role.PLAYER
    # The late result for Alice returns the current (Bob) state instead of overwriting it.
    assert results["alice"].profile.id == "user-b"


async def test_dev_stand_in_never_fetches():
    def fetch(ident):
        raise AssertionError("backend must not be called")

    resolver = ProfileResolver(fetch, dev_role=Role.COACH)
    snap = await resolver.resolve(None)
    assert snap.status is ProfileStatus.RESOLVED
    assert snap.profile.role is Role.COACH
    assert snap.profile.email == "coach@test.com"
    again = await resolver.resolve(ALICE)
    assert again.profile == snap.profile


async def test_dev_stand_in_player_link_applies_only_to_player():
    coach = await ProfileResolver(lambda i: None, dev_role=Role.COACH, dev_player_id="p1").resolve(None)
    player = await ProfileResolver(lambda i: None, dev_role=Role.PLAYER, dev_player_id="p1").resolve(None)
    assert coach.profile.player_id is None
    assert player.profile.player_id == "p1"


def test_registry_keeps_one_resolver_per_session():
    registry = ProfileResolverRegistry(lambda ident: None)
    first = registry.get("s1")
    assert registry.get("s1") is first
    assert registry.get("s2") is not first
    registry.forget("s1")
    assert registry.get("s1") is not first
    assert len(registry) == 2


def test_profile_from_row_prefers_row_values():
    profile = profile_from_row(ALICE, {"id": "user-a", "email": "alice@club.test", "full_name": "", "role": "Coach"})
    assert profile.email == "alice@club.test"
    assert profile.full_name == "Alice"
    assert profile.role is Role.COACH
    assert profile.player_id is None
