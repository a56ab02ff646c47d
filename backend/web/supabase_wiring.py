"""
Shared helper for wiring the Supabase-backed club repo and auth provider.

Why:
    App startup may occur before Supabase is reachable locally. This module
    builds the clients lazily and idempotently so it can be called at startup
    and again on demand without duplicating connection logic.

Behavior:
    - Not configured (no SUPABASE_URL/SUPABASE_ANON_KEY): development uses the
      seeded in-memory repo and its demo accounts; prod-like environments use
      the unavailable repo so pages show a retry state instead of demo data.
    - Configured: `SupabaseClubRepo` over the data client and
      `SupabaseAuthProvider` over a separate auth client.

Security:
    - Only the anon key is used; row level security in the database decides
      what each role may read.
    - Every client is built with `persist_session=False` and
      `auto_refresh_token=False`. Password sign-in happens on the auth client
      only, so a sign-in never changes the credentials of data reads.
    - Reads for a signed-in account use a fresh client per actor carrying that
      account's access token (`postgrest.auth`), never a shared one.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Optional, Tuple

from club_data.repo import ClubRepoProtocol, UnavailableClubRepo, build_demo_repo
from club_data.repo_supabase import SupabaseClubRepo
from identity_access.auth_provider import (
    AuthProviderProtocol,
    DemoAuthProvider,
    NullAuthProvider,
    SupabaseAuthProvider,
)

logger = logging.getLogger("touchline.web")

_CLIENT: Any = None
_AUTH_CLIENT: Any = None
DEFAULT_DEMO_PASSWORD = "touchline-demo"


def _settings() -> Optional[Tuple[str, str]]:
    url = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_ANON_KEY") or "").strip()
    if not url or not key:
        return None
    return url, key


def _create_client(url: str, key: str) -> Any:
    """Build a client that keeps no session of its own."""
    # Lazy import keeps the client library off test paths that never wire.
    from supabase import ClientOptions, create_client  # type: ignore

    options = ClientOptions(persist_session=False, auto_refresh_token=False)
    return create_client(url, key, options=options)


def supabase_client_if_configured() -> Optional[Any]:
    """Return the cached anon data client, or None when unconfigured or failing."""
    global _CLIENT
    if _CLIENT is not None:
        return _CLIENT
    settings = _settings()
    if settings is None:
        return None
    try:
        _CLIENT = _create_client(*settings)
        logger.info("Supabase client wired")
    except Exception as exc:
        logger.warning("Supabase client unavailable: %s", exc.__class__.__name__)
        return None
    return _CLIENT


def supabase_auth_client_if_configured() -> Optional[Any]:
    """Return the cached client used only for password sign-in."""
    global _AUTH_CLIENT
    if _AUTH_CLIENT is not None:
        return _AUTH_CLIENT
    settings = _settings()
    if settings is None:
        return None
    try:
        _AUTH_CLIENT = _create_client(*settings)
    except Exception as exc:
        logger.warning("Supabase auth client unavailable: %s", exc.__class__.__name__)
        return None
    return _AUTH_CLIENT


def scoped_client(access_token: str) -> Any:
    """Fresh client whose PostgREST requests carry `access_token`."""
    settings = _settings()
    if settings is None:
        raise RuntimeError("supabase_not_configured")
    client = _create_client(*settings)
    client.postgrest.auth(access_token)
    return client


def reset_client() -> None:
    global _CLIENT, _AUTH_CLIENT
    _CLIENT = None
    _AUTH_CLIENT = None


def wire_backends(environment: str) -> Tuple[ClubRepoProtocol, AuthProviderProtocol]:
    client = supabase_client_if_configured()
    auth_client = supabase_auth_client_if_configured() if client is not None else None
    if client is not None and auth_client is not None:
        return SupabaseClubRepo(client, scoped_client=scoped_client), SupabaseAuthProvider(auth_client)
    if environment in {"prod", "production", "stage", "staging"}:
        logger.warning("Club backend unavailable; serving retry states")
        return UnavailableClubRepo(), NullAuthProvider()
    repo = build_demo_repo()
    password = (os.getenv("TOUCHLINE_DEMO_PASSWORD") or DEFAULT_DEMO_PASSWORD).strip()
    return repo, DemoAuthProvider(repo.select("users"), password=password)


__all__ = [
    "supabase_client_if_configured",
    "supabase_auth_client_if_configured",
    "scoped_client",
    "reset_client",
    "wire_backends",
]
