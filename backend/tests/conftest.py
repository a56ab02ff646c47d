"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors), and
reset the app's module-level stores so tests never leak sessions, notices or
profiles into each other.
"""
import importlib
import os
import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure modules in backend/ and backend/web are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = REPO_ROOT / "backend"
WEB_DIR = BACKEND_DIR / "web"
TESTS_DIR = BACKEND_DIR / "tests"
for p in (str(REPO_ROOT), str(BACKEND_DIR), str(WEB_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

# The app wires its backends at import; keep local Supabase settings and any
# stand-in role from the developer's shell out of the test process.
for _var in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "TOUCHLINE_DEV_ROLE", "TOUCHLINE_ENV"):
    os.environ.pop(_var, None)

# Reference date for the seeded demo data (mid-season).
TODAY = date(2025, 1, 15)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_env_toggles(monkeypatch: pytest.MonkeyPatch):
    """Clear env-driven toggles that may leak across tests.

    Individual tests opt into prod semantics or a stand-in role explicitly.
    """
    for var in (
        "TOUCHLINE_ENV",
        "TOUCHLINE_DEV_ROLE",
        "TOUCHLINE_DEV_PLAYER_ID",
        "TOUCHLINE_TRUST_PROXY",
        "TOUCHLINE_SEASON",
        "TOUCHLINE_DEMO_PASSWORD",
        "SUPABASE_URL",
        "SUPABASE_ANON_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_app_state(monkeypatch: pytest.MonkeyPatch):
    """Fresh stores, demo repo and resolver registry per test.

    Behavior:
        - `main` and `backend.web.main` are the same module object (aliased at
          import), so patching one patches both.
        - `main._today` is pinned so date-dependent metrics are stable.
    """
    try:
        main = importlib.import_module("main")
        from club_data.repo import build_demo_repo
        from identity_access.auth_provider import DemoAuthProvider
        from identity_access.stores import NoticeStore, SessionStore
    except Exception:
        yield
        return

    repo = build_demo_repo()
    monkeypatch.setattr(main, "SESSION_STORE", SessionStore())
    monkeypatch.setattr(main, "NOTICE_STORE", NoticeStore())
    monkeypatch.setattr(main, "REPO", repo)
    monkeypatch.setattr(main, "AUTH_PROVIDER", DemoAuthProvider(repo.select("users"), password="pw-test"))
    monkeypatch.setattr(main, "_today", lambda: TODAY)
    main.configure_profiles(None)
    main.SETTINGS.override_environment(None)
    yield
    main.configure_profiles(None)
    main.SETTINGS.override_environment(None)
