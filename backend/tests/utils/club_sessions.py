"""
Session helpers for HTTP tests.

Seeded demo accounts use ids like `user-coach`; a session whose `sub` is one
of those ids resolves to that account's profile through the demo repo.
"""
from __future__ import annotations

import httpx
from httpx import ASGITransport

SEEDED_USER_IDS = {
    "admin": "user-admin",
    "management": "user-management",
    "performance_director": "user-pd",
    "analyst": "user-analyst",
    "coach": "user-coach",
    "player": "user-player",
    "unassigned": "user-unassigned",
}


def login_as(main, role: str) -> str:
    """Create a server-side session for the seeded account of `role`; return its id."""
    sub = SEEDED_USER_IDS[role]
    sess = main.SESSION_STORE.create(sub=sub, email=f"{role}@test.com", name=role.title())
    return sess.session_id


def client_for(main, session_id: str | None = None) -> httpx.AsyncClient:
    client = httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")
    if session_id:
        client.cookies.set(main.SESSION_COOKIE_NAME, session_id)
    return client
