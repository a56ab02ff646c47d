"""
Users API routes: club accounts and their roles (administrators only).

Why:
    Administrators need to see who holds which role before changing
    assignments in the backend. The middleware already restricts the path
    via the role registry; the handler re-checks so the endpoint stays safe
    when mounted in a slimmer app.
"""
from __future__ import annotations

import functools
import logging

import anyio
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from club_data import queries
from club_data.repo import FetchFailure
from identity_access.access import can_access_user_management
from identity_access.domain import parse_role

from .security import resolve_active_main

users_router = APIRouter(tags=["Users"])
logger = logging.getLogger("touchline.web.users")


def _private_no_store() -> dict:
    return {"Cache-Control": "private, no-store"}


def _normalize_user(row: dict) -> dict:
    role = parse_role(row.get("role"))
    return {
        "id": str(row.get("id") or ""),
        "email": str(row.get("email") or ""),
        "full_name": str(row.get("full_name") or ""),
        "role": role.value if role else "unassigned",
    }


@users_router.get("/api/users")
async def users_list(request: Request, role: str | None = None, limit: int = 50, offset: int = 0):
    """List club accounts, optionally filtered by role.

    Validation:
        - `role` must be a known role when given
        - `limit` clamped to 1..200, `offset` >= 0
    Permissions:
        Caller must have role `admin`.
    """
    profile = getattr(request.state, "profile", None)
    if not can_access_user_management(profile.role if profile else None):
        return JSONResponse({"error": "forbidden"}, status_code=403, headers=_private_no_store())
    role_filter = None
    if role:
        role_filter = parse_role(role)
        if role_filter is None:
            return JSONResponse(
                {"error": "bad_request", "detail": "invalid_role"}, status_code=400, headers=_private_no_store()
            )
    limit = max(1, min(200, int(limit or 50)))
    offset = max(0, int(offset or 0))
    repo = resolve_active_main(request).request_repo(request)
    try:
        rows = await anyio.to_thread.run_sync(functools.partial(queries.list_users, repo))
    except FetchFailure as exc:
        logger.warning("User listing failed: %s", exc.__class__.__name__)
        return JSONResponse({"error": "fetch_failed"}, status_code=502, headers=_private_no_store())
    users = [_normalize_user(r) for r in rows]
    if role_filter is not None:
        users = [u for u in users if u["role"] == role_filter.value]
    return JSONResponse(users[offset: offset + limit], headers=_private_no_store())
