"""
Analytics JSON API (derived club metrics).

Why:
    Dashboards and external consumers read the same derived metrics the SSR
    pages render. Role gating happens in the auth middleware through the role
    registry; endpoints scoped to a single player additionally enforce that a
    player only reads their own record.

Errors:
    - 403 `forbidden` when a player asks for someone else's data.
    - 404 `not_found` for unknown players.
    - 502 `fetch_failed` when the club backend could not be read.
    - 501 `not_implemented` for report export.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional

import anyio
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from club_data.repo import FetchFailure
from identity_access.access import can_see_own_data_only, can_view_player

from .security import resolve_active_main

analytics_router = APIRouter(tags=["Analytics"])
logger = logging.getLogger("touchline.web.analytics")


def _private_response(body: Any, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def _profile(request: Request):
    return getattr(request.state, "profile", None)


async def _run(request: Request, method: str, *args: Any, **kwargs: Any):
    """Call an analytics service method in a worker thread."""
    service = resolve_active_main(request).analytics_service(request)
    fn: Callable[..., Any] = getattr(service, method)
    return await anyio.to_thread.run_sync(functools.partial(fn, *args, **kwargs))


def _fetch_failed(exc: FetchFailure) -> JSONResponse:
    logger.warning("Analytics fetch failed: table=%s", exc.table)
    return _private_response({"error": "fetch_failed"}, status_code=502)


def _forbid_other_player(request: Request, player_id: str) -> Optional[JSONResponse]:
    profile = _profile(request)
    role = profile.role if profile else None
    own = profile.player_id if profile else None
    if not can_view_player(role, own, player_id):
        return _private_response({"error": "forbidden"}, status_code=403)
    return None


@analytics_router.get("/api/squad/availability")
async def squad_availability(request: Request):
    """Fitness status counts for the current season's squad."""
    try:
        data = await _run(request, "squad_availability")
    except FetchFailure as exc:
        return _fetch_failed(exc)
    return _private_response(data.as_dict())


@analytics_router.get("/api/team/metrics")
async def team_metrics(request: Request):
    try:
        data = await _run(request, "team_metrics")
    except FetchFailure as exc:
        return _fetch_failed(exc)
    return _private_response(data.as_dict())


@analytics_router.get("/api/players")
async def players_list(request: Request):
    """Squad list with each player's current selection status."""
    try:
        players = await _run(request, "players")
        statuses = await _run(request, "player_statuses")
    except FetchFailure as exc:
        return _fetch_failed(exc)
    body = []
    for p in players:
        pid = str(p.get("id"))
        status = statuses.get(pid)
        body.append({
            "id": pid,
            "name": p.get("name"),
            "position": p.get("position"),
            "status": status.status if status else None,
        })
    return _private_response(body)


@analytics_router.get("/api/players/{player_id}/disciplinary")
async def player_disciplinary(request: Request, player_id: str):
    denied = _forbid_other_player(request, player_id)
    if denied:
        return denied
    try:
        overview = await _run(request, "player_overview", player_id)
    except FetchFailure as exc:
        return _fetch_failed(exc)
    if overview is None:
        return _private_response({"error": "not_found"}, status_code=404)
    body = overview.disciplinary.as_dict()
    body["team_average_fair_play"] = overview.team_average_fair_play
    return _private_response(body)


@analytics_router.get("/api/players/{player_id}/status")
async def player_status(request: Request, player_id: str):
    denied = _forbid_other_player(request, player_id)
    if denied:
        return denied
    try:
        status = await _run(request, "player_status", player_id)
    except FetchFailure as exc:
        return _fetch_failed(exc)
    return _private_response(status.as_dict())


@analytics_router.get("/api/players-at-risk")
async def players_at_risk(request: Request):
    try:
        rows = await _run(request, "players_at_risk")
    except FetchFailure as exc:
        return _fetch_failed(exc)
    return _private_response([r.as_dict() for r in rows])


@analytics_router.get("/api/shots/stats")
async def shot_stats(
    request: Request,
    player_id: str | None = None,
    match_id: str | None = None,
    period: str | None = None,
    outcome: str | None = None,
):
    """Shot statistics with optional filters.

    Players always get their own shots, whatever `player_id` they pass.
    """
    profile = _profile(request)
    if profile is not None and can_see_own_data_only(profile.role):
        if not profile.player_id:
            return _private_response({"error": "forbidden"}, status_code=403)
        player_id = profile.player_id
    try:
        data = await _run(
            request, "shot_statistics", player_id=player_id, match_id=match_id, period=period, outcome=outcome
        )
    except FetchFailure as exc:
        return _fetch_failed(exc)
    return _private_response(data)


@analytics_router.get("/api/development/progress")
async def development_progress(request: Request):
    try:
        data = await _run(request, "development_progress")
    except FetchFailure as exc:
        return _fetch_failed(exc)
    return _private_response(data.as_dict())


@analytics_router.get("/api/analytics/advanced")
async def advanced_analytics(request: Request):
    """Combined shot, scoring and development view for analysts."""
    try:
        shots = await _run(request, "shot_statistics")
        goals = await _run(request, "goals_by_player")
        progress = await _run(request, "development_progress")
        record = await _run(request, "match_record")
    except FetchFailure as exc:
        return _fetch_failed(exc)
    return _private_response({
        "shots": shots,
        "goals_by_player": goals,
        "development": progress.as_dict(),
        "match_record": record,
    })


@analytics_router.get("/api/reports/{player_id}")
async def player_report(request: Request, player_id: str):
    """PDF report export is not available; answer explicitly instead of a stub file."""
    return _private_response(
        {"error": "not_implemented", "detail": "report_export_unavailable"}, status_code=501
    )
