"Touchline"
from __future__ import annotations

from pathlib import Path
import os
import logging
from typing import Optional, Dict, Any, List, Mapping
from datetime import date, datetime, timezone
from html import escape as _html_escape

import anyio
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles

# Component Imports
from components import (
    Layout,
    Metric,
    MetricGrid,
    PlayerStatusBadge,
    RiskBadge,
    RoleBadge,
)

# Identity & access Imports
from identity_access.access import DEFAULT_LANDING_PATH
from identity_access.domain import Role, parse_role, role_display_name
from identity_access.profiles import ActorProfile, Identity, ProfileResolverRegistry
from identity_access.registry import is_public_path
from identity_access.stores import Notice, NoticeStore, SessionRecord, SessionStore
from club_analytics.service import ClubAnalyticsService
from club_analytics.shots import FIRST_HALF, OUTCOMES as SHOT_OUTCOMES, PERIODS as SHOT_PERIODS, SECOND_HALF
from club_data import queries
from club_data.repo import FetchFailure
import sys as _sys

try:
    from .auth_utils import cookie_opts
    from . import guards
except ImportError:
    from auth_utils import cookie_opts
    import guards

# Ensure legacy imports consistently reference the same module instance.
if __name__ == "main":
    _sys.modules.setdefault("backend.web.main", _sys.modules[__name__])
elif __name__ == "backend.web.main":
    _sys.modules["main"] = _sys.modules[__name__]

def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out/opt-in via TOUCHLINE_ENABLE_DOTENV (default true
      outside pytest).
    """
    import sys
    # Under pytest, do not load .env – tests provide their own env.
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("TOUCHLINE_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")

from dotenv import load_dotenv

if _should_load_dotenv():
    load_dotenv()

# Production safety checks (fail-fast on insecure config)
# Support both "flat" (container image) and package (repo test) layouts.
try:
    import config as _cfg  # type: ignore
except ImportError:  # pragma: no cover
    from backend.web import config as _cfg  # type: ignore
_cfg.ensure_secure_config_on_startup()

try:
    from backend.web.supabase_wiring import wire_backends as _wire_backends  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - container fallback when package path is flattened
    from supabase_wiring import wire_backends as _wire_backends  # type: ignore

# --- App & Settings Setup -------------------------------------------------------

class AuthSettings:
    def __init__(self) -> None:
        self._env_override: str | None = None

    @property
    def environment(self) -> str:
        if self._env_override is not None:
            return self._env_override
        return os.getenv("TOUCHLINE_ENV", "dev").lower()

    def override_environment(self, env: str | None) -> None:
        """Override environment for tests (e.g., "prod"), or reset with None."""
        self._env_override = env

logger = logging.getLogger("touchline.identity_access")
SETTINGS = AuthSettings()
SESSION_COOKIE_NAME = "touchline_session"
DEV_SESSION_KEY = "dev"

app = FastAPI(title="Touchline", description="Role-gated club performance analytics", version="0.1.0")

# --- Static Files & Routers -----------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

from routes.auth import auth_router
from routes.analytics import analytics_router
from routes.users import users_router
from models.profile import ProfileOut

# --- Backends, Stores & Profile Resolution -------------------------------------

# Repo and auth provider are wired once at import; tests replace them via monkeypatch.
REPO, AUTH_PROVIDER = _wire_backends(SETTINGS.environment)
SESSION_STORE = SessionStore()
NOTICE_STORE = NoticeStore()


def repo_for(sub: Optional[str] = None, access_token: Optional[str] = None):
    """The club repo scoped to one signed-in account, or the unscoped repo."""
    if not sub:
        return REPO
    return REPO.as_user(sub, access_token)


def request_repo(request: Optional[Request]):
    rec = getattr(request.state, "session", None) if request is not None else None
    if rec is None:
        return REPO
    return repo_for(rec.sub, rec.access_token)


def _fetch_profile_row(identity: Identity) -> Optional[Mapping[str, Any]]:
    """Blocking profile lookup; runs in a worker thread inside the resolver.

    Reads with the account's own credentials. Player accounts get their
    player record from `get_player_id`.
    """
    repo = repo_for(identity.sub, identity.access_token)
    row = queries.user_profile_row(repo, identity.sub)
    if row is not None and parse_role(row.get("role")) is Role.PLAYER:
        row = dict(row, player_id=queries.linked_player_id(repo))
    return row


def configure_profiles(dev_role: Optional[Role] = None, dev_player_id: Optional[str] = None) -> ProfileResolverRegistry:
    """(Re)build the per-session resolver registry. Tests call this to toggle the dev stand-in."""
    global PROFILES
    PROFILES = ProfileResolverRegistry(
        lambda identity: _fetch_profile_row(identity),
        dev_role=dev_role,
        dev_player_id=dev_player_id,
    )
    return PROFILES


PROFILES = configure_profiles(
    _cfg.dev_role_from_env(),
    (os.getenv("TOUCHLINE_DEV_PLAYER_ID") or "").strip() or None,
)


def _today() -> date:
    return date.today()


def analytics_service(request: Optional[Request] = None) -> ClubAnalyticsService:
    """Analytics over the repo scoped to the request's session."""
    return ClubAnalyticsService(request_repo(request), today=_today(), season=_cfg.current_season())


def end_session(session_id: str) -> None:
    """Drop a session with everything keyed by it (profile resolver, notices)."""
    try:
        SESSION_STORE.delete(session_id)
    except Exception as exc:
        logger.warning("Session delete failed: %s", exc.__class__.__name__)
    PROFILES.forget(session_id)
    NOTICE_STORE.clear(session_id)

# --- Auth Helpers & Middleware --------------------------------------------------

def _session_cookie_options() -> dict:
    return cookie_opts(SETTINGS.environment)

def _set_session_cookie(response: Response, value: str, *, max_age: int | None = None) -> None:
    opts = _session_cookie_options()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=value,
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        max_age=max_age if max_age is not None else None,
    )

def _session_from_request(request: Request) -> Optional[SessionRecord]:
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    if not sid:
        return None
    try:
        rec = SESSION_STORE.get(sid)
    except Exception as exc:
        logger.warning("Session store get failed: %s", exc.__class__.__name__)
        return None
    if rec is None:
        # Expired or unknown: drop whatever is still keyed by this id.
        end_session(sid)
    return rec

def _is_api_path(path: str) -> bool:
    return path.startswith("/api/")

def _private_json(body: Any, status_code: int, **extra: str) -> JSONResponse:
    headers = {"Cache-Control": "private, no-store", **extra}
    return JSONResponse(body, status_code=status_code, headers=headers)

def _user_context(profile: ActorProfile) -> dict:
    return {
        "sub": profile.id,
        "name": profile.full_name,
        "email": profile.email,
        "role": profile.role.value,
        "player_id": profile.player_id,
    }

@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    """Effectful shell around `guards.decide`.

    Resolves the session's profile, asks the pure guard for a decision and
    turns it into a response: the page itself, a neutral loading state, a
    retry page, a redirect with a one-time notice, or JSON errors for API
    paths.
    """
    path = request.url.path
    if is_public_path(path):
        return await call_next(request)

    rec = _session_from_request(request)
    dev_role = PROFILES.dev_role
    session_key = rec.session_id if rec else (DEV_SESSION_KEY if dev_role is not None else "")
    snapshot = None
    if rec is not None or dev_role is not None:
        identity = (
            Identity(sub=rec.sub, email=rec.email, name=rec.name, access_token=rec.access_token) if rec else None
        )
        snapshot = await PROFILES.get(session_key).resolve(identity)

    ctx = guards.GuardContext(
        authenticated=rec is not None,
        dev_override=dev_role is not None,
        snapshot=snapshot,
        query=request.url.query,
    )
    decision = guards.decide(path, ctx)
    is_api = _is_api_path(path)
    is_htmx = "HX-Request" in request.headers

    if isinstance(decision, guards.Allow):
        profile = snapshot.profile if snapshot else None
        # Expose minimal, read-only actor context for downstream handlers.
        request.state.user = _user_context(profile) if profile else None
        request.state.profile = profile
        request.state.session = rec
        request.state.session_key = session_key
        return await call_next(request)

    if isinstance(decision, guards.Redirect) and decision.reason == guards.REASON_UNAUTHENTICATED:
        if is_api:
            return _private_json({"error": "unauthenticated"}, 401, Vary="Origin")
        if is_htmx:
            # Security: prevent intermediaries from caching unauthenticated HTMX responses
            return Response(status_code=401, headers={"HX-Redirect": decision.to, "Cache-Control": "private, no-store", "Vary": "HX-Request"})
        return RedirectResponse(url=decision.to, status_code=302)

    if isinstance(decision, guards.Pending):
        if is_api:
            return _private_json({"error": "profile_pending"}, 503, **{"Retry-After": "1"})
        return _render_pending(request)

    if isinstance(decision, guards.ProfileUnavailable):
        if is_api:
            return _private_json({"error": "profile_unavailable"}, 503, **{"Retry-After": "5"})
        return _render_profile_unavailable(request, decision.message)

    reason = getattr(decision, "reason", guards.REASON_FORBIDDEN)
    if reason == guards.REASON_CONFIGURATION_GAP:
        logger.warning("No role registry entry for %s; denying", path)
    if is_api:
        return _private_json({"error": "forbidden"}, 403)
    if isinstance(decision, guards.Redirect):
        if decision.notice:
            NOTICE_STORE.push(
                session_key,
                Notice(level="error", title=decision.notice, message="You do not have permission to view that page."),
            )
        if is_htmx:
            return Response(status_code=403, headers={"HX-Redirect": decision.to, "Cache-Control": "private, no-store"})
        return RedirectResponse(url=decision.to, status_code=302, headers={"Cache-Control": "private, no-store"})
    return _render_denied(request)

# --- Security Headers Middleware ----------------------------------------------

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    # The browser only talks to this origin; Supabase is reached server-side.
    if SETTINGS.environment == "prod":
        # Harden CSP in production: avoid 'unsafe-inline' to reduce XSS surface.
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self';"
        )
    else:
        # Developer experience: allow inline for local SSR templates/components.
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if SETTINGS.environment == "prod":
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    # HSTS: always on (dev = prod)
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response

# --- Rendering Helpers ----------------------------------------------------------

def _e(value: Any) -> str:
    """Escape for HTML; None renders as an empty string."""
    return _html_escape(str(value)) if value is not None else ""


def _layout_response(
    request: Request,
    layout: Layout,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> HTMLResponse:
    """Render Layout with HTMX-aware semantics and return an HTMLResponse.

    Why:
        Centralises the rule that HTMX navigation must only receive the main
        fragment plus a single out-of-band sidebar to keep the toggle JS happy.
    Behavior:
        - Returns the fragment/OOB combination when `HX-Request` is present.
        - Otherwise renders the complete document including `<head>` and
          navigation.
        - Personalized pages default to `Cache-Control: private, no-store`.
    Permissions:
        None. The auth middleware has already applied the role guard.
    """
    if request.headers.get("HX-Request"):
        body = layout.render_fragment()
    else:
        body = layout.render()
    response = HTMLResponse(content=body, status_code=status_code)
    is_personalized = bool(getattr(request.state, "user", None))
    if is_personalized and not (headers and "Cache-Control" in headers):
        response.headers["Cache-Control"] = "private, no-store"
    if headers:
        for key, value in headers.items():
            response.headers[key] = value
    return response


def _page(request: Request, title: str, content: str, *, status_code: int = 200) -> HTMLResponse:
    """Render a guarded page and drain the session's one-time notices into it."""
    session_key = getattr(request.state, "session_key", "")
    notices = NOTICE_STORE.pop_all(session_key) if session_key else []
    layout = Layout(
        title=title,
        content=content,
        user=getattr(request.state, "user", None),
        current_path=request.url.path,
        notices=notices,
    )
    return _layout_response(request, layout, status_code=status_code)


def _render_pending(request: Request) -> HTMLResponse:
    # Neutral state: no navigation, no guarded content, refresh until resolved.
    content = """
    <div class="container state-panel" aria-busy="true">
        <h1>Loading your profile…</h1>
        <p class="text-muted">This page refreshes automatically.</p>
    </div>
    """
    layout = Layout(
        title="Loading",
        content=content,
        show_nav=False,
        current_path=request.url.path,
        head_extra='<meta http-equiv="refresh" content="1">',
    )
    return _layout_response(request, layout, headers={"Cache-Control": "private, no-store", "Retry-After": "1"})


def _render_profile_unavailable(request: Request, message: str) -> HTMLResponse:
    retry = _e(request.url.path)
    content = f"""
    <div class="container state-panel" role="alert">
        <h1>Profile unavailable</h1>
        <p>{_e(message or "Your profile could not be loaded.")}</p>
        <p><a class="button button--primary" href="{retry}">Try again</a>
           <a class="button" href="/auth/logout">Sign out</a></p>
    </div>
    """
    layout = Layout(title="Profile unavailable", content=content, show_nav=False, current_path=request.url.path)
    return _layout_response(request, layout, status_code=503, headers={"Cache-Control": "private, no-store"})


def _render_denied(request: Request) -> HTMLResponse:
    content = """
    <div class="container state-panel" role="alert">
        <h1>Access Denied</h1>
        <p>Your account cannot open this page. Contact a club administrator if you need access.</p>
        <p><a class="button" href="/auth/logout">Sign out</a></p>
    </div>
    """
    layout = Layout(title="Access Denied", content=content, show_nav=False, current_path=request.url.path)
    return _layout_response(request, layout, status_code=403, headers={"Cache-Control": "private, no-store"})


def _retry_state(request: Request, what: str) -> str:
    return f"""
    <div class="card state-panel" role="alert">
        <h2>{_e(what)} could not be loaded</h2>
        <p>The club database did not respond. Please try again in a moment.</p>
        <p><a class="button button--primary" href="{_e(request.url.path)}">Retry</a></p>
    </div>
    """


def _empty_state(message: str) -> str:
    return f'<p class="empty-state text-muted">{_e(message)}</p>'


async def _load(fn, *args, **kwargs):
    """Run a blocking service call in a worker thread."""
    return await anyio.to_thread.run_sync(lambda: fn(*args, **kwargs))


def _fmt_pct(value: Any) -> str:
    return "Not yet available" if value is None else f"{value}%"


def _render_team_metrics(metrics) -> str:
    return MetricGrid(
        [
            Metric("Available players", f"{metrics.available_players}/{metrics.total_players}",
                   hint=f"{metrics.injured_players} injured, {metrics.suspended_players} suspended"),
            Metric("Win rate", f"{metrics.win_rate}%", hint=f"{metrics.matches_played} matches this season"),
            Metric("Team goals", str(metrics.team_goals)),
            Metric("Training attendance", f"{metrics.training_attendance}%", hint="Last 7 days"),
        ],
        title="Team metrics",
        grid_id="team-metrics",
    ).render()


def _render_squad_availability(data) -> str:
    return MetricGrid(
        [
            Metric("Available", str(data.available), tone="ok"),
            Metric("Light training", str(data.light_training), tone="warn"),
            Metric("Injured", str(data.injured), tone="danger"),
            Metric("Suspended", str(data.suspended), tone="danger"),
            Metric("Squad size", str(data.total)),
        ],
        title="Squad availability",
        grid_id="squad-availability",
    ).render()


def _render_shot_stats(stats: Mapping[str, Any], *, title: str = "Shot statistics") -> str:
    return MetricGrid(
        [
            Metric("Total shots", str(stats["total_shots"])),
            Metric("Goals", str(stats["goals"]), tone="ok"),
            Metric("On target", str(stats["on_target"])),
            Metric("Missed", str(stats["missed"]), hint=f"{stats['off_target']} off target, {stats['blocked']} blocked"),
            Metric("Conversion rate", f"{stats['conversion_rate']}%"),
            Metric("Accuracy", f"{stats['accuracy']}%"),
        ],
        title=title,
        grid_id="shot-stats",
    ).render()


def _render_development(progress) -> str:
    grid = MetricGrid(
        [
            Metric("Targets met", f"{progress.targets_met_percentage}%"),
            Metric("On track", str(progress.on_track_count), tone="ok"),
            Metric("Need focus", str(progress.need_focus_count), tone="warn"),
            Metric("Targets (90 days)", str(progress.total_targets)),
        ],
        title="Development progress",
        grid_id="development-progress",
    ).render()
    if not progress.teams:
        return grid + _empty_state("No active youth team assignments.")
    rows = "".join(
        f"<tr><td>{_e(t.team_name)}</td><td>{t.total_players}</td><td>{_e(_fmt_pct(t.on_target_percentage))}</td></tr>"
        for t in progress.teams
    )
    return grid + f"""
    <table class="table" id="team-progress">
        <thead><tr><th>Team</th><th>Players</th><th>On target</th></tr></thead>
        <tbody>{rows}</tbody>
    </table>"""


def _render_players_at_risk(rows) -> str:
    if not rows:
        return _empty_state("No players are currently at disciplinary risk.")
    body = "".join(
        f"""<tr>
            <td><a href="/player-analysis/players/{_e(r.id)}">{_e(r.name)}</a></td>
            <td>{r.yellow_cards}</td><td>{r.red_cards}</td>
            <td>{RiskBadge(r.risk_level.value).render()}</td>
            <td>{_e(r.reason)}</td>
        </tr>"""
        for r in rows
    )
    return f"""
    <table class="table" id="players-at-risk">
        <thead><tr><th>Player</th><th>Yellow</th><th>Red</th><th>Risk</th><th>Reason</th></tr></thead>
        <tbody>{body}</tbody>
    </table>"""


def _render_disciplinary(summary) -> str:
    fair_play = "n/a" if summary.fair_play_rating is None else f"{summary.fair_play_rating}/10"
    grid = MetricGrid(
        [
            Metric("Yellow cards", str(summary.yellow_cards)),
            Metric("Red cards", str(summary.red_cards)),
            Metric("Cards until suspension", str(summary.cards_until_suspension)),
            Metric("Fair play rating", fair_play),
        ],
        title="Disciplinary record",
        grid_id="disciplinary",
    ).render()
    return f'{grid}<p>Risk level: {RiskBadge(summary.risk_level.value).render()}</p>'


def _render_squad_table(players: List[Dict[str, Any]], statuses: Mapping[str, Any], discipline: Mapping[str, Any]) -> str:
    if not players:
        return _empty_state("No players registered for this season.")
    rows = []
    for p in players:
        pid = str(p.get("id"))
        status = statuses.get(pid)
        summary = discipline.get(pid)
        status_html = PlayerStatusBadge(status.status, status.status_text, status.description).render() if status else ""
        risk_html = RiskBadge(summary.risk_level.value).render() if summary else ""
        rows.append(
            f"""<tr>
            <td><a href="/player-analysis/players/{_e(pid)}">{_e(p.get("name"))}</a></td>
            <td>{_e(p.get("position"))}</td>
            <td>{status_html}</td>
            <td>{risk_html}</td>
        </tr>"""
        )
    return f"""
    <table class="table" id="squad">
        <thead><tr><th>Player</th><th>Position</th><th>Status</th><th>Disciplinary</th></tr></thead>
        <tbody>{''.join(rows)}</tbody>
    </table>"""


def _render_player_overview(overview) -> str:
    player = overview.player
    status = overview.status
    contract = overview.contract
    contract_html = (
        f"<p>Contract: {_e(contract.get('contract_type'))}, ends {_e(contract.get('contract_end_date'))}</p>"
        if contract
        else "<p class=\"text-muted\">No contract on file.</p>"
    )
    team_fp = overview.team_average_fair_play
    team_fp_html = f"<p class=\"text-muted\">Team average fair play: {team_fp}/10</p>" if team_fp is not None else ""
    return f"""
    <section class="player-header">
        <h2>{_e(player.get("name"))}</h2>
        <p>{_e(player.get("position"))} · {PlayerStatusBadge(status.status, status.status_text, status.description).render()}</p>
        <p class="text-muted">{_e(status.description)}</p>
        {contract_html}
        <p>Goals this season: {overview.goals}</p>
    </section>
    {_render_disciplinary(overview.disciplinary)}
    {team_fp_html}
    {_render_shot_stats(overview.shots.as_dict())}
    """

# --- Dashboard ------------------------------------------------------------------

_DASHBOARD_INTROS = {
    Role.ADMIN: "System overview across squad, compliance and accounts.",
    Role.MANAGEMENT: "Squad readiness and compliance at a glance.",
    Role.PERFORMANCE_DIRECTOR: "Performance and development across the club.",
    Role.ANALYST: "Match and shooting analytics.",
    Role.COACH: "Who is available for selection this week.",
    Role.PLAYER: "Your availability, discipline and shooting this season.",
}


def _dashboard_sections(profile: ActorProfile, service: ClubAnalyticsService) -> str:
    """Blocking: assemble the role-specific dashboard widgets."""
    role = profile.role
    if role is Role.PLAYER:
        if not profile.player_id:
            return _empty_state("Your account is not linked to a player record yet. Contact a club administrator.")
        overview = service.player_overview(profile.player_id)
        if overview is None:
            return _empty_state("Your player record could not be found.")
        return _render_player_overview(overview)

    parts: List[str] = []
    if role in (Role.ADMIN, Role.MANAGEMENT, Role.PERFORMANCE_DIRECTOR, Role.ANALYST, Role.COACH):
        parts.append(_render_team_metrics(service.team_metrics()))
    if role in (Role.ADMIN, Role.MANAGEMENT, Role.COACH):
        parts.append(_render_squad_availability(service.squad_availability()))
    if role in (Role.ADMIN, Role.MANAGEMENT):
        parts.append("<h2>Players at risk</h2>" + _render_players_at_risk(service.players_at_risk()))
    if role in (Role.PERFORMANCE_DIRECTOR, Role.ADMIN):
        parts.append(_render_development(service.development_progress()))
    if role is Role.ANALYST:
        stats = service.shot_statistics()
        parts.append(_render_shot_stats(stats["statistics"]))
    if role is Role.COACH:
        parts.append("<h2>Squad</h2>" + _render_squad_table(
            service.players(), service.player_statuses(), service.disciplinary_by_player()
        ))
    return "".join(parts)

# --- Pages ----------------------------------------------------------------------

@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    return RedirectResponse(url=DEFAULT_LANDING_PATH, status_code=302, headers={"Cache-Control": "private, no-store"})


@app.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request):
    profile: ActorProfile = request.state.profile
    heading = f"Welcome, {_e(profile.full_name)}"
    role_badge = RoleBadge(role_display_name(profile.role)).render()
    if profile.role is Role.UNASSIGNED:
        content = f"""
        <div class="container">
            <h1>{heading}</h1>
            <p>{role_badge}</p>
            <div class="card state-panel">
                <h2>No role assigned yet</h2>
                <p>Your account does not have a club role. A club administrator needs to assign one before you can see squad data.</p>
            </div>
        </div>
        """
        return _page(request, "Dashboard", content)
    try:
        sections = await _load(_dashboard_sections, profile, analytics_service(request))
    except FetchFailure:
        sections = _retry_state(request, "Dashboard data")
    content = f"""
    <div class="container">
        <h1>{heading}</h1>
        <p>{role_badge} <span class="text-muted">{_e(_DASHBOARD_INTROS.get(profile.role, ""))}</span></p>
        {sections}
    </div>
    """
    return _page(request, "Dashboard", content)


@app.get("/player-analysis", response_class=HTMLResponse)
async def player_analysis(request: Request):
    service = analytics_service(request)
    try:
        players = await _load(service.players)
        statuses = await _load(service.player_statuses)
        discipline = await _load(service.disciplinary_by_player)
        body = _render_squad_table(players, statuses, discipline)
    except FetchFailure:
        body = _retry_state(request, "Squad")
    content = f'<div class="container"><h1>Player Analysis</h1>{body}</div>'
    return _page(request, "Player Analysis", content)


@app.get("/player-analysis/stats", response_class=HTMLResponse)
async def player_stats(request: Request):
    service = analytics_service(request)
    try:
        goals = await _load(service.goals_by_player)
        discipline = await _load(service.disciplinary_by_player)
    except FetchFailure:
        return _page(request, "Player Stats", f'<div class="container"><h1>Player Stats</h1>{_retry_state(request, "Player statistics")}</div>')
    rows = []
    for g in goals:
        summary = discipline.get(g["player_id"])
        fair_play = summary.fair_play_rating if summary and summary.fair_play_rating is not None else "n/a"
        cards = f"{summary.yellow_cards}/{summary.red_cards}" if summary else "0/0"
        rows.append(
            f"<tr><td>{_e(g['name'])}</td><td>{g['goals']}</td><td>{_e(cards)}</td><td>{_e(fair_play)}</td></tr>"
        )
    table = f"""
    <table class="table" id="player-stats">
        <thead><tr><th>Player</th><th>Goals</th><th>Cards (Y/R)</th><th>Fair play</th></tr></thead>
        <tbody>{''.join(rows)}</tbody>
    </table>""" if rows else _empty_state("No players registered for this season.")
    return _page(request, "Player Stats", f'<div class="container"><h1>Player Stats</h1>{table}</div>')


def _player_select(name: str, players: List[Dict[str, Any]], selected: str | None, *, include_all: bool = False) -> str:
    options = ['<option value="all">All players</option>'] if include_all else ['<option value="">Select a player</option>']
    for p in players:
        pid = str(p.get("id"))
        sel = " selected" if pid == selected else ""
        options.append(f'<option value="{_e(pid)}"{sel}>{_e(p.get("name"))}</option>')
    return f'<select name="{_e(name)}" id="{_e(name)}">{"".join(options)}</select>'


@app.get("/player-analysis/comparison", response_class=HTMLResponse)
async def player_comparison(request: Request, a: str | None = None, b: str | None = None):
    """Side-by-side overview of two players chosen via `?a=<id>&b=<id>`."""
    service = analytics_service(request)
    try:
        players = await _load(service.players)
        columns = []
        for pid in (a, b):
            if not pid:
                continue
            overview = await _load(service.player_overview, pid)
            columns.append(
                f'<div class="compare-column">{_render_player_overview(overview)}</div>'
                if overview
                else f'<div class="compare-column">{_empty_state("Player not found.")}</div>'
            )
    except FetchFailure:
        return _page(request, "Player Comparison", f'<div class="container"><h1>Player Comparison</h1>{_retry_state(request, "Players")}</div>')
    form = f"""
    <form method="get" action="/player-analysis/comparison" class="filters">
        {_player_select("a", players, a)}
        {_player_select("b", players, b)}
        <button class="button" type="submit">Compare</button>
    </form>"""
    body = f'<div class="compare-grid">{"".join(columns)}</div>' if columns else _empty_state("Choose two players to compare.")
    return _page(request, "Player Comparison", f'<div class="container"><h1>Player Comparison</h1>{form}{body}</div>')


@app.get("/player-analysis/development", response_class=HTMLResponse)
async def player_development(request: Request):
    try:
        body = _render_development(await _load(analytics_service(request).development_progress))
    except FetchFailure:
        body = _retry_state(request, "Development progress")
    return _page(request, "Development", f'<div class="container"><h1>Development</h1>{body}</div>')


@app.get("/player-analysis/shot-map", response_class=HTMLResponse)
async def shot_map(
    request: Request,
    player_id: str | None = None,
    match_id: str | None = None,
    period: str | None = None,
    outcome: str | None = None,
):
    """Shot statistics filtered by player, match, period and outcome ("all" = no filter)."""
    service = analytics_service(request)
    try:
        players = await _load(service.players)
        data = await _load(
            service.shot_statistics,
            player_id=None if player_id in (None, "", "all") else player_id,
            match_id=match_id,
            period=period,
            outcome=outcome,
        )
    except FetchFailure:
        return _page(request, "Shot Map", f'<div class="container"><h1>Shot Map</h1>{_retry_state(request, "Shots")}</div>')
    match_opts = ['<option value="all">All matches</option>'] + [
        f'<option value="{_e(m["id"])}"{" selected" if m["id"] == match_id else ""}>{_e(m["name"])}</option>'
        for m in data["matches"]
    ]
    period_opts = ['<option value="all">All periods</option>'] + [
        f'<option value="{_e(p)}"{" selected" if p == period else ""}>{_e(p)}</option>' for p in SHOT_PERIODS
    ]
    outcome_opts = ['<option value="all">All outcomes</option>'] + [
        f'<option value="{_e(o)}"{" selected" if o == outcome else ""}>{_e(o)}</option>' for o in SHOT_OUTCOMES
    ]
    form = f"""
    <form method="get" action="/player-analysis/shot-map" class="filters" id="shot-filters">
        {_player_select("player_id", players, player_id, include_all=True)}
        <select name="match_id">{''.join(match_opts)}</select>
        <select name="period">{''.join(period_opts)}</select>
        <select name="outcome">{''.join(outcome_opts)}</select>
        <button class="button" type="submit">Apply</button>
    </form>"""
    body = _render_shot_stats(data["statistics"])
    return _page(request, "Shot Map", f'<div class="container"><h1>Shot Map</h1>{form}{body}</div>')


@app.get("/player-analysis/goals-assists", response_class=HTMLResponse)
async def goals_assists(request: Request):
    try:
        goals = await _load(analytics_service(request).goals_by_player)
    except FetchFailure:
        return _page(request, "Goals & Assists", f'<div class="container"><h1>Goals &amp; Assists</h1>{_retry_state(request, "Goals")}</div>')
    rows = "".join(f"<tr><td>{_e(g['name'])}</td><td>{g['goals']}</td></tr>" for g in goals)
    table = f"""
    <table class="table" id="goals">
        <thead><tr><th>Player</th><th>Goals</th></tr></thead>
        <tbody>{rows}</tbody>
    </table>
    <p class="text-muted">Assists are not recorded in match imports yet.</p>""" if goals else _empty_state("No goals recorded.")
    return _page(request, "Goals & Assists", f'<div class="container"><h1>Goals &amp; Assists</h1>{table}</div>')


@app.get("/player-analysis/players/{player_id}", response_class=HTMLResponse)
async def player_detail(request: Request, player_id: str):
    try:
        overview = await _load(analytics_service(request).player_overview, player_id)
    except FetchFailure:
        return _page(request, "Player", f'<div class="container">{_retry_state(request, "Player")}</div>')
    if overview is None:
        return _page(request, "Player not found", f'<div class="container"><h1>Player not found</h1>{_empty_state("No player with this id.")}</div>', status_code=404)
    return _page(request, str(overview.player.get("name") or "Player"), f'<div class="container">{_render_player_overview(overview)}</div>')


async def _team_overview_body(request: Request) -> str:
    service = analytics_service(request)
    try:
        metrics = await _load(service.team_metrics)
        availability = await _load(service.squad_availability)
        record = await _load(service.match_record)
    except FetchFailure:
        return _retry_state(request, "Team performance")
    record_html = (
        f'<p id="match-record">Record this season: {record["wins"]}W · {record["draws"]}D · {record["losses"]}L</p>'
    )
    return _render_team_metrics(metrics) + record_html + _render_squad_availability(availability)


@app.get("/team-performance", response_class=HTMLResponse)
async def team_performance(request: Request):
    body = await _team_overview_body(request)
    return _page(request, "Team Performance", f'<div class="container"><h1>Team Performance</h1>{body}</div>')


@app.get("/team-performance/overview", response_class=HTMLResponse)
async def team_performance_overview(request: Request):
    body = await _team_overview_body(request)
    return _page(request, "Overview", f'<div class="container"><h1>Team Overview</h1>{body}</div>')


@app.get("/team-performance/tactical-analysis", response_class=HTMLResponse)
async def tactical_analysis(request: Request):
    """Shooting split by half."""
    service = analytics_service(request)
    try:
        first = await _load(service.shot_statistics, period=FIRST_HALF)
        second = await _load(service.shot_statistics, period=SECOND_HALF)
    except FetchFailure:
        return _page(request, "Tactical Analysis", f'<div class="container"><h1>Tactical Analysis</h1>{_retry_state(request, "Shots")}</div>')
    body = _render_shot_stats(first["statistics"], title="First half") + _render_shot_stats(second["statistics"], title="Second half")
    return _page(request, "Tactical Analysis", f'<div class="container"><h1>Tactical Analysis</h1>{body}</div>')


@app.get("/match-data-import", response_class=HTMLResponse)
async def match_data_import(request: Request):
    content = """
    <div class="container">
        <h1>Match Data Import</h1>
        <div class="card state-panel">
            <p>Match files are imported directly into the club database. Uploading from this page is not available yet.</p>
        </div>
    </div>
    """
    return _page(request, "Match Data Import", content)


@app.get("/reports", response_class=HTMLResponse)
async def reports(request: Request):
    try:
        players = await _load(analytics_service(request).players)
    except FetchFailure:
        return _page(request, "Reports", f'<div class="container"><h1>Reports</h1>{_retry_state(request, "Players")}</div>')
    items = "".join(
        f'<li><a href="/player-analysis/players/{_e(str(p.get("id")))}">{_e(p.get("name"))}</a></li>' for p in players
    )
    content = f"""
    <div class="container">
        <h1>Reports</h1>
        <div class="card state-panel">
            <p>PDF export is not available. Open a player to view their report on screen.</p>
        </div>
        <ul class="report-list">{items}</ul>
    </div>
    """
    return _page(request, "Reports", content)


@app.get("/compliance", response_class=HTMLResponse)
async def compliance(request: Request):
    try:
        body = _render_players_at_risk(await _load(analytics_service(request).players_at_risk))
    except FetchFailure:
        body = _retry_state(request, "Compliance data")
    return _page(request, "Compliance", f'<div class="container"><h1>Compliance</h1><h2>Players at risk</h2>{body}</div>')


@app.get("/admin/users", response_class=HTMLResponse)
async def admin_users(request: Request):
    """Accounts grouped by role, administrators first."""
    try:
        rows = await _load(queries.list_users, request_repo(request))
    except FetchFailure:
        return _page(request, "User Management", f'<div class="container"><h1>User Management</h1>{_retry_state(request, "Users")}</div>')
    grouped: Dict[Role, List[Dict[str, Any]]] = {}
    for row in rows:
        grouped.setdefault(parse_role(row.get("role")) or Role.UNASSIGNED, []).append(row)
    sections = []
    for role in Role:
        members = grouped.get(role)
        if not members:
            continue
        items = "".join(
            f"<li>{_e(m.get('full_name') or m.get('email'))} <span class=\"text-muted\">{_e(m.get('email'))}</span></li>"
            for m in members
        )
        sections.append(
            f'<section class="user-group" id="role-{role.value}"><h2>{_e(role_display_name(role))} ({len(members)})</h2><ul>{items}</ul></section>'
        )
    body = "".join(sections) or _empty_state("No accounts yet.")
    return _page(request, "User Management", f'<div class="container"><h1>User Management</h1>{body}</div>')


@app.get("/settings", response_class=HTMLResponse)
async def settings_page(request: Request):
    profile: ActorProfile = request.state.profile
    content = f"""
    <div class="container">
        <h1>Settings</h1>
        <dl class="profile-details">
            <dt>Name</dt><dd>{_e(profile.full_name)}</dd>
            <dt>Email</dt><dd>{_e(profile.email)}</dd>
            <dt>Role</dt><dd>{RoleBadge(role_display_name(profile.role)).render()}</dd>
        </dl>
        <p class="text-muted">Role changes are made by a club administrator.</p>
    </div>
    """
    return _page(request, "Settings", content)

# --- Other Routes & App Includes -----------------------------------------------

app.include_router(auth_router)
app.include_router(analytics_router)
app.include_router(users_router)

@app.get("/health")
async def health_check():
    # Minimal health endpoint used by orchestrators and tests.
    # Security: include no-store to avoid caching any runtime status.
    return JSONResponse({"status": "healthy"}, headers={"Cache-Control": "private, no-store"})


def _me_payload(rec: Optional[SessionRecord], profile: Optional[ActorProfile]) -> dict:
    exp_iso = (
        datetime.fromtimestamp(rec.expires_at, tz=timezone.utc).isoformat(timespec="seconds")
        if rec and rec.expires_at
        else None
    )
    return {
        "sub": rec.sub if rec else (profile.id if profile else None),
        "email": rec.email if rec else (profile.email if profile else ""),
        "name": (profile.full_name if profile else "") or (rec.name if rec else ""),
        "role": profile.role.value if profile else None,
        "expires_at": exp_iso,
    }


@app.get("/api/me")
async def get_me(request: Request):
    return _private_json(
        _me_payload(getattr(request.state, "session", None), getattr(request.state, "profile", None)), 200
    )


@app.get("/api/profile")
async def get_profile(request: Request):
    """The resolved actor profile of the current session."""
    profile: ActorProfile = request.state.profile
    return _private_json(ProfileOut.from_profile(profile).model_dump(), 200)


def create_app_auth_only() -> FastAPI:
    """Factory returning a lightweight FastAPI app exposing only auth routes.

    Why: Tests import this to exercise authentication contracts in isolation
    without the role guard middleware or the analytics surfaces.
    """
    sub = FastAPI(title="Touchline (auth-only)", description="Auth slice", version="0.1.0")
    sub.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    sub.include_router(auth_router)

    # Session-only /api/me for auth contract tests
    @sub.get("/api/me")
    async def me_session_only(request: Request):
        rec = _session_from_request(request)
        if rec is None:
            return _private_json({"error": "unauthenticated"}, 401)
        return _private_json(_me_payload(rec, None), 200)

    return sub
