"""
Authentication-related FastAPI routes (router-only module).

Why:
    Keep auth endpoints in a dedicated router so the full app and the slim
    auth-only test app share one implementation.

Notes:
    - This module resolves the active `main` module per request to reuse the
      shared session store, notice store, profile resolvers and auth provider.
    - Sign-in is email + password against the configured provider (Supabase
      Auth, or the seeded demo accounts in development). The provider's token
      stays server-side; the browser only receives an opaque session id.
"""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from pydantic import BaseModel, Field, ValidationError
from pydantic.functional_validators import field_validator

from identity_access.access import DEFAULT_LANDING_PATH
from identity_access.auth_provider import AuthenticationError

from .security import _is_same_origin, resolve_active_main

try:
    from ..auth_utils import cookie_opts, is_inapp_path, login_url
except ImportError:  # flat layout (backend/web on sys.path)
    from auth_utils import cookie_opts, is_inapp_path, login_url

auth_router = APIRouter(tags=["Auth"])  # explicit paths, no prefix
logger = logging.getLogger("touchline.web.auth")

_LOGIN_ERRORS = {
    "invalid_credentials": "Email or password is incorrect.",
    "provider_unavailable": "Sign-in is temporarily unavailable. Please try again.",
    "invalid_form": "Please enter your email and password.",
    "csrf_violation": "Your sign-in request could not be verified. Please reload the page.",
}


class LoginForm(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1, max_length=512)
    redirect: str | None = Field(default=None)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invalid_email")
        return v

    @field_validator("redirect", mode="before")
    @classmethod
    def _safe_redirect(cls, v):
        # Security: accept only absolute in-app paths; anything else is dropped.
        return v if is_inapp_path(v) else None


def _safe_redirect(value: str | None) -> str | None:
    return value if is_inapp_path(value) else None


def _render_login_page(*, redirect: str | None, email: str = "", error: str | None = None) -> str:
    from html import escape

    error_html = (
        f'<div class="alert alert-error" role="alert">{escape(_LOGIN_ERRORS.get(error, error))}</div>'
        if error
        else ""
    )
    redirect_input = (
        f'<input type="hidden" name="redirect" value="{escape(redirect)}">' if redirect else ""
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Sign in - Touchline</title>
  <link rel="stylesheet" href="/static/css/touchline.css?v=1" />
</head>
<body class="auth-info">
  <main class="container auth-card">
    <h1>Sign in to Touchline</h1>
    {error_html}
    <form method="post" action="/auth/login" class="form">
      <label for="email">Email</label>
      <input id="email" name="email" type="email" autocomplete="username" value="{escape(email)}" required>
      <label for="password">Password</label>
      <input id="password" name="password" type="password" autocomplete="current-password" required>
      {redirect_input}
      <button class="button button--primary" type="submit">Sign in</button>
    </form>
  </main>
</body>
</html>"""


@auth_router.get("/auth/login", response_class=HTMLResponse)
async def auth_login(request: Request, redirect: str | None = None):
    """
    Render the sign-in form.

    Behavior:
        - Validates optional `redirect` to be an absolute in-app path; external
          URLs are dropped so the form never carries an open redirect.
        - HTMX requests receive `HX-Redirect` so the whole page navigates.
    Permissions:
        Public.
    """
    safe_redirect = _safe_redirect(redirect)
    headers = {"Cache-Control": "private, no-store", "Vary": "HX-Request"}
    if request.headers.get("HX-Request"):
        headers["HX-Redirect"] = login_url(safe_redirect)
        return Response(status_code=204, headers=headers)
    return HTMLResponse(_render_login_page(redirect=safe_redirect), headers=headers)


@auth_router.post("/auth/login")
async def auth_login_submit(request: Request):
    """
    Exchange email + password for a server-side session.

    Behavior:
        - Same-origin check (Origin/Referer) against login CSRF.
        - Credentials go to the configured provider in a worker thread.
        - On success a fresh session is created, any previous session for
          this browser is dropped, and the browser is redirected to the
          validated `redirect` or the dashboard.
        - On failure the form is re-rendered with a generic message (401).
    Security:
        Passwords are never logged; responses carry `Cache-Control: private, no-store`.
    """
    mod = resolve_active_main(request)
    headers = {"Cache-Control": "private, no-store"}
    form = await request.form()
    email_raw = str(form.get("email") or "")
    redirect_raw = form.get("redirect")
    if not _is_same_origin(request):
        html = _render_login_page(redirect=_safe_redirect(redirect_raw), email=email_raw, error="csrf_violation")
        return HTMLResponse(html, status_code=403, headers=headers)
    try:
        payload = LoginForm(
            email=email_raw,
            password=str(form.get("password") or ""),
            redirect=redirect_raw,
        )
    except ValidationError:
        html = _render_login_page(redirect=_safe_redirect(redirect_raw), email=email_raw, error="invalid_form")
        return HTMLResponse(html, status_code=400, headers=headers)

    provider = mod.AUTH_PROVIDER
    try:
        identity = await anyio.to_thread.run_sync(
            lambda: provider.sign_in(email=payload.email, password=payload.password)
        )
    except AuthenticationError as exc:
        logger.info("Sign-in rejected: %s", exc.code)
        status = 503 if exc.code == "provider_unavailable" else 401
        html = _render_login_page(redirect=payload.redirect, email=payload.email, error=exc.code)
        return HTMLResponse(html, status_code=status, headers=headers)

    previous = request.cookies.get(mod.SESSION_COOKIE_NAME)
    if previous:
        mod.end_session(previous)
    sess = mod.SESSION_STORE.create(
        sub=identity.sub,
        email=identity.email,
        name=identity.name,
        access_token=identity.access_token,
    )
    resp = RedirectResponse(url=payload.redirect or DEFAULT_LANDING_PATH, status_code=302, headers=headers)
    max_age = sess.ttl_seconds if mod.SETTINGS.environment == "prod" else None
    mod._set_session_cookie(resp, sess.session_id, max_age=max_age)
    return resp


@auth_router.get("/auth/logout")
async def auth_logout(request: Request):
    """
    Clear the app session and show the success page.

    Behavior:
        - Deletes the server-side session, the session's profile resolver and
          any queued notices, so no profile outlives its session.
        - Sends Set-Cookie to expire the session cookie.
    Permissions:
        Public.
    """
    mod = resolve_active_main(request)
    sid = request.cookies.get(mod.SESSION_COOKIE_NAME)
    if sid:
        mod.end_session(sid)
    resp = RedirectResponse(url="/auth/logout/success", status_code=302)
    resp.headers["Cache-Control"] = "private, no-store"
    opts = cookie_opts(mod.SETTINGS.environment)
    resp.set_cookie(
        key=mod.SESSION_COOKIE_NAME,
        value="",
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        expires=0,
        max_age=0,
    )
    return resp


@auth_router.get("/auth/logout/success", response_class=HTMLResponse)
async def auth_logout_success():
    """Minimal page after logout with a link back to /auth/login. No user data."""
    html = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
      <meta charset="utf-8">
      <meta name="viewport" content="width=device-width, initial-scale=1" />
      <title>Signed out - Touchline</title>
      <link rel="stylesheet" href="/static/css/touchline.css?v=1" />
    </head>
    <body class="auth-info">
      <main class="container auth-card">
        <h1>Signed out</h1>
        <p>You have been signed out of Touchline.</p>
        <p>
          <a class="button button--primary" href="/auth/login">Sign in again</a>
        </p>
      </main>
    </body>
    </html>
    """
    return HTMLResponse(content=html, headers={"Cache-Control": "private, no-store"})
