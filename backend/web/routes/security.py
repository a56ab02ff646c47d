"""
Shared web security helpers for routers.

Contains the same-origin (CSRF) check used by form posts and the lookup of
the active `main` module, which owns the shared stores.
"""
from __future__ import annotations

import os
import sys
from urllib.parse import urlparse

from fastapi import Request


def _default_port(scheme: str) -> int:
    return 443 if scheme == "https" else 80


def _parse_origin(url: str) -> tuple[str, str, int]:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    return scheme, p.hostname.lower(), int(p.port if p.port is not None else _default_port(scheme))


def _server_origin(request: Request) -> tuple[str, str, int]:
    """Origin the browser sees. X-Forwarded-* only counts with TOUCHLINE_TRUST_PROXY=true."""
    trust_proxy = (os.getenv("TOUCHLINE_TRUST_PROXY", "false") or "").lower() == "true"
    scheme = (request.url.scheme or "http").lower()
    host = (request.url.hostname or "").lower()
    port = int(request.url.port) if request.url.port else _default_port(scheme)
    if not trust_proxy:
        return scheme, host, port
    xf_proto = (request.headers.get("x-forwarded-proto") or "").split(",")[0].strip().lower()
    xf_host = (request.headers.get("x-forwarded-host") or "").split(",")[0].strip().lower()
    if xf_proto:
        scheme = xf_proto
        port = _default_port(scheme)
    if xf_host:
        if ":" in xf_host:
            host, port_str = xf_host.rsplit(":", 1)
            try:
                port = int(port_str)
            except ValueError:
                port = _default_port(scheme)
        else:
            host = xf_host
    return scheme, host, port


def _is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow to not break non-browser clients.
    """
    try:
        server = _server_origin(request)
        origin_val = request.headers.get("origin")
        if origin_val:
            return _parse_origin(origin_val) == server
        referer_val = request.headers.get("referer")
        if referer_val:
            return _parse_origin(referer_val) == server
        return True
    except ValueError:
        return False


def resolve_active_main(request: Request):
    """Return the active main module whose app matches request.app.

    Tests may import the app as either `main` or `backend.web.main`; prefer
    the module whose `app` object is the ASGI app serving this request.
    """
    candidates = [m for m in (sys.modules.get("main"), sys.modules.get("backend.web.main")) if m]
    for m in candidates:
        if getattr(m, "app", None) is getattr(request, "app", None):
            return m
    if candidates:
        return candidates[0]
    import main  # type: ignore

    return main
