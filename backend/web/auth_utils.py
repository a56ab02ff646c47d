"""
Shared authentication utilities.

Why:
    The cookie policy and the in-app redirect validation are needed by the
    middleware, the guard and the auth router. Keeping one implementation
    avoids drift between them.

Design:
    Helpers are framework-agnostic and pure.
"""

from __future__ import annotations

import re
from urllib.parse import quote

# Single source of truth for allowed in-app redirect paths.
# Disallow double slashes and path traversal (".."), allow dots in names.
INAPP_PATH_PATTERN = re.compile(r"^(?!.*//)(?!.*\.\.)/[A-Za-z0-9._\-/]*$")
# Query strings as sent by the browser: percent-encoded, no fragments.
INAPP_QUERY_PATTERN = re.compile(r"^[A-Za-z0-9._~\-=&%+]*$")
MAX_INAPP_REDIRECT_LEN = 256

LOGIN_PATH = "/auth/login"


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags (dev = prod).

    Returns a mapping with keys:
      - secure: True
      - samesite: "lax"  # the login POST redirects top-level back into the app
    """
    return {"secure": True, "samesite": "lax"}


def is_inapp_path(value: object) -> bool:
    """Return True if value is an absolute in-app path, e.g., "/", "/reports".

    An encoded query string is allowed ("/player-analysis/shot-map?period=First+Half").
    Rejects schemes, hosts, fragments and traversal so the value can be used
    as a redirect target without an open redirect.
    Examples (rejected): "reports", "https://evil.com", "/a#b", "/..", "//evil".
    """
    if not value or not isinstance(value, str):
        return False
    if len(value) > MAX_INAPP_REDIRECT_LEN:
        return False
    path, sep, query = value.partition("?")
    if not INAPP_PATH_PATTERN.match(path):
        return False
    return not sep or bool(INAPP_QUERY_PATTERN.match(query))


def login_url(original_path: str | None, query: str = "") -> str:
    """Login URL carrying the original destination when it is worth returning to.

    `query` (or one already on `original_path`) is kept when it validates;
    otherwise only the path is.
    """
    if not original_path or not is_inapp_path(original_path):
        return LOGIN_PATH
    path, _, embedded = original_path.partition("?")
    query = query or embedded
    target = path
    if query and is_inapp_path(f"{path}?{query}"):
        target = f"{path}?{query}"
    if target == "/":
        return LOGIN_PATH
    return f"{LOGIN_PATH}?redirect={quote(target, safe='/')}"
