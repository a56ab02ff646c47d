"""
Configuration and startup security checks for Touchline.

Why: Player medical, contract and disciplinary data must never be served by
an accidentally insecure deployment. This module provides a single guard that
enforces minimal production safety constraints without burdening local
development, plus small env readers shared by the app.

Permissions: The caller needs no special privileges. Functions read
environment variables and raise `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from identity_access.domain import Role, parse_role

logger = logging.getLogger("touchline.web")

DEFAULT_SEASON = "2024-25"
_PLACEHOLDER_PREFIXES = ("CHANGE_ME", "DUMMY", "YOUR_")


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def _is_placeholder(value: str) -> bool:
    upper = (value or "").strip().upper()
    return not upper or upper.startswith(_PLACEHOLDER_PREFIXES)


def current_environment() -> str:
    return (os.getenv("TOUCHLINE_ENV", "dev") or "dev").lower()


def dev_role_from_env() -> Optional[Role]:
    """Parse TOUCHLINE_DEV_ROLE. Unset means no stand-in actor.

    An unknown value aborts startup instead of silently granting a role.
    """
    raw = (os.getenv("TOUCHLINE_DEV_ROLE") or "").strip()
    if not raw:
        return None
    role = parse_role(raw)
    if role is None:
        allowed = ", ".join(r.value for r in Role)
        raise SystemExit(f"Refusing to start: TOUCHLINE_DEV_ROLE must be one of: {allowed}.")
    if _is_prod_like(current_environment()):
        raise SystemExit("Refusing to start: TOUCHLINE_DEV_ROLE must not be set in production/staging.")
    logger.warning("Development stand-in actor active: role=%s", role.value)
    return role


def current_season() -> str:
    return (os.getenv("TOUCHLINE_SEASON") or DEFAULT_SEASON).strip()


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - No development stand-in actor (TOUCHLINE_DEV_ROLE) may be configured.
    - SUPABASE_URL must be set and use https.
    - SUPABASE_ANON_KEY must be set and not a known placeholder.
    - TOUCHLINE_TRUST_PROXY, when set, must be an explicit true/false.
    """
    env = current_environment()
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Development stand-in actor bypasses authentication entirely
    if (os.getenv("TOUCHLINE_DEV_ROLE") or "").strip():
        raise SystemExit(
            "Refusing to start: TOUCHLINE_DEV_ROLE must not be set in production/staging."
        )

    # 2) Hosted backend endpoint
    url = (os.getenv("SUPABASE_URL") or "").strip()
    if not url:
        raise SystemExit("Refusing to start: SUPABASE_URL is unset in production.")
    if not url.lower().startswith("https://"):
        raise SystemExit("Refusing to start: SUPABASE_URL must use https in production (got http).")

    # 3) Client key
    key = (os.getenv("SUPABASE_ANON_KEY") or "").strip()
    if _is_placeholder(key):
        raise SystemExit(
            "Refusing to start: SUPABASE_ANON_KEY is unset or a placeholder in production."
        )

    # 4) Proxy trust must be explicit
    trust = (os.getenv("TOUCHLINE_TRUST_PROXY") or "").strip().lower()
    if trust and trust not in {"true", "false"}:
        raise SystemExit("Refusing to start: TOUCHLINE_TRUST_PROXY must be 'true' or 'false'.")
