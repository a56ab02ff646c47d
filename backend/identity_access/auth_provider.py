"""
Session/auth provider adapters (Supabase Auth).

Why:
    The web layer only needs "exchange email + password for an identity".
    Keeping that behind a protocol lets tests inject a fake and lets local
    development run without a reachable Supabase instance (Null adapter).

Security:
    Passwords are forwarded to the provider and never logged or stored. The
    provider's access token stays server-side in the session record.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol
import logging

logger = logging.getLogger("touchline.identity_access")


class AuthenticationError(Exception):
    """Raised when the provider rejects credentials or is unreachable.

    `code` is a short machine-readable reason:
    - invalid_credentials
    - provider_unavailable
    """

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


@dataclass(frozen=True)
class AuthIdentity:
    sub: str
    email: str
    name: str = ""
    access_token: Optional[str] = None


class AuthProviderProtocol(Protocol):
    def sign_in(self, *, email: str, password: str) -> AuthIdentity:
        ...


class DemoAuthProvider:
    """Development sign-in against the seeded `users` table.

    Every seeded account shares one password. Only wired when no hosted
    backend is configured and the environment is not prod-like.
    """

    def __init__(self, users: Any, *, password: str):
        self._accounts = {
            str(u.get("email") or "").lower(): u for u in users if u.get("email")
        }
        self._password = password

    def sign_in(self, *, email: str, password: str) -> AuthIdentity:
        row = self._accounts.get((email or "").strip().lower())
        if row is None or not password or password != self._password:
            raise AuthenticationError("invalid_credentials")
        return AuthIdentity(
            sub=str(row.get("id")),
            email=str(row.get("email")),
            name=str(row.get("full_name") or ""),
        )


class NullAuthProvider:
    """Used when no provider is configured; every sign-in fails closed."""

    def sign_in(self, *, email: str, password: str) -> AuthIdentity:
        raise AuthenticationError("provider_unavailable")


def _attr_or_key(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class SupabaseAuthProvider:
    """Password sign-in through a duck-typed supabase client (`client.auth`)."""

    def __init__(self, client: Any):
        self._client = client

    def sign_in(self, *, email: str, password: str) -> AuthIdentity:
        if not email or not password:
            raise AuthenticationError("invalid_credentials")
        try:
            res = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            # gotrue raises AuthApiError for rejected credentials; anything
            # else means we could not reach the provider.
            name = exc.__class__.__name__
            logger.warning("Sign-in failed: %s", name)
            if "AuthApiError" in name or "AuthInvalidCredentials" in name:
                raise AuthenticationError("invalid_credentials") from exc
            raise AuthenticationError("provider_unavailable") from exc

        user = _attr_or_key(res, "user")
        session = _attr_or_key(res, "session")
        sub = _attr_or_key(user, "id")
        if not sub:
            raise AuthenticationError("invalid_credentials")
        meta = _attr_or_key(user, "user_metadata") or {}
        user_email = str(_attr_or_key(user, "email") or email)
        name = ""
        if isinstance(meta, dict):
            name = str(meta.get("full_name") or meta.get("name") or "")
        return AuthIdentity(
            sub=str(sub),
            email=user_email,
            name=name or user_email.split("@")[0],
            access_token=_attr_or_key(session, "access_token"),
        )


__all__ = [
    "AuthenticationError",
    "AuthIdentity",
    "AuthProviderProtocol",
    "DemoAuthProvider",
    "NullAuthProvider",
    "SupabaseAuthProvider",
]
