"""
Supabase-backed club repo (PostgREST tables and functions).

The adapter is duck-typed on the client so tests can pass a fake. The client
is expected to expose `.table(name)` returning a query builder offering
`select(columns)`, `eq(column, value)`, `in_(column, values)`,
`order(column, desc=...)` and `execute()` with a `.data` list, and
`.rpc(function, params)` returning a builder with `execute()`.

Actor scoping:
    The unscoped repo reads with the anon key only. `as_user` returns a repo
    over a client built by `scoped_client(access_token)` for that one actor;
    clients are never shared between accounts and nobody signs in on them.

Error mapping:
- PostgREST code PGRST116 ("no rows") or an empty single-row result becomes
  `RecordNotFound`.
- Any other exception becomes `FetchFailure`; the original is chained.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from club_data.repo import FetchFailure, RecordNotFound

logger = logging.getLogger("touchline.club_data")

NO_ROWS_CODE = "PGRST116"


def _error_code(exc: Exception) -> str:
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return code
    # postgrest APIError keeps the payload in args[0] on some versions.
    if exc.args and isinstance(exc.args[0], dict):
        return str(exc.args[0].get("code") or "")
    return ""


class SupabaseClubRepo:
    """ClubRepoProtocol implementation on top of a supabase client."""

    def __init__(self, client: Any, *, scoped_client: Optional[Callable[[str], Any]] = None):
        # Duck-typed supabase client, e.g., from `supabase import create_client(...)`.
        self._client = client
        self._scoped_client = scoped_client

    @property
    def client(self) -> Any:
        return self._client

    def as_user(self, user_id: str, access_token: Optional[str] = None) -> "SupabaseClubRepo":
        """Repo reading with `access_token`; without a token, the anon repo itself."""
        if not access_token or self._scoped_client is None:
            return self
        return SupabaseClubRepo(self._scoped_client(access_token))

    def _query(self, table: str, filters: Mapping[str, Any] | None):
        query = self._client.table(table).select("*")
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.in_(column, list(value))
            else:
                query = query.eq(column, value)
        return query

    def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        try:
            query = self._query(table, filters)
            if order_by:
                query = query.order(order_by, desc=descending)
            res = query.execute()
        except Exception as exc:
            logger.warning("Select on %s failed: %s", table, exc.__class__.__name__)
            raise FetchFailure(table, exc.__class__.__name__) from exc
        data = getattr(res, "data", None)
        if data is None:
            return []
        if not isinstance(data, list):
            raise FetchFailure(table, "unexpected_payload")
        return [dict(row) for row in data if isinstance(row, Mapping)]

    def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            res = self._query(table, filters).limit(1).execute()
        except Exception as exc:
            if _error_code(exc) == NO_ROWS_CODE:
                raise RecordNotFound(table, filters) from exc
            logger.warning("Single-row select on %s failed: %s", table, exc.__class__.__name__)
            raise FetchFailure(table, exc.__class__.__name__) from exc
        data = getattr(res, "data", None)
        if isinstance(data, Mapping):
            return dict(data)
        if isinstance(data, list) and data and isinstance(data[0], Mapping):
            return dict(data[0])
        raise RecordNotFound(table, filters)

    def rpc(self, function: str, params: Mapping[str, Any] | None = None) -> Any:
        try:
            res = self._client.rpc(function, dict(params or {})).execute()
        except Exception as exc:
            logger.warning("Call to %s failed: %s", function, exc.__class__.__name__)
            raise FetchFailure(f"rpc/{function}", exc.__class__.__name__) from exc
        return getattr(res, "data", None)


__all__ = ["SupabaseClubRepo", "NO_ROWS_CODE"]
