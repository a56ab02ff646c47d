"""
In-memory stores for development: SessionStore and NoticeStore.

Why: Keep sessions opaque to the client. The cookie carries only a random
session id; identity and provider tokens stay server-side. Notices are
one-shot messages (e.g. "access denied") shown on the next rendered page.

For production behind several workers, replace with a shared store.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import secrets
import time


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    sub: str
    email: str
    name: str = ""
    access_token: Optional[str] = None
    expires_at: Optional[int] = None

    @property
    def ttl_seconds(self) -> Optional[int]:
        if self.expires_at is None:
            return None
        return max(0, self.expires_at - _now())


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}

    def create(
        self,
        *,
        sub: str,
        email: str,
        name: str = "",
        access_token: Optional[str] = None,
        ttl_seconds: int = 3600,
    ) -> SessionRecord:
        sid = secrets.token_urlsafe(24)
        rec = SessionRecord(
            session_id=sid,
            sub=sub,
            email=email,
            name=name,
            access_token=access_token,
            expires_at=_now() + ttl_seconds,
        )
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self._data.pop(session_id, None)
            return None
        return rec

    def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)


@dataclass
class Notice:
    level: str
    title: str
    message: str = ""


@dataclass
class _NoticeQueue:
    items: List[Notice] = field(default_factory=list)


class NoticeStore:
    """One-shot notices keyed by session id (or any stable client key).

    `push` appends; `pop_all` drains so every notice is rendered exactly once.
    """

    def __init__(self, *, max_per_key: int = 5):
        self._data: Dict[str, _NoticeQueue] = {}
        self._max = max_per_key

    def push(self, key: str, notice: Notice) -> None:
        if not key:
            return
        queue = self._data.setdefault(key, _NoticeQueue())
        queue.items.append(notice)
        if len(queue.items) > self._max:
            del queue.items[: len(queue.items) - self._max]

    def pop_all(self, key: str) -> List[Notice]:
        queue = self._data.pop(key, None) if key else None
        return list(queue.items) if queue else []

    def clear(self, key: str) -> None:
        self._data.pop(key, None)
