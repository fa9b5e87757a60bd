# server/core/sessions.py

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock

from core.config import SESSION_TTL_HOURS


@dataclass(frozen=True)
class SessionData:
    user_id: str
    user_name: str
    logged_in: bool
    expires_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """
    In-process server-side session store keyed by an opaque random token.
    A record lives for a fixed TTL counted from its creation; storing new
    data under an existing token keeps the original expiry. Every write
    also reclaims records that have expired under any token.
    """

    def __init__(self, ttl: timedelta = timedelta(hours=SESSION_TTL_HOURS)):
        self.ttl = ttl
        self._sessions: dict[str, SessionData] = {}
        self._lock = Lock()

    def new_token(self) -> str:
        return secrets.token_urlsafe(32)

    def _drop_expired(self, now: datetime) -> int:
        expired = [t for t, d in self._sessions.items() if d.expires_at <= now]
        for token in expired:
            del self._sessions[token]
        return len(expired)

    def set(self, token: str, user_id: str, user_name: str, logged_in: bool = True) -> SessionData:
        with self._lock:
            now = _now()
            self._drop_expired(now)
            current = self._sessions.get(token)
            if current is not None:
                expires_at = current.expires_at
            else:
                expires_at = now + self.ttl
            data = SessionData(
                user_id=user_id,
                user_name=user_name,
                logged_in=logged_in,
                expires_at=expires_at,
            )
            self._sessions[token] = data
            return data

    def get(self, token: str | None) -> SessionData | None:
        if not token:
            return None
        with self._lock:
            data = self._sessions.get(token)
            if data is None:
                return None
            if data.expires_at <= _now():
                del self._sessions[token]
                return None
            return data

    def destroy(self, token: str | None) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def purge_expired(self) -> int:
        with self._lock:
            return self._drop_expired(_now())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


session_store = SessionStore()


def get_session_store() -> SessionStore:
    return session_store
