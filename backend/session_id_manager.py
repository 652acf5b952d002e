"""In-memory login sessions keyed by an opaque cookie value."""
import secrets
import threading
import time
from typing import NamedTuple, Optional

from fastapi.responses import Response

from joyride.config import SESSION_TIMEOUT_SECONDS

SESSION_COOKIE_NAME = "session_id"


class _Session(NamedTuple):
    username: str
    expires_at: float


_store: dict[str, _Session] = {}
# Held for every read or write of _store
_lock = threading.Lock()


def _prune(now: float) -> None:
    for sid in [sid for sid, s in _store.items() if s.expires_at <= now]:
        del _store[sid]


def create_session(username: str, expires_at: Optional[float] = None) -> str:
    """
    Start a session for username and return its id. Expires at the given Unix
    timestamp, or SESSION_TIMEOUT_SECONDS from now.
    """
    session_id = secrets.token_urlsafe(32)
    if expires_at is None:
        expires_at = time.time() + SESSION_TIMEOUT_SECONDS
    with _lock:
        _store[session_id] = _Session(username, float(expires_at))
    return session_id


def get_username_from_session(session_id: str | None) -> str | None:
    """Username for a live session, or None. Expired sessions are dropped on the way."""
    if not session_id:
        return None
    with _lock:
        _prune(time.time())
        session = _store.get(session_id)
    return session.username if session else None


def delete_session(session_id: str | None) -> None:
    if session_id:
        with _lock:
            _store.pop(session_id, None)


def delete_user_sessions(username: str) -> None:
    """Sign a user out everywhere, e.g. after the account is deleted."""
    with _lock:
        for sid in [sid for sid, s in _store.items() if s.username == username]:
            del _store[sid]


def set_session_cookie(response: Response, session_id: str, max_age: Optional[int] = None) -> None:
    age = max_age if max_age is not None and max_age > 0 else SESSION_TIMEOUT_SECONDS
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        max_age=age,
        httponly=True,
        samesite="lax",
    )
