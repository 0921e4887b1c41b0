"""
Temporary storage for import sessions.
Keeps session state in memory with TTL expiration.
Single-server only: sessions do not survive a restart.
"""
import uuid
from datetime import datetime, timedelta
from typing import Any, Optional

from config.settings import settings

_sessions: dict[str, tuple[datetime, Any]] = {}


def new_session_id() -> str:
    """Random session id."""
    return str(uuid.uuid4())


def save_session(session_id: str, data: Any, ttl_minutes: Optional[int] = None) -> None:
    """Store or replace session data; every save restarts the TTL."""
    ttl = ttl_minutes if ttl_minutes is not None else settings.import_session_ttl_minutes
    expires_at = datetime.now() + timedelta(minutes=ttl)
    _sessions[session_id] = (expires_at, data)
    _cleanup_expired()


def load_session(session_id: str) -> Optional[Any]:
    """Session data by id. Returns None if expired/not found."""
    entry = _sessions.get(session_id)
    if entry is None:
        return None
    expires_at, data = entry
    if datetime.now() > expires_at:
        del _sessions[session_id]
        return None
    return data


def delete_session(session_id: str) -> bool:
    """Remove a session after execute or cancel. True if it existed."""
    return _sessions.pop(session_id, None) is not None


def clear_sessions() -> None:
    """Drop every session."""
    _sessions.clear()


def _cleanup_expired() -> None:
    """Remove all expired entries."""
    now = datetime.now()
    expired = [k for k, (exp, _) in _sessions.items() if now > exp]
    for k in expired:
        del _sessions[k]
