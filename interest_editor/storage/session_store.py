"""
Session store implementations.

Sessions are kept as dicts (Session.to_dict) next to an expiry timestamp.
Expired entries are dropped lazily when read.

- InMemorySessionStore: process-local dict, used by tests and single-process runs
- MappingSessionStore: wraps any MutableMapping, e.g. NiceGUI's app.storage.general
"""

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Any, MutableMapping, Optional, Tuple

from interest_editor.models import Session, UserId

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "edit_session_"


def session_key(user_id: UserId) -> str:
    """Store key for a user's edit session."""
    return f"{SESSION_KEY_PREFIX}{user_id}"


class InMemorySessionStore:
    """
    Process-local session store with per-entry TTL.

    The lock only protects the dict itself. A get/modify/set sequence by a
    caller is not atomic; the last set() wins.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, session: Session, ttl: timedelta) -> None:
        expires_at = self._clock() + ttl.total_seconds()
        with self._lock:
            self._entries[key] = (expires_at, session.to_dict())

    def get(self, key: str) -> Optional[Session]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug(f"Session {key} expired")
                return None
        return Session.from_dict(payload)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info(f"Purged {len(expired)} expired edit sessions")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class MappingSessionStore:
    """
    Session store on top of a plain mapping.

    Each entry is {"expires_at": iso timestamp, "session": dict}, which keeps
    the stored value JSON-serializable for NiceGUI's persistent storage.
    """

    def __init__(
        self,
        storage: MutableMapping[str, Any],
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._storage = storage
        self._now = now

    def set(self, key: str, session: Session, ttl: timedelta) -> None:
        self._storage[key] = {
            "expires_at": (self._now() + ttl).isoformat(),
            "session": session.to_dict(),
        }

    def get(self, key: str) -> Optional[Session]:
        entry = self._storage.get(key)
        if not entry:
            return None

        expires_at = entry.get("expires_at")
        if expires_at:
            try:
                expiry = datetime.fromisoformat(expires_at)
            except ValueError:
                logger.warning(f"Dropping session {key} with unreadable expiry {expires_at!r}")
                self.delete(key)
                return None
            if self._now() >= expiry:
                logger.debug(f"Session {key} expired at {expires_at}")
                self.delete(key)
                return None

        try:
            return Session.from_dict(entry["session"])
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Dropping malformed session {key}: {e}")
            self.delete(key)
            return None

    def delete(self, key: str) -> None:
        self._storage.pop(key, None)
