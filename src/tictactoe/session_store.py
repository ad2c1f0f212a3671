import threading
import time
import uuid
from typing import Dict, List, Optional

from loguru import logger

from .errors import NotFound
from .session import Session

SESSION_ID_LENGTH = 6


def generate_session_id(length: int = SESSION_ID_LENGTH) -> str:
    return uuid.uuid4().hex[:length].upper()


def normalize_session_id(session_id) -> str:
    """Canonical form of a user-typed session ID."""
    if not isinstance(session_id, str):
        raise NotFound(session_id)
    return session_id.strip().upper()


class SessionStore(object):
    """In-memory registry of live game sessions.

    The model here is:
    - Each session has a unique, randomly generated string ID.
    - A session lives in the store from ``create`` until ``remove``.
    - Nothing survives a server restart.

    The store only guards its own dictionary. Changes to a session's state are
    made by the state machine while holding that session's lock.

    """
    def __init__(self, id_length: int = SESSION_ID_LENGTH, clock=time.monotonic):
        """Initialize an empty store."""
        self.sessions: Dict[str, Session] = {}
        self.id_length = id_length
        self.clock = clock
        self._lock = threading.Lock()

    def create(self) -> Session:
        """Allocate a new waiting session with an empty board and no players.

        """
        with self._lock:
            session_id = generate_session_id(self.id_length)
            while session_id in self.sessions:
                session_id = generate_session_id(self.id_length)
            now = self.clock()
            session = Session(id=session_id, created_at=now, last_activity=now)
            self.sessions[session_id] = session

        logger.info(f"Session '{session_id}' created")
        return session

    def get(self, session_id) -> Session:
        """Return the session with the given ID.

        Raises NotFound if there is no such live session.

        """
        key = normalize_session_id(session_id)
        with self._lock:
            session = self.sessions.get(key)
        if session is None:
            raise NotFound(session_id)
        return session

    def remove(self, session_id) -> Optional[Session]:
        """Remove the given session from the store, returning it if present.

        """
        key = normalize_session_id(session_id)
        with self._lock:
            session = self.sessions.pop(key, None)
        if session is not None:
            logger.info(f"Session '{key}' removed")
        return session

    def list_sessions(self) -> List[Session]:
        """Lists the currently live sessions."""
        with self._lock:
            return list(self.sessions.values())

    def prune_idle(self, max_idle_seconds: float, now: Optional[float] = None) -> List[Session]:
        """Remove sessions that have seen no activity for ``max_idle_seconds``.

        Returns the removed sessions so the caller can release their
        connections.

        """
        if now is None:
            now = self.clock()
        with self._lock:
            expired = [
                session_id
                for session_id, session in self.sessions.items()
                if now - session.last_activity >= max_idle_seconds
            ]
            removed = [self.sessions.pop(session_id) for session_id in expired]

        for session in removed:
            logger.info(f"Session '{session.id}' pruned after {max_idle_seconds}s idle")
        return removed

    def __contains__(self, session_id) -> bool:
        try:
            key = normalize_session_id(session_id)
        except NotFound:
            return False
        with self._lock:
            return key in self.sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self.sessions)
