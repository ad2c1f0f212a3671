"""
Live connection bookkeeping and fan-out.

A connection is identified by its Socket.IO session ID. Each connection is
bound to at most one (session, symbol) pair at a time. Deliveries are best
effort: a connection that has gone away is skipped and nothing is queued.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from .errors import AlreadyInGame, GameError


@dataclass(frozen=True)
class Binding(object):
    """The session and symbol a connection plays with."""
    session_id: str
    symbol: str


# emit(event, payload, connection)
Emitter = Callable[[str, Dict[str, Any], str], None]


class ConnectionManager(object):
    """Maps live connections to their game bindings and delivers events.

    Parameters
    ----------
    emit : callable, optional
        ``emit(event, payload, connection)`` used for every delivery. The
        application wires this to ``SocketIO.emit``; when None, deliveries are
        only logged.
    """

    def __init__(self, emit: Optional[Emitter] = None):
        self.emit = emit
        self.connections: Dict[str, Optional[Binding]] = {}
        self._inbound_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def register(self, connection: str):
        """Record a new network connection with no binding."""
        with self._lock:
            self.connections.setdefault(connection, None)
            self._inbound_locks.setdefault(connection, threading.Lock())
        logger.debug(f"Connection {connection} registered")

    def unregister(self, connection: str) -> Optional[Binding]:
        """Forget a connection, returning the binding it still had, if any."""
        with self._lock:
            binding = self.connections.pop(connection, None)
            self._inbound_locks.pop(connection, None)
        logger.debug(f"Connection {connection} unregistered")
        return binding

    def is_registered(self, connection: str) -> bool:
        with self._lock:
            return connection in self.connections

    def bind(self, connection: str, session_id: str, symbol: str) -> Binding:
        """Bind a connection to a session as ``symbol``.

        Raises AlreadyInGame if the connection is already bound, and
        GameError if the connection is not (or no longer) registered.

        """
        with self._lock:
            if connection not in self.connections:
                raise GameError('Connection is closed')
            current = self.connections[connection]
            if current is not None:
                raise AlreadyInGame(current.session_id)
            binding = Binding(session_id, symbol)
            self.connections[connection] = binding
        logger.debug(f"Connection {connection} bound to '{session_id}' as {symbol}")
        return binding

    def unbind(self, connection: str, session_id: Optional[str] = None) -> Optional[Binding]:
        """Clear a connection's binding and return the previous one.

        When ``session_id`` is given the binding is only cleared if it refers
        to that session.

        """
        with self._lock:
            binding = self.connections.get(connection)
            if binding is None:
                return None
            if session_id is not None and binding.session_id != session_id:
                return None
            self.connections[connection] = None
        return binding

    def unbind_session(self, session_id: str) -> List[str]:
        """Clear every binding to ``session_id``; returns the released connections."""
        with self._lock:
            released = [
                connection
                for connection, binding in self.connections.items()
                if binding is not None and binding.session_id == session_id
            ]
            for connection in released:
                self.connections[connection] = None
        return released

    def binding(self, connection: str) -> Optional[Binding]:
        with self._lock:
            return self.connections.get(connection)

    def connections_for(self, session_id: str) -> List[str]:
        """Connections currently bound to the given session."""
        with self._lock:
            return [
                connection
                for connection, binding in self.connections.items()
                if binding is not None and binding.session_id == session_id
            ]

    def send(self, connection: str, event: str, payload: Dict[str, Any]) -> bool:
        """Deliver one event to one connection.

        Returns False when the connection is gone or the transport refused
        the event; the event is dropped in both cases.

        """
        if not self.is_registered(connection):
            logger.debug(f"Dropping '{event}' for closed connection {connection}")
            return False
        if self.emit is None:
            logger.debug(f"No emitter; '{event}' for {connection} not delivered")
            return False
        try:
            self.emit(event, payload, connection)
        except Exception as e:
            logger.warning(f"Failed to deliver '{event}' to {connection}: {e}")
            return False
        return True

    def broadcast(self, session_id: str, event: str, payload: Dict[str, Any]) -> int:
        """Deliver an event to every connection bound to ``session_id``.

        Returns the number of connections the event was handed to.

        """
        targets = self.connections_for(session_id)
        delivered = sum(1 for connection in targets if self.send(connection, event, payload))
        logger.debug(f"Broadcast '{event}' to game '{session_id}' ({delivered}/{len(targets)} delivered)")
        return delivered

    @contextmanager
    def serialized(self, connection: str):
        """Hold the connection's inbound lock so its events apply one at a time."""
        with self._lock:
            lock = self._inbound_locks.get(connection)
        if lock is None:
            # Unknown connection: nothing else can be queued behind it.
            lock = threading.Lock()
        with lock:
            yield

    def __len__(self) -> int:
        with self._lock:
            return len(self.connections)
