"""
Event gateway between the transport and the game sessions.

This module decodes inbound client events, dispatches them to the session
store and state machine, and sends replies through the connection manager.
It knows nothing about Flask or Socket.IO; websocket_handlers.py feeds it.
"""

from typing import Any, Callable, Dict

from loguru import logger

from . import protocol
from .errors import AlreadyInGame, GameError, NotFound, NotInGame
from .session import FINISHED
from .session_store import normalize_session_id


class EventGateway(object):
    """Dispatches client events for one server instance.

    Parameters
    ----------
    store : SessionStore
    connections : ConnectionManager
    machine : SessionMachine
    """

    def __init__(self, store, connections, machine):
        self.store = store
        self.connections = connections
        self.machine = machine
        self.handlers: Dict[str, Callable[[str, Any], None]] = {
            protocol.CREATE_GAME: self.create_game,
            protocol.JOIN_GAME: self.join_game,
            protocol.MAKE_MOVE: self.make_move,
            protocol.LEAVE_GAME: self.leave_game,
            protocol.GET_GAME: self.get_game,
        }

    def connect(self, connection: str):
        """A new network connection arrived."""
        self.connections.register(connection)
        logger.info(f"Client connected: {connection}")

    def disconnect(self, connection: str):
        """A network connection went away."""
        with self.connections.serialized(connection):
            binding = self.connections.unbind(connection)
            if binding is not None:
                self.machine.disconnect(binding.session_id, connection)
            self.connections.unregister(connection)
        logger.info(f"Client disconnected: {connection}")

    def dispatch(self, event: str, connection: str, data=None) -> bool:
        """Handle one inbound event.

        Any GameError is answered with an ``error`` event to ``connection``
        alone. Returns True if the event was accepted.

        """
        handler = self.handlers.get(event)
        logger.debug(f"[{connection}] {event} {data!r}")
        try:
            if handler is None:
                raise GameError(f"Unknown event '{event}'")
            with self.connections.serialized(connection):
                handler(connection, data)
        except GameError as e:
            logger.warning(f"[{connection}] {event} rejected: {e.message}")
            self.connections.send(connection, protocol.ERROR, protocol.error(e.message))
            return False
        return True

    def _release_finished(self, connection: str):
        """Release a player whose game is over so it can start or join another."""
        binding = self.connections.binding(connection)
        if binding is None:
            return
        try:
            status = self.machine.snapshot(binding.session_id)['status']
        except NotFound:
            status = FINISHED
        if status != FINISHED:
            raise AlreadyInGame(binding.session_id)
        self.machine.disconnect(binding.session_id, connection)

    def create_game(self, connection: str, data=None):
        self._release_finished(connection)
        session = self.store.create()

        def reply(session, symbol):
            self.connections.send(connection, protocol.GAME_CREATED,
                                  protocol.game_created(session.id, symbol))

        try:
            self.machine.join(session.id, connection, on_joined=reply)
        except GameError:
            self.store.remove(session.id)
            raise

    def join_game(self, connection: str, data=None):
        game_id = protocol.decode_game_id(data)
        self._release_finished(connection)

        def reply(session, symbol):
            self.connections.send(connection, protocol.GAME_JOINED,
                                  protocol.game_joined(session.id, symbol))

        self.machine.join(game_id, connection, on_joined=reply)

    def make_move(self, connection: str, data=None):
        game_id, index = protocol.decode_move(data)
        if game_id is None:
            binding = self.connections.binding(connection)
            if binding is None:
                raise NotInGame()
            game_id = binding.session_id
        self.machine.move(game_id, connection, index)

    def leave_game(self, connection: str, data=None):
        game_id = protocol.decode_game_id(data, required=False)
        binding = self.connections.binding(connection)
        if binding is None:
            raise NotInGame(game_id)
        if game_id is not None and normalize_session_id(game_id) != binding.session_id:
            raise NotInGame(game_id)

        self.machine.disconnect(binding.session_id, connection)
        self.connections.send(connection, protocol.GAME_LEFT,
                              protocol.game_left(binding.session_id))

    def get_game(self, connection: str, data=None):
        game_id = protocol.decode_game_id(data, required=False)
        if game_id is None:
            binding = self.connections.binding(connection)
            if binding is None:
                raise NotInGame()
            game_id = binding.session_id
        snapshot = self.machine.snapshot(game_id, connection)
        self.connections.send(connection, protocol.GAME_STATE, snapshot)
