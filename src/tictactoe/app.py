"""
Flask application factory and main application entry point.

This module creates and configures the Flask application instance
with Socket.IO support for the real-time game protocol.
"""

import sys
from dataclasses import dataclass

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from loguru import logger

from .config import Config, parse_origins
from .connections import ConnectionManager
from .gateway import EventGateway
from .session import SessionMachine
from .session_store import SessionStore

EXTENSION_KEY = 'tictactoe'


@dataclass
class GameServices(object):
    """Per-application game state, reachable via ``app.extensions``."""
    store: SessionStore
    connections: ConnectionManager
    machine: SessionMachine
    gateway: EventGateway


def configure_logging(level='INFO'):
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format="{time} | {level} | {message}",
        level=level,
        colorize=True
    )


def create_app(config=None):
    """
    Create and configure the Flask application.

    Args:
        config: Mapping of configuration overrides

    Returns:
        (Flask application, SocketIO instance)
    """
    app = Flask(__name__)
    app.config.from_object(Config)

    if config:
        app.config.update(config)

    configure_logging(app.config['LOG_LEVEL'])
    logger.info("Starting tic-tac-toe game server")

    origins = parse_origins(app.config['CORS_ORIGINS'])

    # Enable CORS for the HTTP API
    CORS(app, origins=origins)

    # Initialize SocketIO for the game protocol
    socketio = SocketIO(app, cors_allowed_origins=origins)

    def emit(event, payload, connection):
        socketio.emit(event, payload, to=connection)

    store = SessionStore()
    connections = ConnectionManager(emit=emit)
    machine = SessionMachine(store, connections)
    gateway = EventGateway(store, connections, machine)
    app.extensions[EXTENSION_KEY] = GameServices(store, connections, machine, gateway)

    from . import api
    app.register_blueprint(api.api_bp)

    from . import websocket_handlers
    websocket_handlers.init_socketio_handlers(socketio, gateway)

    idle_timeout = app.config['SESSION_IDLE_TIMEOUT_SEC']
    if idle_timeout > 0 and not app.config.get('TESTING'):
        socketio.start_background_task(
            _prune_idle_sessions, socketio, machine, idle_timeout, app.config['PRUNE_INTERVAL_SEC']
        )

    return app, socketio


def _prune_idle_sessions(socketio, machine, max_idle_seconds, interval_seconds):
    """Background loop closing sessions nobody has touched for a while."""
    logger.info(f"Idle session pruning every {interval_seconds}s (timeout {max_idle_seconds}s)")
    while True:
        socketio.sleep(interval_seconds)
        try:
            expired = machine.expire_idle(max_idle_seconds)
        except Exception:
            logger.exception("Idle session pruning failed")
            continue
        if expired:
            logger.info(f"Closed idle games: {', '.join(expired)}")
