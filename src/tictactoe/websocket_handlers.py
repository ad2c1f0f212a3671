"""
Socket.IO event handlers for real-time game communication.

This module binds the Flask-SocketIO events used by the browser client to
the event gateway. Connection identity is the Socket.IO session ID.
"""

from flask import request

from . import protocol


def init_socketio_handlers(socketio, gateway):
    """Initialize Socket.IO event handlers."""

    @socketio.on('connect')
    def handle_connect(auth=None):
        """Register the new connection; no game binding yet."""
        gateway.connect(request.sid)

    @socketio.on('disconnect')
    def handle_disconnect(reason=None):
        """Release the connection and tell the opponent, if any."""
        gateway.disconnect(request.sid)

    @socketio.on(protocol.CREATE_GAME)
    def handle_create_game(data=None):
        gateway.dispatch(protocol.CREATE_GAME, request.sid, data)

    @socketio.on(protocol.JOIN_GAME)
    def handle_join_game(data=None):
        gateway.dispatch(protocol.JOIN_GAME, request.sid, data)

    @socketio.on(protocol.MAKE_MOVE)
    def handle_make_move(data=None):
        gateway.dispatch(protocol.MAKE_MOVE, request.sid, data)

    @socketio.on(protocol.LEAVE_GAME)
    def handle_leave_game(data=None):
        gateway.dispatch(protocol.LEAVE_GAME, request.sid, data)

    @socketio.on(protocol.GET_GAME)
    def handle_get_game(data=None):
        """Send the current game state to the requester only."""
        gateway.dispatch(protocol.GET_GAME, request.sid, data)
