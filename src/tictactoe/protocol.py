"""
Wire format of the Socket.IO events exchanged with the browser front-end.

Event names and payload shapes here must stay compatible with the client:
boards travel as 9-element lists of ``null``/"X"/"O", the player to move as
``currentTurn`` and the result of a finished game as ``winner``.
"""

from typing import Any, Dict, Optional, Tuple

from .board import to_wire
from .errors import BadRequest

# Inbound (client -> server)
CREATE_GAME = 'createGame'
JOIN_GAME = 'joinGame'
MAKE_MOVE = 'makeMove'
LEAVE_GAME = 'leaveGame'
GET_GAME = 'getGame'

# Outbound (server -> client)
GAME_CREATED = 'gameCreated'
GAME_JOINED = 'gameJoined'
GAME_START = 'gameStart'
UPDATE_GAME = 'updateGame'
GAME_OVER = 'gameOver'
ERROR = 'error'
PLAYER_DISCONNECTED = 'playerDisconnected'
GAME_LEFT = 'gameLeft'
GAME_STATE = 'gameState'


def game_created(session_id: str, symbol: str) -> Dict[str, Any]:
    return {'gameId': session_id, 'symbol': symbol}


def game_joined(session_id: str, symbol: str) -> Dict[str, Any]:
    return {'gameId': session_id, 'symbol': symbol}


def game_start(session) -> Dict[str, Any]:
    return {'board': to_wire(session.board), 'currentTurn': session.turn}


def update_game(session) -> Dict[str, Any]:
    return {'board': to_wire(session.board), 'currentTurn': session.turn}


def game_over(session) -> Dict[str, Any]:
    return {'board': to_wire(session.board), 'winner': session.winner}


def error(message: str) -> Dict[str, Any]:
    return {'message': message}


def player_disconnected() -> Dict[str, Any]:
    return {}


def game_left(session_id: str) -> Dict[str, Any]:
    return {'gameId': session_id}


def decode_game_id(data, required: bool = True) -> Optional[str]:
    """Extract the game ID from a ``joinGame``/``leaveGame``/``getGame`` payload.

    The browser client sends the bare ID string; a ``{"gameId": ...}`` object
    is accepted as well.

    """
    if isinstance(data, dict):
        data = data.get('gameId')

    if data is None:
        if required:
            raise BadRequest('Game ID required')
        return None

    if not isinstance(data, str) or not data.strip():
        raise BadRequest('Game ID must be a non-empty string')
    return data.strip()


def decode_move(data) -> Tuple[Optional[str], Any]:
    """Extract ``(gameId, index)`` from a ``makeMove`` payload.

    The index is passed through undecoded; the board engine rejects anything
    that is not an integer cell index.

    """
    if not isinstance(data, dict):
        raise BadRequest('Move must be an object with gameId and index')
    if 'index' not in data:
        raise BadRequest('Move index required')
    game_id = decode_game_id(data.get('gameId'), required=False)
    return game_id, data['index']
