"""Exceptions raised by the game session server.

Every exception here is recoverable at the event boundary: the gateway turns
it into an ``error`` reply for the connection that caused it.

"""


class GameError(Exception):
    """Base class for rejected client actions.

    Attributes
    ----------
    message : str
        Human readable reason, sent back to the client verbatim
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(GameError):
    """Raised when a session ID does not name a live session."""

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Game '{session_id}' not found")


# Join reports a missing session under this name as well.
SessionNotFound = NotFound


class SessionFull(GameError):
    """Raised when a third connection tries to join a session."""

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Game '{session_id}' is full")


class NotYourTurn(GameError):
    def __init__(self, symbol, turn):
        self.symbol = symbol
        self.turn = turn
        super().__init__(f"Not your turn: it is {turn}'s move")


class GameNotActive(GameError):
    """Raised when a move arrives for a session that is not being played."""

    def __init__(self, session_id, status):
        self.session_id = session_id
        self.status = status
        super().__init__(f"Game '{session_id}' is not active ({status})")


class IllegalMove(GameError):
    """Raised by the board engine for moves that break the rules."""


class AlreadyInGame(GameError):
    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Already in game '{session_id}'")


class NotInGame(GameError):
    """Raised when a connection acts on a session it is not playing in."""

    def __init__(self, session_id=None):
        self.session_id = session_id
        if session_id is None:
            super().__init__("Not in a game")
        else:
            super().__init__(f"Not a player in game '{session_id}'")


class BadRequest(GameError):
    """Raised by the gateway for payloads it cannot decode."""


class SessionCorrupted(GameError):
    """Raised when a session hit an internal error and was torn down."""

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Game '{session_id}' was closed after an internal error")
