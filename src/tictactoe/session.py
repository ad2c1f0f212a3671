"""Game sessions and the state machine that drives them.

A session moves through ``waiting -> playing -> finished`` and never back.
Every change to a session happens in ``SessionMachine`` while holding the
session's own lock, so two sessions never contend with each other and moves
on one session are applied strictly one after another.

"""
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from . import protocol
from .board import Board, O, Outcome, X, apply_move, empty_board, evaluate, other, to_wire
from .errors import (AlreadyInGame, GameError, GameNotActive, NotFound, NotInGame,
                     NotYourTurn, SessionCorrupted, SessionFull)

WAITING = 'waiting'
PLAYING = 'playing'
FINISHED = 'finished'

MAX_PLAYERS = 2


@dataclass
class Session(object):
    """State of one game between two connections.

    Attributes
    ----------
    id : str
        Unique session ID, shared between players to join
    board : Board
        The 9 cells of the board
    players : Dict[str, str]
        Symbol -> connection ID of the player holding it
    turn : str
        Symbol of the player to move
    status : str
        One of 'waiting', 'playing', 'finished'
    winner : str or None
        'X', 'O' or 'draw' once finished
    history : List[Tuple[str, int]]
        Accepted moves in order, as (symbol, index)
    closed : bool
        Set once the session is torn down; a closed session accepts nothing
    """
    id: str
    board: Board = field(default_factory=empty_board)
    players: Dict[str, str] = field(default_factory=dict)
    turn: str = X
    status: str = WAITING
    winner: Optional[str] = None
    history: List[Tuple[str, int]] = field(default_factory=list)
    created_at: float = 0.0
    last_activity: float = 0.0
    closed: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def symbol_of(self, connection: str) -> Optional[str]:
        for symbol, player in self.players.items():
            if player == connection:
                return symbol
        return None

    def snapshot(self, connection: Optional[str] = None) -> Dict[str, object]:
        """JSON-friendly view of the session, as seen by ``connection``."""
        data = {
            'gameId': self.id,
            'board': to_wire(self.board),
            'currentTurn': self.turn if self.status == PLAYING else None,
            'status': self.status,
            'winner': self.winner,
            'players': sorted(self.players),
            'moves': [{'symbol': s, 'index': i} for s, i in self.history],
        }
        if connection is not None:
            data['symbol'] = self.symbol_of(connection)
        return data


class SessionMachine(object):
    """Applies joins, moves and departures to sessions.

    Parameters
    ----------
    store : SessionStore
        Registry the sessions live in; torn down sessions are removed from it
    connections : ConnectionManager
        Holds connection bindings and delivers broadcasts
    clock : callable, optional
        Monotonic time source used for activity timestamps
    """

    def __init__(self, store, connections, clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.connections = connections
        self.clock = clock

    @contextmanager
    def _transition(self, session: Session, connection: str):
        """Lock a session for a state change requested by ``connection``.

        Errors that are not GameErrors mean the session can no longer be
        trusted: it is closed and the caller gets SessionCorrupted. The
        requesting connection is released first and learns of the failure
        only through the raised error; the other player gets
        ``playerDisconnected``. Other
        sessions are unaffected.

        """
        with session.lock:
            if session.closed:
                raise NotFound(session.id)
            try:
                yield
            except GameError:
                raise
            except Exception:
                logger.exception(f"Internal error in game '{session.id}', closing it")
                self.connections.unbind(connection, session.id)
                self._close(session, notify=True)
                raise SessionCorrupted(session.id)

    def join(self, session_id, connection: str,
             on_joined: Optional[Callable[[Session, str], None]] = None) -> str:
        """Add a connection to a session and return the symbol it plays.

        The first player gets X and the second O. ``on_joined`` runs after the
        binding is recorded and before the start of the game is broadcast, so
        the joiner learns its symbol first.

        Raises NotFound, SessionFull or AlreadyInGame.

        """
        session = self.store.get(session_id)
        with self._transition(session, connection):
            if session.status == FINISHED or len(session.players) >= MAX_PLAYERS:
                raise SessionFull(session.id)
            if session.symbol_of(connection) is not None:
                raise AlreadyInGame(session.id)

            symbol = X if X not in session.players else O
            self.connections.bind(connection, session.id, symbol)
            session.players[symbol] = connection
            session.last_activity = self.clock()
            logger.info(f"Connection {connection} joined game '{session.id}' as {symbol}")

            if on_joined is not None:
                on_joined(session, symbol)

            if len(session.players) == MAX_PLAYERS:
                session.status = PLAYING
                session.turn = X
                logger.info(f"Game '{session.id}' started")
                self.connections.broadcast(session.id, protocol.GAME_START,
                                           protocol.game_start(session))
            return symbol

    def move(self, session_id, connection: str, index) -> Outcome:
        """Play ``connection``'s symbol at ``index``.

        Raises GameNotActive unless the game is being played, NotInGame if the
        connection is not a player, NotYourTurn if it is the other player's
        move, and IllegalMove for moves the board rejects. The board is left
        untouched whenever an error is raised.

        """
        session = self.store.get(session_id)
        with self._transition(session, connection):
            if session.status != PLAYING:
                raise GameNotActive(session.id, session.status)
            symbol = session.symbol_of(connection)
            if symbol is None:
                raise NotInGame(session.id)
            if symbol != session.turn:
                raise NotYourTurn(symbol, session.turn)

            board = apply_move(session.board, index, symbol)
            outcome = evaluate(board)

            session.board = board
            session.history.append((symbol, index))
            session.last_activity = self.clock()

            if outcome.is_terminal:
                session.status = FINISHED
                session.winner = outcome.winner
                logger.info(f"Game '{session.id}' finished, winner: {outcome.winner}")
                self.connections.broadcast(session.id, protocol.GAME_OVER,
                                           protocol.game_over(session))
            else:
                session.turn = other(symbol)
                logger.debug(f"Game '{session.id}': {symbol} played {index}, {session.turn} to move")
                self.connections.broadcast(session.id, protocol.UPDATE_GAME,
                                           protocol.update_game(session))
            return outcome

    def disconnect(self, session_id, connection: str) -> bool:
        """Handle a player leaving, by disconnect or by request.

        A game that has not finished cannot continue with one player: the
        other player is told via ``playerDisconnected`` and the session is
        torn down. Leaving a finished game only releases the player; the
        session goes away with its last player.

        Returns True if the session was torn down.

        """
        try:
            session = self.store.get(session_id)
        except NotFound:
            self.connections.unbind(connection, session_id)
            return False

        with session.lock:
            self.connections.unbind(connection, session.id)
            if session.closed:
                return False
            symbol = session.symbol_of(connection)
            if symbol is None:
                return False

            del session.players[symbol]
            session.last_activity = self.clock()
            logger.info(f"Player {symbol} ({connection}) left game '{session.id}' ({session.status})")

            if session.status == FINISHED:
                if session.players:
                    return False
                self._close(session, notify=False)
                return True

            self._close(session, notify=True)
            return True

    def snapshot(self, session_id, connection: Optional[str] = None) -> Dict[str, object]:
        """Consistent read of a session's state."""
        session = self.store.get(session_id)
        with session.lock:
            if session.closed:
                raise NotFound(session.id)
            return session.snapshot(connection)

    def expire_idle(self, max_idle_seconds: float) -> List[str]:
        """Close sessions idle for at least ``max_idle_seconds``.

        Returns the IDs of the closed sessions.

        """
        expired = []
        for session in self.store.prune_idle(max_idle_seconds, now=self.clock()):
            with session.lock:
                if session.closed:
                    continue
                self._close(session, notify=session.status != FINISHED)
            expired.append(session.id)
        return expired

    def _close(self, session: Session, notify: bool):
        """Tear a session down. Caller holds the session lock."""
        if notify:
            self.connections.broadcast(session.id, protocol.PLAYER_DISCONNECTED,
                                       protocol.player_disconnected())
        session.closed = True
        released = self.connections.unbind_session(session.id)
        self.store.remove(session.id)
        if released:
            logger.debug(f"Released connections {released} from game '{session.id}'")
