"""
Tests for the event gateway, driven without a network transport.
"""

import pytest

from tictactoe.connections import ConnectionManager
from tictactoe.gateway import EventGateway
from tictactoe.session import SessionMachine
from tictactoe.session_store import SessionStore


class Recorder(object):
    def __init__(self):
        self.sent = []

    def __call__(self, event, payload, connection):
        self.sent.append((connection, event, payload))

    def drain(self, connection):
        """Return and forget the (event, payload) pairs sent to a connection."""
        mine = [(e, p) for c, e, p in self.sent if c == connection]
        self.sent = [item for item in self.sent if item[0] != connection]
        return mine


@pytest.fixture
def emit():
    return Recorder()


@pytest.fixture
def gateway(emit):
    store = SessionStore()
    connections = ConnectionManager(emit=emit)
    gateway = EventGateway(store, connections, SessionMachine(store, connections))
    for connection in ('alice', 'bob', 'carol'):
        gateway.connect(connection)
    return gateway


def start_game(gateway, emit):
    """alice creates, bob joins; returns the game ID."""
    gateway.dispatch('createGame', 'alice')
    game_id = emit.drain('alice')[0][1]['gameId']
    gateway.dispatch('joinGame', 'bob', game_id)
    emit.drain('alice')
    emit.drain('bob')
    return game_id


class TestCreateAndJoin:
    """Test cases for createGame and joinGame."""

    def test_create_game(self, gateway, emit):
        """Test that createGame answers gameCreated with symbol X."""
        assert gateway.dispatch('createGame', 'alice') is True
        sent = emit.drain('alice')
        assert len(sent) == 1
        event, payload = sent[0]
        assert event == 'gameCreated'
        assert payload['symbol'] == 'X'
        assert payload['gameId'] in gateway.store

    def test_join_game_event_order(self, gateway, emit):
        """Test that the joiner gets gameJoined then gameStart, the host only gameStart."""
        gateway.dispatch('createGame', 'alice')
        game_id = emit.drain('alice')[0][1]['gameId']

        assert gateway.dispatch('joinGame', 'bob', game_id) is True

        start = ('gameStart', {'board': [None] * 9, 'currentTurn': 'X'})
        assert emit.drain('bob') == [('gameJoined', {'gameId': game_id, 'symbol': 'O'}), start]
        assert emit.drain('alice') == [start]

    def test_join_accepts_object_payload_and_lowercase_id(self, gateway, emit):
        """Test joining with a {gameId} object and a lower-case ID."""
        gateway.dispatch('createGame', 'alice')
        game_id = emit.drain('alice')[0][1]['gameId']
        assert gateway.dispatch('joinGame', 'bob', {'gameId': game_id.lower()}) is True
        assert emit.drain('bob')[0] == ('gameJoined', {'gameId': game_id, 'symbol': 'O'})

    def test_join_unknown_game(self, gateway, emit):
        """Test that joining an unknown game replies with an error."""
        assert gateway.dispatch('joinGame', 'bob', 'NOPE00') is False
        assert emit.drain('bob') == [('error', {'message': "Game 'NOPE00' not found"})]

    def test_join_full_game_errors_only_to_joiner(self, gateway, emit):
        """Test that a full-game error reaches only the joiner."""
        game_id = start_game(gateway, emit)
        gateway.dispatch('joinGame', 'carol', game_id)
        assert emit.drain('carol') == [('error', {'message': f"Game '{game_id}' is full"})]
        assert emit.drain('alice') == []
        assert emit.drain('bob') == []

    def test_join_without_id(self, gateway, emit):
        """Test that joinGame without an ID is rejected."""
        assert gateway.dispatch('joinGame', 'bob') is False
        assert emit.drain('bob') == [('error', {'message': 'Game ID required'})]

    def test_create_while_playing_is_rejected(self, gateway, emit):
        """Test that a player in a live game cannot create another."""
        game_id = start_game(gateway, emit)
        assert gateway.dispatch('createGame', 'alice') is False
        assert emit.drain('alice') == [('error', {'message': f"Already in game '{game_id}'"})]
        assert len(gateway.store) == 1

    def test_create_after_finished_game(self, gateway, emit):
        """Test that a player of a finished game can create a new one."""
        game_id = start_game(gateway, emit)
        for connection, index in [('alice', 0), ('bob', 3), ('alice', 1), ('bob', 4), ('alice', 2)]:
            gateway.dispatch('makeMove', connection, {'gameId': game_id, 'index': index})
        emit.drain('alice')

        assert gateway.dispatch('createGame', 'alice') is True
        event, payload = emit.drain('alice')[0]
        assert event == 'gameCreated'
        assert payload['gameId'] != game_id


class TestMakeMove:
    """Test cases for makeMove."""

    def test_move_broadcasts_update(self, gateway, emit):
        """Test that a move sends updateGame to both players."""
        game_id = start_game(gateway, emit)
        assert gateway.dispatch('makeMove', 'alice', {'gameId': game_id, 'index': 4}) is True
        expected = ('updateGame', {'board': [None] * 4 + ['X'] + [None] * 4, 'currentTurn': 'O'})
        assert emit.drain('alice') == [expected]
        assert emit.drain('bob') == [expected]

    def test_move_without_game_id_uses_binding(self, gateway, emit):
        """Test that makeMove falls back to the sender's game."""
        start_game(gateway, emit)
        assert gateway.dispatch('makeMove', 'alice', {'index': 0}) is True

    def test_win_broadcasts_game_over(self, gateway, emit):
        """Test that a winning move ends with gameOver."""
        game_id = start_game(gateway, emit)
        for connection, index in [('alice', 0), ('bob', 4), ('alice', 1), ('bob', 3), ('alice', 2)]:
            gateway.dispatch('makeMove', connection, {'gameId': game_id, 'index': index})
        sent = emit.drain('bob')
        assert sent[-1] == ('gameOver', {'board': ['X', 'X', 'X', 'O', 'O', None, None, None, None],
                                         'winner': 'X'})

    def test_out_of_turn(self, gateway, emit):
        """Test that an out of turn move errors to the sender only."""
        game_id = start_game(gateway, emit)
        assert gateway.dispatch('makeMove', 'bob', {'gameId': game_id, 'index': 0}) is False
        assert emit.drain('bob') == [('error', {'message': "Not your turn: it is X's move"})]
        assert emit.drain('alice') == []

    def test_malformed_payloads(self, gateway, emit):
        """Test that undecodable makeMove payloads each get an error."""
        game_id = start_game(gateway, emit)
        for data in (None, 'junk', {'gameId': game_id}, {'gameId': game_id, 'index': 'four'}):
            assert gateway.dispatch('makeMove', 'alice', data) is False
        sent = emit.drain('alice')
        assert [event for event, payload in sent] == ['error'] * 4

    def test_move_in_unknown_game(self, gateway, emit):
        """Test that a move in an unknown game is rejected."""
        start_game(gateway, emit)
        assert gateway.dispatch('makeMove', 'alice', {'gameId': 'NOPE00', 'index': 0}) is False

    def test_move_when_not_in_game(self, gateway, emit):
        """Test that a move from an unbound connection gets 'Not in a game'."""
        assert gateway.dispatch('makeMove', 'carol', {'index': 0}) is False
        assert emit.drain('carol') == [('error', {'message': 'Not in a game'})]


class TestLeaveDisconnectAndState:
    """Test cases for leaving, disconnecting and reading state."""

    def test_disconnect_mid_game(self, gateway, emit):
        """Test that a disconnect alerts the peer and the game disappears."""
        game_id = start_game(gateway, emit)
        gateway.disconnect('alice')

        assert emit.drain('bob') == [('playerDisconnected', {})]
        assert game_id not in gateway.store

        gateway.dispatch('joinGame', 'carol', game_id)
        assert emit.drain('carol') == [('error', {'message': f"Game '{game_id}' not found"})]

    def test_peer_can_start_over_after_disconnect(self, gateway, emit):
        """Test that the remaining player can create a new game."""
        start_game(gateway, emit)
        gateway.disconnect('alice')
        emit.drain('bob')
        assert gateway.dispatch('createGame', 'bob') is True

    def test_leave_game(self, gateway, emit):
        """Test that leaveGame confirms to the leaver and alerts the peer."""
        game_id = start_game(gateway, emit)
        assert gateway.dispatch('leaveGame', 'bob', game_id) is True
        assert emit.drain('bob') == [('gameLeft', {'gameId': game_id})]
        assert emit.drain('alice') == [('playerDisconnected', {})]

    def test_leave_when_not_in_game(self, gateway, emit):
        """Test that leaving without a game is rejected."""
        assert gateway.dispatch('leaveGame', 'carol') is False

    def test_get_game(self, gateway, emit):
        """Test that getGame replies with the sender's view of its game."""
        game_id = start_game(gateway, emit)
        assert gateway.dispatch('getGame', 'bob') is True
        [(event, payload)] = emit.drain('bob')
        assert event == 'gameState'
        assert payload['gameId'] == game_id
        assert payload['symbol'] == 'O'
        assert payload['status'] == 'playing'
        assert payload['currentTurn'] == 'X'

    def test_unknown_event(self, gateway, emit):
        """Test that an unknown event name gets an error reply."""
        assert gateway.dispatch('cheat', 'alice') is False
        assert emit.drain('alice') == [('error', {'message': "Unknown event 'cheat'"})]

    def test_disconnect_unregisters(self, gateway):
        """Test that a disconnected connection is forgotten."""
        gateway.disconnect('carol')
        assert not gateway.connections.is_registered('carol')
