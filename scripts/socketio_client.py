#!/usr/bin/env python3
"""
Socket.IO console client for the tic-tac-toe game server.

This client speaks the same events as the browser front-end, so it can play
against a browser or against another console.

Usage:
    python socketio_client.py http://localhost:3001

Commands:
    create - Create a new game and wait for an opponent
    join <game_id> - Join an existing game
    move <0-8> (or just the cell number) - Play a cell
    state - Show the current game
    list - List live games on the server
    leave - Leave the current game
    quit - Exit the program
"""

import os
import sys
from typing import List, Optional, Tuple

import requests
import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

# Add the src directory to the path so we can import tictactoe modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tictactoe.board import available_moves, empty_board, render


def parse_command(line: str) -> Tuple[str, List[str]]:
    """Split an input line into a command and its arguments.

    A bare cell number is shorthand for ``move <n>``.

    """
    parts = line.strip().split()
    if not parts:
        return '', []
    command = parts[0].lower()
    if command.isdigit():
        return 'move', [command]
    return command, parts[1:]


class TicTacToeClient:
    """Console client holding the local view of one game."""

    def __init__(self, server_url: str):
        self.server_url = server_url.rstrip('/')
        self.sio = socketio.Client()
        self.game_id: Optional[str] = None
        self.symbol: Optional[str] = None
        self.board = empty_board()
        self.current_turn: Optional[str] = None
        self.status = 'idle'
        self.setup_socketio_handlers()

    def setup_socketio_handlers(self):
        """Set up Socket.IO event handlers."""

        @self.sio.on('gameCreated')
        def on_game_created(data):
            self.game_id, self.symbol = data['gameId'], data['symbol']
            self.status = 'waiting'
            print(f"✓ Game created! Share this ID: {self.game_id} (you are {self.symbol})")

        @self.sio.on('gameJoined')
        def on_game_joined(data):
            self.game_id, self.symbol = data['gameId'], data['symbol']
            print(f"✓ Joined game {self.game_id} as {self.symbol}")

        @self.sio.on('gameStart')
        def on_game_start(data):
            self.status = 'playing'
            self.update(data['board'], data['currentTurn'])

        @self.sio.on('updateGame')
        def on_update_game(data):
            self.update(data['board'], data['currentTurn'])

        @self.sio.on('gameOver')
        def on_game_over(data):
            self.status = 'finished'
            self.board = tuple(data['board'])
            self.current_turn = None
            print(render(self.board))
            winner = data['winner']
            if winner == 'draw':
                print("It's a draw!")
            elif winner == self.symbol:
                print('You won!')
            else:
                print('You lost!')

        @self.sio.on('gameState')
        def on_game_state(data):
            self.status = data['status']
            self.update(data['board'], data['currentTurn'])
            if data.get('winner'):
                print(f"Winner: {data['winner']}")

        @self.sio.on('gameLeft')
        def on_game_left(data):
            print(f"Left game {data['gameId']}")
            self.reset()

        @self.sio.on('playerDisconnected')
        def on_player_disconnected(data):
            print('📴 Other player disconnected')
            self.reset()

        @self.sio.on('error')
        def on_error(data):
            print(f"❌ Server error: {data.get('message', 'Unknown error')}")

        @self.sio.on('disconnect')
        def on_disconnect(*args):
            print('🔌 Socket.IO disconnected')

    def reset(self):
        self.game_id = None
        self.symbol = None
        self.board = empty_board()
        self.current_turn = None
        self.status = 'idle'

    def update(self, board, current_turn):
        self.board = tuple(board)
        self.current_turn = current_turn
        print(render(self.board))
        if self.status == 'playing' and current_turn:
            print('Your turn' if current_turn == self.symbol else "Opponent's turn")

    def list_games(self):
        """Print the live games known to the server."""
        try:
            response = requests.get(f"{self.server_url}/api/games", timeout=5)
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            print(f"✗ Could not list games: {e}")
            return
        games = result['data']['games']
        if not games:
            print('No games')
        for game in games:
            print(f"{game['gameId']}: {game['status']} players={','.join(game['players'])}")

    def handle(self, command: str, args: List[str]) -> bool:
        """Run one command. Returns False when the user wants to quit."""
        if command in ('quit', 'exit', 'q'):
            return False
        if command == 'create':
            self.sio.emit('createGame')
        elif command == 'join' and args:
            self.sio.emit('joinGame', args[0])
        elif command == 'move' and args and args[0].isdigit():
            if int(args[0]) not in available_moves(self.board):
                print(f"✗ Cell {args[0]} is not free")
                return True
            self.sio.emit('makeMove', {'gameId': self.game_id, 'index': int(args[0])})
        elif command == 'state':
            self.sio.emit('getGame', self.game_id)
        elif command == 'leave':
            self.sio.emit('leaveGame', self.game_id)
        elif command == 'list':
            self.list_games()
        elif command:
            print(__doc__.split('Commands:')[1])
        return True

    def run(self):
        try:
            self.sio.connect(self.server_url)
        except SocketIOConnectionError as e:
            print(f"✗ Socket.IO connection failed: {e}")
            return 1

        print("Connected. Type 'create', 'join <id>' or 'quit'.")
        try:
            while True:
                try:
                    line = input('> ')
                except EOFError:
                    break
                command, args = parse_command(line)
                if not self.handle(command, args):
                    break
        except KeyboardInterrupt:
            pass
        finally:
            self.sio.disconnect()
        return 0


def main():
    if len(sys.argv) != 2:
        print('Usage: python socketio_client.py <server_url>')
        return 1
    return TicTacToeClient(sys.argv[1]).run()


if __name__ == '__main__':
    sys.exit(main())
