"""
HTTP API routes for the tic-tac-toe game server.

Read-only endpoints for checking that the server is up and inspecting live
games. All game actions go through Socket.IO.
"""

from flask import Blueprint, current_app, jsonify

from .errors import NotFound

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _services():
    return current_app.extensions['tictactoe']


@api_bp.route('/health', methods=['GET'])
def health():
    """Report server liveness and the number of live games."""
    services = _services()
    return jsonify({
        'success': True,
        'data': {
            'status': 'ok',
            'sessions': len(services.store),
            'connections': len(services.connections)
        }
    }), 200


@api_bp.route('/games', methods=['GET'])
def get_all_games():
    """Get information about all live games on the server."""
    services = _services()
    games_list = []

    for session in services.store.list_sessions():
        try:
            games_list.append(services.machine.snapshot(session.id))
        except NotFound:
            # Closed between listing and reading
            continue

    return jsonify({
        'success': True,
        'data': {
            'games': games_list,
            'total_games': len(games_list)
        }
    }), 200


@api_bp.route('/games/<game_id>', methods=['GET'])
def get_game(game_id):
    """Get information about a specific game."""
    try:
        snapshot = _services().machine.snapshot(game_id)
    except NotFound as e:
        return jsonify({'success': False, 'error': e.message}), 404

    return jsonify({'success': True, 'data': snapshot}), 200
