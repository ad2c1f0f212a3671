"""
Development server entry point.

Run this script to start the Flask server with Socket.IO support.
"""

import os
import sys

# Add the src directory to the path so the server runs from a checkout
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from tictactoe.app import create_app

if __name__ == '__main__':
    app, socketio = create_app()
    socketio.run(app, debug=app.config['DEBUG'], host=app.config['HOST'],
                 port=app.config['PORT'], allow_unsafe_werkzeug=True)
