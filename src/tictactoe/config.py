import os


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-change-in-production'
    HOST = os.environ.get('TICTACTOE_HOST', '0.0.0.0')
    # The browser client connects to port 3001 by default
    PORT = int(os.environ.get('TICTACTOE_PORT', '3001'))
    # Comma separated list, or "*" for any origin on the LAN
    CORS_ORIGINS = os.environ.get('TICTACTOE_CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('TICTACTOE_LOG_LEVEL', 'INFO')
    # Sessions without activity for this long are closed. 0 disables.
    SESSION_IDLE_TIMEOUT_SEC = int(os.environ.get('TICTACTOE_SESSION_IDLE_TIMEOUT_SEC', '1800'))
    PRUNE_INTERVAL_SEC = int(os.environ.get('TICTACTOE_PRUNE_INTERVAL_SEC', '60'))
    DEBUG = False
    TESTING = False


def parse_origins(value):
    """Turn the CORS_ORIGINS setting into what Flask-CORS/SocketIO expect."""
    if isinstance(value, (list, tuple)):
        return list(value)
    value = (value or '').strip()
    if value in ('', '*'):
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]
