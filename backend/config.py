import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of allowed browser origins
    CORS_ORIGINS = [
        origin.strip() for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',') if origin.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Move throttling per connection
    RATE_LIMIT_WINDOW_SEC = float(os.environ.get('RATE_LIMIT_WINDOW_SEC', '1'))
    RATE_LIMIT_MAX_MOVES = int(os.environ.get('RATE_LIMIT_MAX_MOVES', '5'))
    # Board geometry
    INITIAL_GRID_SIZE = int(os.environ.get('INITIAL_GRID_SIZE', '3'))
    GRID_GROWTH = int(os.environ.get('GRID_GROWTH', '4'))
    # Search horizon cap for the bot
    BOT_MAX_DEPTH = int(os.environ.get('BOT_MAX_DEPTH', '3'))
    # Entries kept in the in-memory event log
    LOG_BUFFER_SIZE = int(os.environ.get('LOG_BUFFER_SIZE', '1000'))
