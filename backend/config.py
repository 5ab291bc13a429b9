import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of browser origins allowed to open the socket
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3001,http://127.0.0.1:3001',
    ).split(',') if o.strip()]
    # Board geometry (rows/cols include the empty border)
    BOARD_ROWS = int(os.environ.get('BOARD_ROWS', '11'))
    BOARD_COLS = int(os.environ.get('BOARD_COLS', '18'))
    TILE_TYPE_COUNT = int(os.environ.get('TILE_TYPE_COUNT', '33'))
    # Direction changes allowed in a connecting line
    MAX_TURNS = int(os.environ.get('MAX_TURNS', '2'))
    MATCH_AWARD = int(os.environ.get('MATCH_AWARD', '10'))
    RESHUFFLE_MAX_ATTEMPTS = int(os.environ.get('RESHUFFLE_MAX_ATTEMPTS', '20'))
    # Session timers (seconds)
    DISCONNECT_GRACE_SEC = float(os.environ.get('DISCONNECT_GRACE_SEC', '45'))
    ROOM_IDLE_SEC = float(os.environ.get('ROOM_IDLE_SEC', '600'))
    ROOM_SWEEP_INTERVAL_SEC = float(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', '30'))
    LEADERBOARD_LIMIT = int(os.environ.get('LEADERBOARD_LIMIT', '50'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '24'))
