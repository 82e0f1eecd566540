import os


def _env_flag(name, default):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '5000'))
    ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'ALLOWED_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Socket.IO namespace that carries the room protocol
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Nickname given to a host that connects without one
    DEFAULT_HOST_NICKNAME = os.environ.get('DEFAULT_HOST_NICKNAME', 'Host')
    CARD_VALUE_TEMPLATE = os.environ.get('CARD_VALUE_TEMPLATE', '/assets/images/cards/{suit}_{rank}.png')
    # Optional: heartbeat interval for game timer logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Close the older connection when a player reconnects under the same nickname
    CLOSE_SUPERSEDED_CONNECTIONS = _env_flag('CLOSE_SUPERSEDED_CONNECTIONS', 'true')
    # Largest numPairs a host may ask for
    MAX_PAIRS = int(os.environ.get('MAX_PAIRS', '104'))
    # How long a mismatched cardClick pair stays face up (sec)
    FLIP_BACK_DELAY_SEC = float(os.environ.get('FLIP_BACK_DELAY_SEC', '1.5'))


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    LOG_LEVEL = 'DEBUG'
