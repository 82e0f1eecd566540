import logging

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from partyroom.config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, coordinator=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or []
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Room services are built per app; the store starts empty
    from partyroom.services.rooms import Broadcaster, Coordinator, RoomStore, SocketIOTransport
    if coordinator is None:
        coordinator = Coordinator(
            RoomStore(),
            Broadcaster(SocketIOTransport(socketio, namespace)),
            default_host_nickname=flask_app.config.get('DEFAULT_HOST_NICKNAME', 'Host'),
            card_template=flask_app.config['CARD_VALUE_TEMPLATE'],
            close_superseded=flask_app.config.get('CLOSE_SUPERSEDED_CONNECTIONS', True),
            timer_heartbeat=flask_app.config.get('TIMER_HEARTBEAT_SEC', 0),
            max_pairs=flask_app.config.get('MAX_PAIRS'),
            flip_back_delay=flask_app.config.get('FLIP_BACK_DELAY_SEC', 1.5),
        )
    flask_app.extensions['partyroom'] = coordinator

    # Import and register blueprints here
    from partyroom.main import main
    flask_app.register_blueprint(main)

    from partyroom.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    from partyroom.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace)

    logging.getLogger(__name__).info(f"[startup] namespace={namespace} origins={allowed_origins}")
    return flask_app
