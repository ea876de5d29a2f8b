from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

cors = CORS()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS') or []
    cors.init_app(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app: all rooms live here until their last player leaves
    from oddson.services.rooms import SessionRegistry
    registry = SessionRegistry(
        code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6)),
        default_max_range=int(flask_app.config.get('DEFAULT_MAX_RANGE', 10)),
    )
    flask_app.extensions['oddson_registry'] = registry

    from oddson.main import main
    flask_app.register_blueprint(main)

    from oddson.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from oddson.socketio_events import register_socketio_handlers
    register_socketio_handlers(
        registry,
        namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'),
    )

    return flask_app
