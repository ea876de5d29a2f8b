import os
import sys
import pytest

# Ensure the project root (containing the `oddson` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from oddson import create_app, socketio
from oddson.services.rooms import SessionRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ALLOWED_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/'
    ROOM_CODE_LENGTH = 6
    DEFAULT_MAX_RANGE = 10
    MIN_RANGE = 2
    MAX_RANGE_LIMIT = 1000
    MAX_DARE_LENGTH = 280
    MAX_NAME_LENGTH = 32
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['oddson_registry']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    """Factory for Socket.IO test clients; each one is a separate player."""
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        test_client.get_received()  # drop the 'connected' greeting
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def bare_registry():
    return SessionRegistry(code_length=6, default_max_range=10)
