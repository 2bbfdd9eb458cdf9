import os
import random
import sys
import pytest

# Ensure the backend root (containing the `pong_server` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from pong_server import create_app, socketio
from pong_server.sessions import ConnectionDirectory, SessionRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    LOG_LEVEL = 'DEBUG'
    SESSION_POOL_CAPACITY = 1
    HELLO_MESSAGE = 'hello from test server'
    CORS_ORIGINS = '*'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO clients on /ws; all are disconnected at teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, namespace='/ws')
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')


@pytest.fixture()
def registry():
    return SessionRegistry(capacity=1, rng=random.Random(1234))


@pytest.fixture()
def directory():
    return ConnectionDirectory()
