import os
import sys
import pytest

# Ensure the backend root (containing the `growgrid` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from growgrid import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = '/ws'
    # Long window so throttling never depends on test timing
    RATE_LIMIT_WINDOW_SEC = 60.0
    RATE_LIMIT_MAX_MOVES = 50
    INITIAL_GRID_SIZE = 3
    GRID_GROWTH = 4
    BOT_MAX_DEPTH = 2
    LOG_BUFFER_SIZE = 200


class ThrottledTestConfig(TestConfig):
    RATE_LIMIT_MAX_MOVES = 5


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def throttled_app():
    application = create_app(ThrottledTestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def services(flask_app):
    return flask_app.extensions['growgrid']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def fake_clock():
    return FakeClock()


@pytest.fixture()
def make_sio_client():
    clients = []

    def _make(application):
        test_client = socketio.test_client(application, namespace='/ws')
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def sio_client(flask_app, make_sio_client):
    return make_sio_client(flask_app)
