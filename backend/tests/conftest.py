import os
import sys
import pytest

# Ensure the backend root (containing the `abgame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from abgame import create_app, db, socketio


class TestConfig:
    TESTING = True
    PORT = 3000
    ROUND_DURATION_SEC = 15
    LEADERBOARD_BACKEND = 'file'
    LEADERBOARD_FILE = None
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TIMER_MODE = 'manual'


@pytest.fixture()
def leaderboard_file(tmp_path):
    return tmp_path / 'leaderboard.json'


@pytest.fixture()
def flask_app(leaderboard_file):
    class FileConfig(TestConfig):
        LEADERBOARD_FILE = str(leaderboard_file)

    application = create_app(FileConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def sql_app():
    class SqlConfig(TestConfig):
        LEADERBOARD_BACKEND = 'sql'

    application = create_app(SqlConfig)
    with application.app_context():
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def scheduler(flask_app):
    return flask_app.extensions['timer_scheduler']


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
