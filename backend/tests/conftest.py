import os
import sys
import pytest

# Ensure the backend root (containing the `launch_control` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from launch_control import create_app, db, socketio
from launch_control.services.games.controller import LaunchControl
from launch_control.services.games.records import MemoryRecordStore
from launch_control.services.games.scheduler import ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LAUNCH_SCHEDULER = 'manual'
    CORS_ORIGINS = ['http://localhost:5173']


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import launch_control.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


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


@pytest.fixture()
def scheduler():
    return ManualScheduler(start_ms=10_000)


@pytest.fixture()
def records():
    return MemoryRecordStore()


@pytest.fixture()
def updates():
    return []


@pytest.fixture()
def game(scheduler, records, updates):
    # rand=0.0 pins the pre-delay to its 400 ms minimum
    return LaunchControl(scheduler, records, clock=scheduler.now, rand=lambda: 0.0,
                         on_change=updates.append, name='test')


# ready 400 + set 500 + hold 400 + go 400
FULL_SEQUENCE_MS = 1700


@pytest.fixture()
def play(game, scheduler):
    """Returns a helper that plays one trial per reaction time given."""
    def _play(*times):
        recorded = []
        for t in times:
            assert game.arm()
            scheduler.advance(FULL_SEQUENCE_MS)
            assert game.go
            scheduler.advance(t)
            recorded.append(game.handle_reaction())
        return recorded
    return _play
