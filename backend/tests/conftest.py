import os
import random
import sys
import pytest

# Ensure the backend root (containing the `tilelink` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from tilelink import create_app, socketio
from tilelink.broadcast import NAMESPACE, Broadcaster
from tilelink.rooms import RoomManager, SessionStore
from tilelink.services.board.scoring import Leaderboard
from tilelink.services.scheduler import ScheduledTask


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'


class ManualScheduler:
    """Scheduler driven by the test: tasks fire when ``advance`` passes them."""

    def __init__(self):
        self.now = 0.0
        self._queue = []

    def clock(self):
        return self.now

    def schedule(self, delay, callback, *args):
        task = ScheduledTask(callback, *args)
        self._queue.append((self.now + delay, task))
        return task

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [item for item in self._queue if item[0] <= target]
            if not due:
                break
            item = min(due, key=lambda entry: entry[0])
            self._queue.remove(item)
            self.now = item[0]
            item[1].run()
        self.now = target

    @property
    def pending(self):
        return [task for _, task in self._queue if task.pending]


class RecordingBroadcaster(Broadcaster):
    def __init__(self):
        self.sent = []

    def to_connection(self, sid, event, payload):
        self.sent.append((sid, event, payload))

    def events(self, name, sid=None):
        return [p for s, e, p in self.sent if e == name and (sid is None or s == sid)]

    def clear(self):
        self.sent = []


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def manager(scheduler, broadcaster):
    config = {
        'DISCONNECT_GRACE_SEC': 45,
        'ROOM_IDLE_SEC': 600,
        'ROOM_SWEEP_INTERVAL_SEC': 30,
    }
    return RoomManager(
        SessionStore(), broadcaster, scheduler, Leaderboard(),
        config=config, clock=scheduler.clock, rng=random.Random(1234),
    )


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace=NAMESPACE,
    )
    yield test_client
    if test_client.is_connected(NAMESPACE):
        test_client.disconnect(namespace=NAMESPACE)
