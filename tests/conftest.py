import os
import sys

import pytest

# Ensure the project root (containing the server modules) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config import Config, RoomSettings  # noqa: E402
from game import GameService  # noqa: E402
from registry import RoomRegistry  # noqa: E402


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_ASYNC_MODE = 'threading'
    LOG_LEVEL = 'INFO'


class RecordingBroadcaster:
    def __init__(self):
        self.events = []
        self.members = {}

    def enter(self, sid, code):
        self.members.setdefault(code, set()).add(sid)

    def exit(self, sid, code):
        self.members.get(code, set()).discard(sid)

    def lobby(self, room):
        self.events.append(('lobby', room.code, {'player_count': len(room.players)}))

    def state(self, room):
        from broadcast import snapshot
        self.events.append(('state', room.code, snapshot(room)))

    def end(self, room):
        self.events.append(('end', room.code, {'winner': room.winner}))

    def named(self, name):
        return [payload for event, _, payload in self.events if event == name]


class ManualScheduler:
    """Records loop start requests instead of running them."""

    def __init__(self):
        self.started = []

    def __call__(self, fn, *args):
        self.started.append((fn, args))


@pytest.fixture()
def settings():
    return RoomSettings(width=800, height=500, radius=30, win_pin_seconds=2.0, tick_rate=60, move_speed=3.2)


@pytest.fixture()
def registry(settings):
    return RoomRegistry(settings)


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def service(registry, broadcaster, settings, scheduler):
    return GameService(registry, broadcaster, settings, start_task=scheduler)


@pytest.fixture()
def flask_app():
    from server import create_app
    return create_app(TestConfig)


@pytest.fixture()
def sio_client_factory(flask_app):
    from server import socketio
    clients = []

    def make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
