import os
import random
import sys
from collections import defaultdict
from urllib.parse import urlencode

import pytest

# Ensure the backend root (containing the `partyroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from partyroom import create_app, socketio
from partyroom.config import TestingConfig
from partyroom.services.rooms import Broadcaster, Coordinator, RoomStore

NAMESPACE = '/ws'


class FakeTransport:
    """Records payloads per sid; sids must be opened before they receive."""

    def __init__(self):
        self.sent = defaultdict(list)
        self.open = set()
        self.broken = set()
        self.closed = []

    def send(self, sid, payload):
        if sid in self.broken:
            raise ConnectionError('broken pipe')
        self.sent[sid].append(payload)

    def is_open(self, sid):
        return sid in self.open

    def close(self, sid):
        self.open.discard(sid)
        self.closed.append(sid)

    def types(self, sid):
        return [p['type'] for p in self.sent[sid]]

    def of_type(self, sid, msg_type):
        return [p for p in self.sent[sid] if p['type'] == msg_type]

    def clear(self):
        self.sent.clear()


class ManualTimer:
    """Stand-in for GameTimer that only fires when the test says so."""

    def __init__(self, delay, callback=None, label='', heartbeat=0):
        self.delay = delay
        self.callback = callback
        self.label = label
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.callback()


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def timers():
    return []


@pytest.fixture()
def coordinator(transport, timers):
    def timer_factory(delay, callback=None, label='', heartbeat=0):
        timer = ManualTimer(delay, callback, label, heartbeat)
        timers.append(timer)
        return timer

    return Coordinator(RoomStore(), Broadcaster(transport), timer_factory=timer_factory, rng=random.Random(7),
                       max_pairs=104)


@pytest.fixture()
def join(coordinator, transport):
    """Open a fake connection and admit it."""
    def _join(sid, room_id='123456', nickname=None, is_host=False):
        transport.open.add(sid)
        return coordinator.admit(sid, room_id, nickname, 'true' if is_host else 'false')
    return _join


@pytest.fixture()
def flask_app():
    application = create_app(TestingConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients with handshake query parameters."""
    clients = []

    def _connect(room_id=None, nickname=None, is_host=None):
        params = {}
        if room_id is not None:
            params['roomId'] = room_id
        if nickname is not None:
            params['nickname'] = nickname
        if is_host is not None:
            params['isHost'] = 'true' if is_host else 'false'
        test_client = socketio.test_client(flask_app, namespace=NAMESPACE, query_string=urlencode(params))
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


def messages(test_client):
    """Drain protocol payloads received by a Socket.IO test client."""
    payloads = []
    for pkt in test_client.get_received(NAMESPACE):
        if pkt['name'] != 'message':
            continue
        args = pkt['args']
        if isinstance(args, list):
            args = args[0]
        payloads.append(args)
    return payloads
