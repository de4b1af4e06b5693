"""
Shared test fixtures for broadside tests.

The channel is always driven by an in-memory fake WebSocket; no test opens a
real socket.
"""

import queue
from typing import Callable, List, Optional, Union

import pytest
import websocket

from broadside.battleship.model import Location, Ship
from broadside.net.channel import ServerChannel
from broadside.store import StateStore

TEST_URL = "ws://127.0.0.1:3000/ws"


class FakeWebSocket:
    """Stands in for ``websocket.WebSocket``: scripted inbound frames, recorded sends."""

    def __init__(self) -> None:
        self.inbox: "queue.Queue" = queue.Queue()
        self.sent: List[str] = []
        self.closed = False
        self.close_frame_sent = False
        self.blocking_close_calls = 0
        self.fail_send = False
        self.timeout: Optional[float] = -1

    # scripting helpers
    def push_text(self, text: Union[str, bytes]) -> None:
        data = text.encode("utf-8") if isinstance(text, str) else text
        self.inbox.put((websocket.ABNF.OPCODE_TEXT, data))

    def push_binary(self, data: bytes) -> None:
        self.inbox.put((websocket.ABNF.OPCODE_BINARY, data))

    def push_close(self) -> None:
        self.inbox.put((websocket.ABNF.OPCODE_CLOSE, b""))

    def push_error(self, exc: Exception) -> None:
        self.inbox.put(exc)

    # websocket.WebSocket surface used by ServerChannel
    def settimeout(self, timeout: Optional[float]) -> None:
        self.timeout = timeout

    def recv_data(self):
        item = self.inbox.get(timeout=5)
        if isinstance(item, Exception):
            raise item
        return item

    def send(self, payload: str) -> None:
        if self.fail_send:
            raise websocket.WebSocketConnectionClosedException("socket is already closed.")
        self.sent.append(payload)

    def send_close(self) -> None:
        if self.fail_send:
            raise websocket.WebSocketConnectionClosedException("socket is already closed.")
        self.close_frame_sent = True

    def abort(self) -> None:
        # a real abort makes the blocked recv fail
        self.push_error(websocket.WebSocketConnectionClosedException("Connection to remote host was lost."))

    def shutdown(self) -> None:
        self.closed = True

    def close(self) -> None:
        # waits for the peer's close reply; the channel must not use it
        self.blocking_close_calls += 1
        self.closed = True


class StubChannel:
    """Just enough of ServerChannel for GameSession."""

    url = TEST_URL

    def __init__(self, frames=()):
        self.frames = list(frames)
        self.sent = []
        self.is_open = True
        self.is_closed = False

    def try_get(self, timeout=0.0):
        return self.frames.pop(0) if self.frames else None

    def send(self, command):
        self.sent.append(command)

    def start(self):
        pass

    def close(self):
        self.is_open = False
        self.is_closed = True


def _connector_for(ws: FakeWebSocket) -> Callable:
    def connect(url, timeout=None):
        return ws
    return connect


def _refusing_connector(url, timeout=None):
    raise ConnectionRefusedError(111, "Connection refused")


# =============================================================================
# Connection Fixtures
# =============================================================================

@pytest.fixture
def test_url() -> str:
    return TEST_URL


@pytest.fixture
def connector_for() -> Callable[[FakeWebSocket], Callable]:
    """Factory: a connector that hands out the given fake socket."""
    return _connector_for


@pytest.fixture
def refusing_connector() -> Callable:
    return _refusing_connector


@pytest.fixture
def fake_ws() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def channel(fake_ws):
    """A started, open channel backed by ``fake_ws``."""
    ch = ServerChannel(TEST_URL, connector=_connector_for(fake_ws))
    ch.start()
    assert ch.wait_open(timeout=2)
    yield ch
    ch.close()


@pytest.fixture
def stub_channel() -> Callable[..., StubChannel]:
    """Factory: an in-memory channel preloaded with inbound frames."""
    return StubChannel


# =============================================================================
# State Fixtures
# =============================================================================

@pytest.fixture
def store() -> StateStore:
    return StateStore()


@pytest.fixture
def two_cell_ship() -> Ship:
    return Ship((Location(0, 0), Location(1, 0)))


@pytest.fixture
def vertical_ship() -> Ship:
    return Ship((Location(4, 1), Location(4, 2), Location(4, 3)))
