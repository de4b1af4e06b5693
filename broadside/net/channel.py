from __future__ import annotations

import enum
import logging
import queue
import threading
from typing import Any, Callable, Optional, Union

import websocket

from ..battleship.model import Command
from ..errors import ChannelClosed, DecodeError, SendFailed
from .protocol import encode_command

logger = logging.getLogger(__name__)

Connector = Callable[..., Any]


class ChannelState(enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ServerChannel:
    """The single WebSocket connection to the game server.

    Connecting and receiving happen on a daemon thread so the GUI can render
    immediately. Text frames are queued in arrival order and picked up by the
    UI thread with ``try_get``. The state only moves forward:
    CONNECTING -> OPEN -> CLOSED, or CONNECTING -> CLOSED if the connect fails.
    There is no reconnect.
    """

    def __init__(self, url: str, connect_timeout: Optional[float] = 5.0,
                 connector: Connector = websocket.create_connection) -> None:
        self.url = url
        self.connect_timeout = connect_timeout
        self._connector = connector
        self.ws = None
        self.recv_thread: Optional[threading.Thread] = None
        self.recv_queue: "queue.Queue[Union[str, bytes]]" = queue.Queue()
        self.stopped = threading.Event()
        self._cond = threading.Condition()
        self._state = ChannelState.CONNECTING

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ChannelState.OPEN

    @property
    def is_closed(self) -> bool:
        return self._state is ChannelState.CLOSED

    def start(self) -> None:
        if self.recv_thread is not None:
            raise RuntimeError("channel already started")
        self.recv_thread = threading.Thread(target=self._run, name="broadside-recv", daemon=True)
        self.recv_thread.start()

    def _run(self) -> None:
        logger.info("connecting to %s", self.url)
        try:
            ws = self._connector(self.url, timeout=self.connect_timeout)
        except (websocket.WebSocketException, OSError) as exc:
            logger.error("could not connect to %s: %s", self.url, exc)
            self._mark_closed()
            return
        ws.settimeout(None)
        with self._cond:
            if self._state is ChannelState.CLOSED:
                # close() won the race while we were connecting
                ws.shutdown()
                return
            self.ws = ws
            self._state = ChannelState.OPEN
            self._cond.notify_all()
        logger.info("connected to %s", self.url)
        self._recv_loop()

    def _recv_loop(self) -> None:
        try:
            while not self.stopped.is_set():
                opcode, data = self.ws.recv_data()
                if opcode == websocket.ABNF.OPCODE_CLOSE:
                    logger.info("server closed the connection")
                    break
                if opcode == websocket.ABNF.OPCODE_TEXT:
                    self.recv_queue.put(data)
                elif opcode == websocket.ABNF.OPCODE_BINARY:
                    logger.warning("dropping frame: %s", DecodeError("binary frame on a text protocol", data))
        except (websocket.WebSocketException, OSError) as exc:
            if not self.stopped.is_set():
                logger.warning("connection lost: %s", exc)
        finally:
            self._mark_closed()

    def _mark_closed(self, send_close: bool = False) -> None:
        with self._cond:
            if self._state is ChannelState.CLOSED:
                return
            self._state = ChannelState.CLOSED
            self._cond.notify_all()
            ws = self.ws
        logger.info("channel closed")
        if ws is None:
            return
        # Not ws.close(): that reads the peer's reply, and only the receive
        # thread reads.
        if send_close:
            try:
                ws.send_close()
            except (websocket.WebSocketException, OSError) as exc:
                logger.debug("could not send close frame: %s", exc)
        try:
            # unblocks a receive thread sitting in recv_data
            ws.abort()
        except OSError as exc:
            logger.debug("error while aborting socket: %s", exc)
        finally:
            ws.shutdown()

    def send(self, command: Command) -> None:
        state = self._state
        if state is ChannelState.CLOSED:
            raise ChannelClosed(f"cannot send {type(command).__name__}: connection to {self.url} is closed")
        if state is not ChannelState.OPEN:
            raise SendFailed(f"cannot send {type(command).__name__}: still connecting to {self.url}")
        payload = encode_command(command)
        logger.debug("-> %s", payload)
        try:
            self.ws.send(payload)
        except (websocket.WebSocketException, OSError) as exc:
            self._mark_closed()
            raise SendFailed(f"sending {type(command).__name__} failed: {exc}") from exc

    def try_get(self, timeout: float = 0.0) -> Optional[Union[str, bytes]]:
        try:
            if timeout > 0:
                return self.recv_queue.get(timeout=timeout)
            return self.recv_queue.get_nowait()
        except queue.Empty:
            return None

    def wait_open(self, timeout: Optional[float] = None) -> bool:
        """Block until the connect attempt settles; True if the channel is open."""
        with self._cond:
            self._cond.wait_for(lambda: self._state is not ChannelState.CONNECTING, timeout)
            return self._state is ChannelState.OPEN

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._state is ChannelState.CLOSED, timeout)

    def close(self) -> None:
        self.stopped.set()
        self._mark_closed(send_close=True)
