from __future__ import annotations

import logging
from typing import Optional

from .battleship.commands import CommandEncoder
from .errors import DecodeError
from .net.channel import ServerChannel
from .net.protocol import decode_state
from .store import StateStore

logger = logging.getLogger(__name__)


class GameSession:
    """Wires the channel's inbound frames into the state store.

    ``pump`` is meant to be called from the UI loop, which makes it the only
    writer of the store: frames are applied one at a time, in the order the
    channel received them.
    """

    def __init__(self, channel: ServerChannel, store: Optional[StateStore] = None) -> None:
        self.channel = channel
        self.store = store if store is not None else StateStore()
        self.encoder = CommandEncoder(channel.send)
        self.decode_errors = 0
        self._reported_close = False

    @property
    def connected(self) -> bool:
        return self.channel.is_open

    @property
    def closed(self) -> bool:
        return self.channel.is_closed

    def start(self) -> None:
        self.channel.start()

    def handle_frame(self, frame) -> bool:
        """Apply one inbound frame. Returns False if it was rejected."""
        try:
            state = decode_state(frame)
        except DecodeError as exc:
            self.decode_errors += 1
            logger.warning("ignoring server frame: %s", exc)
            return False
        self.store.replace(state)
        return True

    def pump(self) -> int:
        applied = 0
        frame = self.channel.try_get(0.0)
        while frame is not None:
            if self.handle_frame(frame):
                applied += 1
            frame = self.channel.try_get(0.0)
        if self.channel.is_closed and not self._reported_close:
            self._reported_close = True
            logger.warning("disconnected from %s", self.channel.url)
        return applied

    def close(self) -> None:
        self.channel.close()
