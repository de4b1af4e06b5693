from __future__ import annotations

from typing import Optional, Union


class BroadsideError(Exception):
    """Base class for client-side protocol and consistency errors."""


class DecodeError(BroadsideError):
    """An inbound frame could not be turned into a GameState."""

    def __init__(self, reason: str, frame: Optional[Union[str, bytes]] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.frame = frame

    def __str__(self) -> str:
        if self.frame is None:
            return self.reason
        frame = self.frame if isinstance(self.frame, str) else repr(self.frame)
        if len(frame) > 200:
            frame = frame[:200] + "..."
        return f"{self.reason}: {frame}"


class SendFailed(BroadsideError):
    """A command could not be handed to the server."""


class ChannelClosed(SendFailed):
    """The connection is closed; nothing more can be sent."""


class InvariantViolation(BroadsideError):
    """A snapshot references cells outside the board."""
