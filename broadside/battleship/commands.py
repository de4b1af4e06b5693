from __future__ import annotations

import logging
from typing import Callable

from .model import AddShip, Command, GuessPos, Location, ShipDirection

logger = logging.getLogger(__name__)


class CommandEncoder:
    """Turns board clicks into commands and hands them to the channel.

    Nothing is checked locally: not bounds, not overlap, not whose turn it is.
    The server decides, and answers with a new (possibly unchanged) snapshot.
    Errors from ``send`` (SendFailed, ChannelClosed) reach the caller as is.
    """

    def __init__(self, send: Callable[[Command], None],
                 direction: ShipDirection = ShipDirection.HORIZONTAL) -> None:
        self._send = send
        self.direction = direction

    def select_direction(self, direction: ShipDirection) -> None:
        self.direction = direction

    def toggle_direction(self) -> ShipDirection:
        self.direction = self.direction.other()
        return self.direction

    def add_ship(self, loc: Location) -> AddShip:
        command = AddShip(loc, self.direction)
        logger.info("placing ship at %s (%s)", loc, self.direction.value)
        self._send(command)
        return command

    def guess(self, loc: Location) -> GuessPos:
        command = GuessPos(loc)
        logger.info("guessing %s", loc)
        self._send(command)
        return command
