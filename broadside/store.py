from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .battleship.model import GameState, Waiting

logger = logging.getLogger(__name__)

Subscriber = Callable[[GameState], None]


class StateStore:
    """Holds the one authoritative snapshot pushed by the server.

    ``replace`` discards the previous snapshot entirely and then notifies every
    subscriber, in subscription order, before returning. Only the session's
    inbound handler should call it.
    """

    def __init__(self, initial: Optional[GameState] = None) -> None:
        self._state: GameState = initial if initial is not None else Waiting()
        self._subscribers: List[Subscriber] = []
        self._notifying = False

    def get(self) -> GameState:
        return self._state

    def replace(self, new_state: GameState) -> None:
        if self._notifying:
            raise RuntimeError("replace() called while subscribers are being notified")
        logger.debug("state %s -> %s", type(self._state).__name__, type(new_state).__name__)
        self._state = new_state
        self._notifying = True
        try:
            # copy so callbacks may unsubscribe themselves
            for callback in list(self._subscribers):
                callback(new_state)
        finally:
            self._notifying = False

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Subscriber) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass
