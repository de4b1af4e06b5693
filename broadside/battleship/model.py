from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple, Union

# Lengths of the ships the server asks for, in placement order.
SHIP_LENGTHS: Tuple[int, ...] = (2, 3, 3, 4, 5)

# Largest board a snapshot may describe; the server plays on 10x10.
MAX_BOARD_SIZE = 32


@dataclass(frozen=True)
class Location:
    x: int
    y: int

    def in_bounds(self, size: int) -> bool:
        return 0 <= self.x < size and 0 <= self.y < size

    def offset(self, direction: "ShipDirection", n: int) -> "Location":
        if direction is ShipDirection.HORIZONTAL:
            return Location(self.x + n, self.y)
        return Location(self.x, self.y + n)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


class ShipDirection(Enum):
    HORIZONTAL = "Horz"
    VERTICAL = "Vert"

    def other(self) -> "ShipDirection":
        if self is ShipDirection.HORIZONTAL:
            return ShipDirection.VERTICAL
        return ShipDirection.HORIZONTAL


class Player(Enum):
    PLAYER1 = "Player1"
    PLAYER2 = "Player2"

    @property
    def number(self) -> int:
        return 1 if self is Player.PLAYER1 else 2

    def other(self) -> "Player":
        return Player.PLAYER2 if self is Player.PLAYER1 else Player.PLAYER1


@dataclass(frozen=True)
class Ship:
    """A straight, contiguous run of cells.

    Cells must share a row (horizontal) or a column (vertical) and follow each
    other without gaps or repeats. A single cell is a valid ship. Board bounds
    are not checked here; see ``broadside.battleship.board.project``.
    """

    cells: Tuple[Location, ...]

    def __post_init__(self) -> None:
        cells = tuple(self.cells)
        object.__setattr__(self, "cells", cells)
        if not cells:
            raise ValueError("ship has no cells")
        if len(set(cells)) != len(cells):
            raise ValueError(f"ship repeats a cell: {_fmt(cells)}")
        if len(cells) == 1:
            return
        if all(c.y == cells[0].y for c in cells):
            coords = sorted(c.x for c in cells)
        elif all(c.x == cells[0].x for c in cells):
            coords = sorted(c.y for c in cells)
        else:
            raise ValueError(f"ship is not on a single row or column: {_fmt(cells)}")
        if coords[-1] - coords[0] != len(coords) - 1:
            raise ValueError(f"ship is not contiguous: {_fmt(cells)}")

    @classmethod
    def from_anchor(cls, anchor: Location, direction: ShipDirection, length: int) -> "Ship":
        return cls(tuple(anchor.offset(direction, i) for i in range(length)))

    @property
    def direction(self) -> Optional[ShipDirection]:
        # None for single-cell ships
        if len(self.cells) < 2:
            return None
        if self.cells[0].y == self.cells[1].y:
            return ShipDirection.HORIZONTAL
        return ShipDirection.VERTICAL

    def __contains__(self, loc: object) -> bool:
        return loc in self.cells

    def __iter__(self):
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)


def _fmt(cells: Iterable[Location]) -> str:
    return ", ".join(str(c) for c in cells)


def _freeze(value: Any) -> Any:
    """Hashable stand-in for a decoded JSON value."""
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def next_ship_length(ships: Iterable[Ship]) -> Optional[int]:
    """Length of the next ship to place, or None when the fleet is complete."""
    count = sum(1 for _ in ships)
    if count < len(SHIP_LENGTHS):
        return SHIP_LENGTHS[count]
    return None


# --------------------------- Game states ---------------------------

@dataclass(frozen=True)
class Waiting:
    TAG = "Waiting"


@dataclass(frozen=True)
class Adding:
    TAG = "Adding"

    ships: Tuple[Ship, ...]
    size: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "ships", tuple(self.ships))


@dataclass(frozen=True)
class Guessing:
    TAG = "Guessing"

    # Whatever the server sent beside the tag; not interpreted by the client.
    fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", dict(self.fields))

    def __hash__(self) -> int:
        return hash((Guessing.TAG, _freeze(self.fields)))


@dataclass(frozen=True)
class Won:
    TAG = "Won"

    who: Player


GameState = Union[Waiting, Adding, Guessing, Won]
GAME_STATE_TYPES = (Waiting, Adding, Guessing, Won)


# --------------------------- Commands ---------------------------

@dataclass(frozen=True)
class AddShip:
    TAG = "AddShip"

    loc: Location
    dir: ShipDirection


@dataclass(frozen=True)
class GuessPos:
    TAG = "GuessPos"

    loc: Location


Command = Union[AddShip, GuessPos]
COMMAND_TYPES = (AddShip, GuessPos)
