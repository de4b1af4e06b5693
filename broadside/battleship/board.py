from __future__ import annotations

from typing import Iterable, List

from ..errors import InvariantViolation
from .model import Ship


def empty_grid(size: int) -> List[List[bool]]:
    return [[False for _ in range(size)] for _ in range(size)]


def project(ships: Iterable[Ship], size: int) -> List[List[bool]]:
    """Occupancy grid for rendering, indexed ``grid[y][x]``.

    A cell is True iff some ship covers it. The grid is rebuilt from scratch on
    every call. A cell outside ``[0, size)`` means the snapshot and the board
    disagree, so it raises InvariantViolation instead of being clamped.
    """
    if size <= 0:
        raise InvariantViolation(f"board size must be positive, got {size}")
    grid = empty_grid(size)
    for index, ship in enumerate(ships):
        for loc in ship:
            if not loc.in_bounds(size):
                raise InvariantViolation(
                    f"ship {index} has cell {loc} outside a {size}x{size} board"
                )
            grid[loc.y][loc.x] = True
    return grid
