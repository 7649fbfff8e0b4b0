"""Opponent-board tracker: what a player knows about the enemy grid."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Iterable

import numpy as np
import numpy.typing as npt

from .ship import Coordinate

logger = logging.getLogger(__name__)


class CellStatus(Enum):
    """Knowledge of one cell of the opponent's grid."""

    EMPTY = 0
    SPLASH = 1
    HIT = 2


class OpponentBoard:
    """Height×width grid of :class:`CellStatus` plus the pool of untargeted cells.

    The pool starts as the full grid extent and only ever shrinks, so a
    coordinate drawn from it can never be drawn again in the same match.
    """

    def __init__(self, height: int, width: int) -> None:
        if height <= 0 or width <= 0:
            raise ValueError("Board dimensions must be positive.")
        self.height = height
        self.width = width
        self.grid: npt.NDArray[np.int8] = np.full(
            (height, width), CellStatus.EMPTY.value, dtype=np.int8
        )
        self._pool: list[Coordinate] = [
            Coordinate(x, y) for y in range(height) for x in range(width)
        ]

    def __contains__(self, coord: Coordinate) -> bool:
        return 0 <= coord.x < self.width and 0 <= coord.y < self.height

    @property
    def remaining(self) -> int:
        """Number of coordinates still available in the shot pool."""
        return len(self._pool)

    def pool(self) -> list[Coordinate]:
        return list(self._pool)

    def status(self, coord: Coordinate) -> CellStatus:
        self._check_bounds(coord)
        return CellStatus(int(self.grid[coord.y, coord.x]))

    def draw(self, rng: random.Random) -> Coordinate | None:
        """Remove and return a uniformly random coordinate from the pool."""
        if not self._pool:
            return None
        return self._pool.pop(rng.randrange(len(self._pool)))

    def mark_splash(self, coords: Iterable[Coordinate]) -> None:
        for coord in coords:
            self._mark(coord, CellStatus.SPLASH)

    def mark_hits(self, coords: Iterable[Coordinate]) -> None:
        for coord in coords:
            self._mark(coord, CellStatus.HIT)

    def counts(self) -> dict[CellStatus, int]:
        values, totals = np.unique(self.grid, return_counts=True)
        found = {CellStatus(int(value)): int(total) for value, total in zip(values, totals)}
        return {status: found.get(status, 0) for status in CellStatus}

    def render(self) -> str:
        symbols = {CellStatus.EMPTY: ".", CellStatus.SPLASH: "o", CellStatus.HIT: "X"}
        return "\n".join(
            " ".join(symbols[CellStatus(int(value))] for value in row) for row in self.grid
        )

    def _mark(self, coord: Coordinate, status: CellStatus) -> None:
        self._check_bounds(coord)
        self.grid[coord.y, coord.x] = status.value

    def _check_bounds(self, coord: Coordinate) -> None:
        if coord not in self:
            logger.error(
                "coordinate_out_of_bounds",
                extra={"x": coord.x, "y": coord.y, "height": self.height, "width": self.width},
            )
            raise ValueError(f"Coordinate ({coord.x}, {coord.y}) is outside the board.")
