"""Ship domain model for the Salvo engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class Coordinate:
    """Immutable grid coordinate; ``x`` is the column and ``y`` the row."""

    x: int
    y: int


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"


class ShipType(Enum):
    """Ship classes available in a fleet specification."""

    CARRIER = 6
    BATTLESHIP = 5
    DESTROYER = 4
    SUBMARINE = 3

    @property
    def length(self) -> int:
        """Return the number of contiguous cells the ship occupies."""
        return self.value


def span(start: Coordinate, orientation: Orientation, length: int) -> tuple[Coordinate, ...]:
    """Return the cells covered by a ship of ``length`` laid from ``start``."""
    if orientation is Orientation.HORIZONTAL:
        return tuple(Coordinate(start.x + offset, start.y) for offset in range(length))
    return tuple(Coordinate(start.x, start.y + offset) for offset in range(length))


@dataclass
class Ship:
    """A single ship: created unplaced, placed once, then shot at."""

    length: int
    start: Coordinate | None = None
    orientation: Orientation | None = None
    _segments: tuple[Coordinate, ...] = field(init=False, repr=False, default=())
    _hits: list[bool] = field(init=False, repr=False, default_factory=list)

    def __post_init__(self) -> None:
        self._hits = [False] * max(self.length, 0)
        if self.start is not None and self.orientation is not None:
            self._segments = span(self.start, self.orientation, self.length)

    @classmethod
    def of_type(cls, ship_type: ShipType) -> Ship:
        """Create an unplaced ship with the length of ``ship_type``."""
        return cls(ship_type.length)

    @property
    def is_placed(self) -> bool:
        return self.start is not None and self.orientation is not None

    def place(self, start: Coordinate, orientation: Orientation) -> None:
        """Fix the ship's position. A ship can only be placed once."""
        if self.is_placed:
            raise RuntimeError("Ship has already been placed.")
        self.start = start
        self.orientation = orientation
        self._segments = span(start, orientation, self.length)

    def coordinates(self) -> list[Coordinate]:
        """Return the ordered list of cells occupied by this ship."""
        return list(self._segments)

    @property
    def end_point(self) -> Coordinate | None:
        """Last occupied cell along the orientation axis."""
        if not self._segments:
            return self.start
        return self._segments[-1]

    def receive_shot(self, coord: Coordinate) -> bool:
        """Mark the segment under ``coord`` as hit; return True if it is on this ship.

        Hitting an already-hit segment is a no-op.
        """
        try:
            index = self._segments.index(coord)
        except ValueError:
            return False
        self._hits[index] = True
        return True

    def is_sunk(self) -> bool:
        """A ship is sunk once every segment has been hit."""
        return self.is_placed and all(self._hits)

    def hit_segments(self) -> list[Coordinate]:
        return [coord for coord, hit in zip(self._segments, self._hits) if hit]

    def overlaps(self, other: Ship) -> bool:
        """Return True if any occupied cell is shared with ``other``."""
        return bool(set(self._segments) & set(other._segments))

    def copy(self) -> Ship:
        """Return a fresh, unhit ship with the same placement."""
        return Ship(self.length, self.start, self.orientation)
