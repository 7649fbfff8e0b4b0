"""Fleet placement and incoming-salvo resolution."""

from __future__ import annotations

import logging
import random
from typing import Iterable, Mapping, Sequence

from salvo.telemetry import get_meter, get_tracer

from .ship import Coordinate, Orientation, Ship, ShipType, span

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.fleet")
meter = get_meter("salvo.engine.fleet")

PLACEMENT_COUNTER = meter.create_counter(
    "salvo_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

FleetSpec = Mapping[ShipType, int]
Fleet = list[Ship]

ORIENTATIONS: tuple[Orientation, ...] = tuple(Orientation)


class FleetPlacementError(ValueError):
    """Raised when a ship cannot be placed within the allowed number of attempts."""

    def __init__(self, length: int, attempts: int, height: int, width: int) -> None:
        super().__init__(
            f"Could not place a ship of length {length} on a {height}x{width} grid "
            f"after {attempts} attempts."
        )
        self.length = length
        self.attempts = attempts


def unplaced_ships(spec: FleetSpec) -> list[Ship]:
    """One unplaced ship per requested unit, grouped by ship type."""
    ships: list[Ship] = []
    for ship_type in ShipType:
        count = spec.get(ship_type, 0)
        if count < 0:
            raise ValueError(f"Negative count for {ship_type.name}.")
        ships.extend(Ship.of_type(ship_type) for _ in range(count))
    return ships


def within_grid(cells: Iterable[Coordinate], height: int, width: int) -> bool:
    return all(0 <= cell.x < width and 0 <= cell.y < height for cell in cells)


def place_fleet(
    height: int,
    width: int,
    spec: FleetSpec,
    rng: random.Random,
    max_attempts: int | None = None,
) -> Fleet:
    """Randomly place every ship requested by ``spec`` without overlap.

    Each ship draws a uniform start cell in ``[0, width) x [0, height)`` and a
    uniform orientation until the span fits the grid and misses every ship
    already accepted. With ``max_attempts`` set, a ship that exhausts its draws
    raises :class:`FleetPlacementError`; with ``None`` the search never gives up,
    so an unsatisfiable specification does not terminate.
    """
    with tracer.start_as_current_span("fleet.place") as span_ctx:
        span_ctx.set_attribute("grid.height", height)
        span_ctx.set_attribute("grid.width", width)
        fleet: Fleet = []
        occupied: set[Coordinate] = set()
        for ship in unplaced_ships(spec):
            attempts = 0
            while True:
                if max_attempts is not None and attempts >= max_attempts:
                    PLACEMENT_COUNTER.add(1, attributes={"result": "exhausted"})
                    logger.error(
                        "fleet_placement_exhausted",
                        extra={"length": ship.length, "attempts": attempts},
                    )
                    raise FleetPlacementError(ship.length, attempts, height, width)
                attempts += 1
                start = Coordinate(rng.randrange(width), rng.randrange(height))
                orientation = rng.choice(ORIENTATIONS)
                cells = span(start, orientation, ship.length)
                if within_grid(cells, height, width) and occupied.isdisjoint(cells):
                    break
            ship.place(start, orientation)
            occupied.update(cells)
            fleet.append(ship)
            PLACEMENT_COUNTER.add(1, attributes={"result": "success"})
            logger.debug(
                "ship_placed",
                extra={
                    "length": ship.length,
                    "x": start.x,
                    "y": start.y,
                    "orientation": orientation.name,
                    "attempts": attempts,
                },
            )
        span_ctx.set_attribute("fleet.size", len(fleet))
        return fleet


def afloat_count(fleet: Iterable[Ship]) -> int:
    """Number of ships that still have at least one unhit segment."""
    return sum(1 for ship in fleet if not ship.is_sunk())


def resolve_salvo(fleet: Sequence[Ship], shots: Iterable[Coordinate]) -> list[Coordinate]:
    """Apply every shot to every ship and return the shots that landed."""
    landed: list[Coordinate] = []
    for shot in shots:
        hit = False
        for ship in fleet:
            hit = ship.receive_shot(shot) or hit
        if hit:
            landed.append(shot)
    return landed


def fleet_problem(fleet: Sequence[Ship], height: int, width: int, spec: FleetSpec) -> str | None:
    """Describe why ``fleet`` is not a legal answer to ``spec``, or return None."""
    expected = sorted(ship.length for ship in unplaced_ships(spec))
    if sorted(ship.length for ship in fleet) != expected:
        return "fleet does not match the requested ship lengths"
    occupied: set[Coordinate] = set()
    for ship in fleet:
        if not ship.is_placed:
            return "fleet contains an unplaced ship"
        cells = ship.coordinates()
        if not within_grid(cells, height, width):
            return "ship lies outside the grid"
        if not occupied.isdisjoint(cells):
            return "ships overlap"
        occupied.update(cells)
    return None
