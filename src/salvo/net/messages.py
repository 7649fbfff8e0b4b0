"""Message envelope and typed payloads exchanged with a remote player."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from salvo.engine.player import GameResult
from salvo.engine.ship import Coordinate, Orientation, Ship, ShipType


class MessageName(str, Enum):
    """Fixed message vocabulary."""

    SETUP = "setup"
    TAKE_TURN = "take-turn"
    HIT = "hit"
    WIN = "win"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_arguments(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class MessageEnvelope(BaseModel):
    """A named message with its structured arguments."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="method-name")
    arguments: Any = Field(default_factory=dict)

    @classmethod
    def build(cls, name: MessageName | str, payload: _Payload | None = None) -> MessageEnvelope:
        label = name.value if isinstance(name, MessageName) else name
        return cls(name=label, arguments=payload.to_arguments() if payload is not None else {})

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CoordPayload(_Payload):
    x: int
    y: int

    @classmethod
    def from_coordinate(cls, coord: Coordinate) -> CoordPayload:
        return cls(x=coord.x, y=coord.y)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.x, self.y)


class ShipPayload(_Payload):
    coord: CoordPayload
    length: int
    direction: Orientation

    @classmethod
    def from_ship(cls, ship: Ship) -> ShipPayload:
        if ship.start is None or ship.orientation is None:
            raise ValueError("Only placed ships can be serialized.")
        return cls(
            coord=CoordPayload.from_coordinate(ship.start),
            length=ship.length,
            direction=ship.orientation,
        )

    def to_ship(self) -> Ship:
        return Ship(self.length, self.coord.to_coordinate(), self.direction)


class SetupPayload(_Payload):
    width: int
    height: int
    fleet_spec: dict[str, int] = Field(alias="fleet-spec")

    @field_validator("fleet_spec")
    @classmethod
    def _known_ship_types(cls, value: dict[str, int]) -> dict[str, int]:
        unknown = sorted(name for name in value if name not in ShipType.__members__)
        if unknown:
            raise ValueError(f"Unknown ship types: {', '.join(unknown)}")
        return value

    @classmethod
    def create(cls, height: int, width: int, spec: dict[ShipType, int]) -> SetupPayload:
        return cls(
            height=height,
            width=width,
            fleet_spec={ship_type.name: count for ship_type, count in spec.items()},
        )

    def ship_spec(self) -> dict[ShipType, int]:
        return {ShipType[name]: count for name, count in self.fleet_spec.items()}


class VolleyPayload(_Payload):
    coordinates: list[CoordPayload]

    @classmethod
    def from_coordinates(cls, coords: list[Coordinate]) -> VolleyPayload:
        return cls(coordinates=[CoordPayload.from_coordinate(coord) for coord in coords])

    def to_coordinates(self) -> list[Coordinate]:
        return [coord.to_coordinate() for coord in self.coordinates]


class FleetPayload(_Payload):
    fleet: list[ShipPayload]

    @classmethod
    def from_fleet(cls, fleet: list[Ship]) -> FleetPayload:
        return cls(fleet=[ShipPayload.from_ship(ship) for ship in fleet])

    def to_fleet(self) -> list[Ship]:
        return [ship.to_ship() for ship in self.fleet]


class WinPayload(_Payload):
    win: bool
    reason: str = ""
    result: GameResult | None = None

    def game_result(self) -> GameResult:
        if self.result is not None:
            return self.result
        return GameResult.WIN if self.win else GameResult.LOSE
