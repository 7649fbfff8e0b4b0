"""Game engine: ships, fleets, the opponent board tracker and the match referee."""

from .board import CellStatus, OpponentBoard
from .fleet import FleetPlacementError, afloat_count, place_fleet, resolve_salvo
from .game import Match, MatchOutcome, Seat
from .player import GameResult, Player
from .ship import Coordinate, Orientation, Ship, ShipType

__all__ = [
    "CellStatus",
    "Coordinate",
    "FleetPlacementError",
    "GameResult",
    "Match",
    "MatchOutcome",
    "OpponentBoard",
    "Orientation",
    "Player",
    "Seat",
    "Ship",
    "ShipType",
    "afloat_count",
    "place_fleet",
    "resolve_salvo",
]
