"""The contract every participant in a match implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from .fleet import Fleet, FleetSpec
from .ship import Coordinate


class GameResult(Enum):
    """Outcome of a match from one player's point of view."""

    WIN = "WIN"
    LOSE = "LOSE"
    DRAW = "DRAW"


class Player(ABC):
    """A participant driven by a referee.

    The referee calls :meth:`setup` once, then :meth:`salvo` and :meth:`hits`
    once per round, and finally :meth:`end_game`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def setup(self, height: int, width: int, spec: FleetSpec) -> Fleet:
        """Place a fleet on a ``height`` x ``width`` grid and return it."""

    @abstractmethod
    def salvo(self, shots: list[Coordinate]) -> list[Coordinate]:
        """Receive the opponent's last volley and return this player's next one."""

    @abstractmethod
    def hits(self, shots: list[Coordinate]) -> None:
        """Report which of this player's previous shots landed on enemy ships."""

    @abstractmethod
    def end_game(self, result: GameResult, reason: str) -> None:
        ...
