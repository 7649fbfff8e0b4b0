"""Autonomous player that places its fleet and fires at random."""

from __future__ import annotations

import logging
import random

from salvo.engine.board import CellStatus, OpponentBoard
from salvo.engine.fleet import Fleet, FleetSpec, afloat_count, place_fleet, resolve_salvo
from salvo.engine.player import GameResult, Player
from salvo.engine.ship import Coordinate
from salvo.telemetry import get_meter, get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.ai.random_player")
meter = get_meter("salvo.ai.random_player")

SHOT_COUNTER = meter.create_counter(
    "salvo_ai_shots_generated",
    unit="1",
    description="Shots selected by the autonomous player",
)

DEFAULT_NAME = "salvo-bot"


class RandomPlayer(Player):
    """Local player with a random fleet layout and random, never-repeated targeting.

    Each volley holds one shot per ship still afloat. Targets are drawn from
    the opponent board's shot pool, so no cell is fired upon twice.
    """

    def __init__(
        self,
        name: str = DEFAULT_NAME,
        rng_seed: int | None = None,
        placement_max_attempts: int | None = None,
    ) -> None:
        self._name = name
        self._rng = random.Random(rng_seed)
        self.placement_max_attempts = placement_max_attempts
        self.fleet: Fleet = []
        self.opponent_board: OpponentBoard | None = None
        self.last_result: GameResult | None = None

    @property
    def name(self) -> str:
        return self._name

    def setup(self, height: int, width: int, spec: FleetSpec) -> Fleet:
        self.opponent_board = OpponentBoard(height, width)
        self.last_result = None
        self.fleet = place_fleet(height, width, spec, self._rng, self.placement_max_attempts)
        logger.info(
            "fleet_ready",
            extra={"player": self._name, "ships": len(self.fleet), "height": height, "width": width},
        )
        return self.fleet

    def salvo(self, shots: list[Coordinate]) -> list[Coordinate]:
        board = self._board()
        with tracer.start_as_current_span("random_player.salvo") as span:
            landed = resolve_salvo(self.fleet, shots)
            volley_size = afloat_count(self.fleet)
            span.set_attribute("player", self._name)
            span.set_attribute("incoming", len(shots))
            span.set_attribute("incoming.landed", len(landed))
            span.set_attribute("volley.size", volley_size)
            logger.debug(
                "salvo_received",
                extra={"player": self._name, "incoming": len(shots), "landed": len(landed)},
            )
            return self.generate_shots(volley_size, board)

    def generate_shots(self, number: int, board: OpponentBoard | None = None) -> list[Coordinate]:
        """Draw up to ``number`` fresh targets and mark them SPLASH.

        Fewer are returned only once the shot pool runs dry.
        """
        if number < 0:
            raise ValueError("Shot count cannot be negative.")
        board = board or self._board()
        shots: list[Coordinate] = []
        for _ in range(number):
            coord = board.draw(self._rng)
            if coord is None:
                break
            shots.append(coord)
        board.mark_splash(shots)
        SHOT_COUNTER.add(len(shots), attributes={"player": self._name})
        logger.debug(
            "shots_generated",
            extra={"player": self._name, "requested": number, "generated": len(shots)},
        )
        return shots

    def valid_shot(self, coord: Coordinate) -> bool:
        """True while ``coord`` has not been fired upon."""
        board = self._board()
        return coord in board and board.status(coord) is CellStatus.EMPTY

    def hits(self, shots: list[Coordinate]) -> None:
        self._board().mark_hits(shots)

    def end_game(self, result: GameResult, reason: str) -> None:
        self.last_result = result
        logger.info("game_over", extra={"player": self._name, "result": result.value, "reason": reason})

    def _board(self) -> OpponentBoard:
        if self.opponent_board is None:
            raise RuntimeError("Player has not been set up.")
        return self.opponent_board
