"""Two-player Salvo match referee."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from salvo.telemetry import get_meter, get_tracer

from .fleet import Fleet, FleetSpec, afloat_count, fleet_problem, resolve_salvo
from .player import GameResult, Player
from .ship import Coordinate

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.game")
meter = get_meter("salvo.engine.game")

ROUND_COUNTER = meter.create_counter(
    "salvo_engine_rounds",
    unit="1",
    description="Number of salvo rounds played",
)

MATCH_COUNTER = meter.create_counter(
    "salvo_engine_matches",
    unit="1",
    description="Finished matches by how they ended",
)


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Seat(Enum):
    """The two sides of a match."""

    PLAYER1 = "player1"
    PLAYER2 = "player2"

    def opponent(self) -> Seat:
        return Seat.PLAYER2 if self is Seat.PLAYER1 else Seat.PLAYER1


@dataclass(frozen=True)
class RoundReport:
    """What happened in one simultaneous salvo round."""

    number: int
    volleys: dict[Seat, list[Coordinate]]
    landed: dict[Seat, list[Coordinate]]
    afloat: dict[Seat, int]


@dataclass(frozen=True)
class MatchOutcome:
    winner: Seat | None
    reason: str
    rounds: int
    results: dict[Seat, GameResult] = field(default_factory=dict)


class Match:
    """Drives two :class:`Player` objects through setup, salvo rounds and end of game.

    Both players fire simultaneously each round; each one is handed the volley
    its opponent fired in the previous round. The referee keeps its own copy
    of every fleet and decides hits itself. A fleet or volley that breaks the
    rules (including the sentinels a silent remote player produces) forfeits
    the match for that player.
    """

    def __init__(
        self,
        player1: Player,
        player2: Player,
        height: int,
        width: int,
        spec: FleetSpec,
        max_rounds: int | None = None,
    ) -> None:
        self.players: dict[Seat, Player] = {Seat.PLAYER1: player1, Seat.PLAYER2: player2}
        self.height = height
        self.width = width
        self.spec = dict(spec)
        self.max_rounds = max_rounds if max_rounds is not None else height * width
        self.fleets: dict[Seat, Fleet] = {}
        self.phase = GamePhase.SETUP
        self.rounds_played = 0
        self.outcome: MatchOutcome | None = None
        self._incoming: dict[Seat, list[Coordinate]] = {Seat.PLAYER1: [], Seat.PLAYER2: []}

    def play(self) -> MatchOutcome:
        """Run the whole match and return how it ended."""
        with tracer.start_as_current_span("match.play") as span:
            if self.phase is GamePhase.SETUP:
                self.setup()
            while self.phase is GamePhase.IN_PROGRESS:
                self.play_round()
            if self.outcome is None:
                raise RuntimeError("Match ended without an outcome.")
            span.set_attribute("rounds", self.outcome.rounds)
            span.set_attribute("winner", self.outcome.winner.value if self.outcome.winner else "none")
            return self.outcome

    def setup(self) -> None:
        if self.phase is not GamePhase.SETUP:
            raise RuntimeError("Match has already been set up.")
        with tracer.start_as_current_span("match.setup"):
            problems: dict[Seat, str] = {}
            for seat, player in self.players.items():
                fleet = player.setup(self.height, self.width, self.spec)
                problem = fleet_problem(fleet, self.height, self.width, self.spec)
                if problem is not None:
                    problems[seat] = f"invalid fleet: {problem}"
                    logger.warning("fleet_rejected", extra={"player": player.name, "problem": problem})
                self.fleets[seat] = [ship.copy() for ship in fleet]
            self.phase = GamePhase.IN_PROGRESS
            if problems:
                self._forfeit(problems)
            else:
                logger.info("match_started", extra={"height": self.height, "width": self.width})

    def play_round(self) -> RoundReport:
        if self.phase is not GamePhase.IN_PROGRESS:
            raise RuntimeError("Match is not in progress.")
        self.rounds_played += 1
        with tracer.start_as_current_span("match.round") as span:
            span.set_attribute("round", self.rounds_played)
            volleys: dict[Seat, list[Coordinate]] = {}
            problems: dict[Seat, str] = {}
            for seat, player in self.players.items():
                volley = player.salvo(self._incoming[seat])
                volleys[seat] = volley
                problem = self._volley_problem(seat, volley)
                if problem is not None:
                    problems[seat] = f"invalid volley: {problem}"
                    logger.warning("volley_rejected", extra={"player": player.name, "problem": problem})
            ROUND_COUNTER.add(1)

            if problems:
                self._forfeit(problems)
                return self._report(volleys, {Seat.PLAYER1: [], Seat.PLAYER2: []})

            landed: dict[Seat, list[Coordinate]] = {}
            for seat, volley in volleys.items():
                landed[seat] = resolve_salvo(self.fleets[seat.opponent()], volley)
                self._incoming[seat.opponent()] = volley
            for seat, player in self.players.items():
                player.hits(landed[seat])

            report = self._report(volleys, landed)
            logger.debug(
                "round_complete",
                extra={"round": report.number, "afloat": {s.value: n for s, n in report.afloat.items()}},
            )
            self._check_finished(report)
            return report

    def _volley_problem(self, seat: Seat, volley: list[Coordinate]) -> str | None:
        allowed = afloat_count(self.fleets[seat])
        if len(volley) > allowed:
            return f"{len(volley)} shots fired with {allowed} ships afloat"
        for shot in volley:
            if not (0 <= shot.x < self.width and 0 <= shot.y < self.height):
                return f"shot ({shot.x}, {shot.y}) is outside the grid"
        return None

    def _report(
        self, volleys: dict[Seat, list[Coordinate]], landed: dict[Seat, list[Coordinate]]
    ) -> RoundReport:
        return RoundReport(
            number=self.rounds_played,
            volleys=volleys,
            landed=landed,
            afloat={seat: afloat_count(fleet) for seat, fleet in self.fleets.items()},
        )

    def _check_finished(self, report: RoundReport) -> None:
        defeated = [seat for seat, count in report.afloat.items() if count == 0]
        if len(defeated) == 2:
            self._finish(None, "Both fleets were sunk in the same round.")
        elif defeated:
            loser = defeated[0]
            self._finish(loser.opponent(), f"All of {self.players[loser].name}'s ships were sunk.")
        elif self.rounds_played >= self.max_rounds:
            self._finish(None, f"Round limit of {self.max_rounds} reached.")

    def _forfeit(self, problems: dict[Seat, str]) -> None:
        if len(problems) == 2:
            self._finish(None, "Both players broke the rules.")
            return
        seat, problem = next(iter(problems.items()))
        self._finish(seat.opponent(), f"{self.players[seat].name} forfeited: {problem}.")

    def _finish(self, winner: Seat | None, reason: str) -> None:
        results: dict[Seat, GameResult] = {}
        for seat in self.players:
            if winner is None:
                results[seat] = GameResult.DRAW
            else:
                results[seat] = GameResult.WIN if seat is winner else GameResult.LOSE
        self.phase = GamePhase.FINISHED
        self.outcome = MatchOutcome(winner, reason, self.rounds_played, results)
        MATCH_COUNTER.add(1, attributes={"result": "draw" if winner is None else "win"})
        logger.info(
            "match_finished",
            extra={"winner": winner.value if winner else "none", "reason": reason, "rounds": self.rounds_played},
        )
        for seat, player in self.players.items():
            player.end_game(results[seat], reason)
