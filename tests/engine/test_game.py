"""High-level match tests."""

import pytest

from salvo.ai.random_player import RandomPlayer
from salvo.engine.fleet import Fleet, FleetSpec
from salvo.engine.game import GamePhase, Match, Seat
from salvo.engine.player import GameResult, Player
from salvo.engine.ship import Coordinate, Orientation, Ship, ShipType


class ScriptedPlayer(Player):
    """Player with a fixed fleet and a fixed list of volleys."""

    def __init__(self, name: str, fleet: Fleet, volleys: list[list[Coordinate]]) -> None:
        self._name = name
        self._fleet = fleet
        self._volleys = list(volleys)
        self.received: list[list[Coordinate]] = []
        self.reported_hits: list[list[Coordinate]] = []
        self.ended: tuple[GameResult, str] | None = None

    @property
    def name(self) -> str:
        return self._name

    def setup(self, height: int, width: int, spec: FleetSpec) -> Fleet:
        return self._fleet

    def salvo(self, shots: list[Coordinate]) -> list[Coordinate]:
        self.received.append(shots)
        return self._volleys.pop(0) if self._volleys else []

    def hits(self, shots: list[Coordinate]) -> None:
        self.reported_hits.append(shots)

    def end_game(self, result: GameResult, reason: str) -> None:
        self.ended = (result, reason)


SUB_SPEC = {ShipType.SUBMARINE: 1}


def _sub(x: int, y: int) -> Ship:
    return Ship(3, Coordinate(x, y), Orientation.HORIZONTAL)


def test_bot_match_runs_to_completion() -> None:
    one = RandomPlayer("one", rng_seed=1)
    two = RandomPlayer("two", rng_seed=2)
    spec = {ShipType.CARRIER: 1, ShipType.DESTROYER: 1, ShipType.SUBMARINE: 2}
    match = Match(one, two, 10, 10, spec)

    outcome = match.play()

    assert match.phase is GamePhase.FINISHED
    assert outcome.rounds >= 1
    assert one.last_result is outcome.results[Seat.PLAYER1]
    assert two.last_result is outcome.results[Seat.PLAYER2]
    if outcome.winner is not None:
        assert outcome.results[outcome.winner] is GameResult.WIN
        assert outcome.results[outcome.winner.opponent()] is GameResult.LOSE


def test_winner_is_declared_when_fleet_sinks() -> None:
    attacker = ScriptedPlayer("attacker", [_sub(0, 0)], [[Coordinate(5, 5)], [Coordinate(6, 5)], [Coordinate(7, 5)]])
    defender = ScriptedPlayer("defender", [_sub(5, 5)], [[Coordinate(9, 9)], [Coordinate(9, 8)], [Coordinate(9, 7)]])
    match = Match(attacker, defender, 10, 10, SUB_SPEC)

    outcome = match.play()

    assert outcome.winner is Seat.PLAYER1
    assert outcome.rounds == 3
    assert attacker.ended is not None and attacker.ended[0] is GameResult.WIN
    assert defender.ended is not None and defender.ended[0] is GameResult.LOSE
    assert attacker.reported_hits == [[Coordinate(5, 5)], [Coordinate(6, 5)], [Coordinate(7, 5)]]
    assert defender.reported_hits == [[], [], []]


def test_players_receive_previous_enemy_volley() -> None:
    first = ScriptedPlayer("first", [_sub(0, 0)], [[Coordinate(9, 9)], [Coordinate(8, 9)]])
    second = ScriptedPlayer("second", [_sub(0, 5)], [[Coordinate(9, 0)], [Coordinate(8, 0)]])
    match = Match(first, second, 10, 10, SUB_SPEC, max_rounds=2)

    match.setup()
    match.play_round()
    match.play_round()

    assert first.received == [[], [Coordinate(9, 0)]]
    assert second.received == [[], [Coordinate(9, 9)]]
    assert match.outcome is not None
    assert match.outcome.winner is None
    assert "Round limit" in match.outcome.reason


def test_sentinel_volley_forfeits() -> None:
    honest = ScriptedPlayer("honest", [_sub(0, 0)], [[Coordinate(4, 4)]])
    silent = ScriptedPlayer("silent", [_sub(0, 5)], [[Coordinate(-1, -1)]])
    match = Match(honest, silent, 10, 10, SUB_SPEC)

    outcome = match.play()

    assert outcome.winner is Seat.PLAYER1
    assert "silent forfeited" in outcome.reason
    assert silent.ended is not None and silent.ended[0] is GameResult.LOSE


def test_oversized_volley_forfeits() -> None:
    greedy = ScriptedPlayer("greedy", [_sub(0, 0)], [[Coordinate(1, 1), Coordinate(2, 2)]])
    fair = ScriptedPlayer("fair", [_sub(0, 5)], [[Coordinate(3, 3)]])

    outcome = Match(greedy, fair, 10, 10, SUB_SPEC).play()

    assert outcome.winner is Seat.PLAYER2
    assert "2 shots fired with 1 ships afloat" in outcome.reason


def test_invalid_fleets_on_both_sides_is_a_draw() -> None:
    off_grid = ScriptedPlayer("off-grid", [_sub(9, 9)], [])
    missing = ScriptedPlayer("missing", [], [])

    outcome = Match(off_grid, missing, 10, 10, SUB_SPEC).play()

    assert outcome.winner is None
    assert outcome.rounds == 0
    assert off_grid.ended is not None and off_grid.ended[0] is GameResult.DRAW


def test_both_fleets_sunk_in_same_round_is_a_draw() -> None:
    left = ScriptedPlayer("left", [Ship(3, Coordinate(0, 0), Orientation.VERTICAL)],
                          [[Coordinate(5, 0)], [Coordinate(5, 1)], [Coordinate(5, 2)]])
    right = ScriptedPlayer("right", [Ship(3, Coordinate(5, 0), Orientation.VERTICAL)],
                           [[Coordinate(0, 0)], [Coordinate(0, 1)], [Coordinate(0, 2)]])

    outcome = Match(left, right, 10, 10, SUB_SPEC).play()

    assert outcome.winner is None
    assert outcome.results == {Seat.PLAYER1: GameResult.DRAW, Seat.PLAYER2: GameResult.DRAW}


def test_round_requires_match_in_progress() -> None:
    match = Match(RandomPlayer(rng_seed=0), RandomPlayer(rng_seed=1), 10, 10, SUB_SPEC)
    with pytest.raises(RuntimeError):
        match.play_round()
    match.setup()
    with pytest.raises(RuntimeError):
        match.setup()


def test_play_without_outcome_raises() -> None:
    match = Match(RandomPlayer(rng_seed=0), RandomPlayer(rng_seed=1), 10, 10, SUB_SPEC)
    match.phase = GamePhase.FINISHED
    with pytest.raises(RuntimeError):
        match.play()
