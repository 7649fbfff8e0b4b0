"""Tests for serving a local player to a remote referee."""

import socket
import threading

import pytest

from salvo.ai.random_player import RandomPlayer
from salvo.engine.fleet import fleet_problem
from salvo.engine.game import Match, Seat
from salvo.engine.player import GameResult
from salvo.engine.ship import ShipType
from salvo.net.channel import JsonSocketChannel, channel_pair
from salvo.net.dealer import ProxyDealer
from salvo.net.messages import FleetPayload, MessageEnvelope, VolleyPayload
from salvo.net.proxy import ProxyPlayer

SPEC = {ShipType.DESTROYER: 1, ShipType.SUBMARINE: 2}


@pytest.fixture
def served():
    referee_end, player_end = channel_pair()
    player = RandomPlayer("guest", rng_seed=11)
    dealer = ProxyDealer(player_end, player)
    yield dealer, referee_end
    referee_end.close()
    player_end.close()


def _setup_request() -> MessageEnvelope:
    return MessageEnvelope(
        name="setup",
        arguments={"width": 8, "height": 7, "fleet-spec": {"DESTROYER": 1, "SUBMARINE": 2}},
    )


def test_setup_is_answered_with_a_legal_fleet(served) -> None:
    dealer, referee_end = served

    assert dealer.handle(_setup_request()) is False

    reply = referee_end.receive()
    assert reply.name == "setup"
    fleet = FleetPayload.model_validate(reply.arguments).to_fleet()
    assert fleet_problem(fleet, 7, 8, SPEC) is None


def test_take_turn_is_answered_with_a_volley(served) -> None:
    dealer, referee_end = served
    dealer.handle(_setup_request())
    referee_end.receive()

    dealer.handle(MessageEnvelope(name="take-turn", arguments={"coordinates": []}))

    reply = referee_end.receive()
    assert reply.name == "take-turn"
    assert len(VolleyPayload.model_validate(reply.arguments).coordinates) == 3


def test_hit_is_acknowledged(served) -> None:
    dealer, referee_end = served
    dealer.handle(_setup_request())
    referee_end.receive()

    dealer.handle(MessageEnvelope(name="hit", arguments={"coordinates": [{"x": 0, "y": 0}]}))

    assert referee_end.receive().to_wire() == {"method-name": "hit", "arguments": {}}


def test_win_ends_the_session(served) -> None:
    dealer, referee_end = served

    finished = dealer.handle(MessageEnvelope(name="win", arguments={"win": True, "reason": "sunk"}))

    assert finished is True
    assert dealer.result is GameResult.WIN
    assert dealer.player.last_result is GameResult.WIN
    assert referee_end.receive().name == "win"


def test_unknown_message_is_ignored(served) -> None:
    dealer, _referee_end = served

    assert dealer.handle(MessageEnvelope(name="surrender", arguments={})) is False


def test_run_skips_malformed_requests_and_stops_after_win(served) -> None:
    dealer, referee_end = served
    referee_end.send(MessageEnvelope(name="setup", arguments={"width": "wide"}))
    referee_end.send_raw("garbage\n")
    referee_end.send(MessageEnvelope(name="win", arguments={"win": False, "reason": "x", "result": "DRAW"}))

    assert dealer.run() is GameResult.DRAW
    assert referee_end.receive().name == "win"


def test_run_stops_when_channel_closes(served) -> None:
    dealer, referee_end = served
    referee_end.close()

    assert dealer.run() is None


def _play_over(referee_channel, player_channel):
    guest = RandomPlayer("guest", rng_seed=2)
    dealer = ProxyDealer(player_channel, guest)
    worker = threading.Thread(target=dealer.run, daemon=True)
    worker.start()

    host = RandomPlayer("host", rng_seed=1)
    remote = ProxyPlayer(referee_channel, name="guest", response_timeout=2.0)
    try:
        outcome = Match(host, remote, 6, 6, SPEC).play()
    finally:
        remote.close()
    worker.join(timeout=5.0)
    assert not worker.is_alive()
    return outcome, host, dealer


def test_full_match_over_in_process_channels() -> None:
    referee_end, player_end = channel_pair()

    outcome, host, dealer = _play_over(referee_end, player_end)

    assert outcome.rounds > 0
    assert "forfeited" not in outcome.reason
    assert host.last_result is outcome.results[Seat.PLAYER1]
    assert dealer.result is outcome.results[Seat.PLAYER2]


def test_full_match_over_sockets() -> None:
    left, right = socket.socketpair()
    player_end = JsonSocketChannel(right)

    outcome, host, dealer = _play_over(JsonSocketChannel(left), player_end)
    player_end.close()

    assert outcome.rounds > 0
    assert dealer.result is outcome.results[Seat.PLAYER2]
    assert host.last_result is outcome.results[Seat.PLAYER1]


def test_player_failures_are_left_unanswered(served) -> None:
    dealer, referee_end = served
    referee_end.send(MessageEnvelope(name="take-turn", arguments={"coordinates": []}))
    referee_end.send(
        MessageEnvelope(name="setup", arguments={"width": 2, "height": 2, "fleet-spec": {"CARRIER": 1}})
    )
    referee_end.send(MessageEnvelope(name="win", arguments={"win": False, "reason": "forfeit"}))
    dealer.player.placement_max_attempts = 20

    assert dealer.run() is GameResult.LOSE
    assert referee_end.receive().name == "win"
