"""Command-line driver: host a match, join one, or watch two bots play locally."""

from __future__ import annotations

import argparse
import logging
import socket
from typing import Sequence

from salvo.ai.random_player import RandomPlayer
from salvo.config import GameConfig, parse_fleet_spec
from salvo.engine.game import Match, MatchOutcome
from salvo.net.channel import JsonSocketChannel
from salvo.net.dealer import ProxyDealer
from salvo.net.proxy import ProxyPlayer
from salvo.telemetry import configure_console_logging, init_telemetry

logger = logging.getLogger(__name__)


def _config_from_args(args: argparse.Namespace) -> GameConfig:
    overrides = {
        name: value
        for name, value in (
            ("host", args.host),
            ("port", args.port),
            ("height", args.height),
            ("width", args.width),
            ("response_timeout", args.timeout),
        )
        if value is not None
    }
    if args.fleet:
        overrides["fleet_spec"] = parse_fleet_spec(args.fleet)
    return GameConfig.from_env(**overrides)


def _describe(outcome: MatchOutcome, match: Match) -> str:
    if outcome.winner is None:
        headline = "Draw."
    else:
        headline = f"{match.players[outcome.winner].name} wins."
    return f"{headline} {outcome.reason} ({outcome.rounds} rounds)"


def run_local(config: GameConfig, seed: int | None) -> MatchOutcome:
    first_seed = seed
    second_seed = None if seed is None else seed + 1
    match = Match(
        RandomPlayer("bot-1", rng_seed=first_seed, placement_max_attempts=config.placement_max_attempts),
        RandomPlayer("bot-2", rng_seed=second_seed, placement_max_attempts=config.placement_max_attempts),
        config.height,
        config.width,
        config.fleet_spec,
        max_rounds=config.round_limit,
    )
    outcome = match.play()
    print(_describe(outcome, match))
    return outcome


def run_host(config: GameConfig, seed: int | None) -> MatchOutcome:
    with socket.create_server((config.host, config.port)) as server:
        print(f"Waiting for an opponent on {config.host}:{config.port} ...")
        conn, address = server.accept()
    logger.info("opponent_connected", extra={"address": f"{address[0]}:{address[1]}"})
    remote = ProxyPlayer(
        JsonSocketChannel(conn),
        name=f"remote@{address[0]}",
        response_timeout=config.response_timeout,
    )
    local = RandomPlayer("host-bot", rng_seed=seed, placement_max_attempts=config.placement_max_attempts)
    match = Match(local, remote, config.height, config.width, config.fleet_spec, max_rounds=config.round_limit)
    try:
        outcome = match.play()
    finally:
        remote.close()
    print(_describe(outcome, match))
    return outcome


def run_join(config: GameConfig, seed: int | None) -> None:
    sock = socket.create_connection((config.host, config.port))
    channel = JsonSocketChannel(sock)
    player = RandomPlayer("guest-bot", rng_seed=seed, placement_max_attempts=config.placement_max_attempts)
    try:
        result = ProxyDealer(channel, player).run()
    finally:
        channel.close()
    print(f"Game over: {result.value if result else 'connection closed'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="salvo", description="Play Salvo between autonomous players.")
    parser.add_argument("--log-level", default="WARNING", help="Root log level (default: WARNING).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("local", "Run a bot-vs-bot match in this process."),
        ("host", "Wait for a remote player and referee a match against a local bot."),
        ("join", "Connect to a host and play as an autonomous bot."),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("--seed", type=int, default=None, help="Optional RNG seed for reproducibility.")
        sub.add_argument("--host", default=None)
        sub.add_argument("--port", type=int, default=None)
        sub.add_argument("--height", type=int, default=None)
        sub.add_argument("--width", type=int, default=None)
        sub.add_argument("--fleet", default=None, help="Fleet spec such as CARRIER=1,SUBMARINE=2.")
        sub.add_argument("--timeout", type=float, default=None, help="Seconds to wait for each reply.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_console_logging(getattr(logging, str(args.log_level).upper(), logging.WARNING))
    init_telemetry()
    config = _config_from_args(args)
    if args.command == "local":
        run_local(config, args.seed)
    elif args.command == "host":
        run_host(config, args.seed)
    else:
        run_join(config, args.seed)


if __name__ == "__main__":
    main()
