"""Serve a local player to a remote referee over a message channel."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from salvo.engine.player import GameResult, Player

from .channel import MessageChannel
from .messages import (
    FleetPayload,
    MessageEnvelope,
    MessageName,
    SetupPayload,
    VolleyPayload,
    WinPayload,
)

logger = logging.getLogger(__name__)


class ProxyDealer:
    """Reads requests from ``channel``, runs them on ``player`` and replies.

    Replies reuse the request's message name. ``hit`` and ``win`` are
    acknowledged with empty arguments. A request the player cannot serve,
    such as a turn before setup, is logged and left unanswered. The loop
    ends after ``win`` or when the channel closes.
    """

    def __init__(self, channel: MessageChannel, player: Player) -> None:
        self.channel = channel
        self.player = player
        self.result: GameResult | None = None

    def run(self) -> GameResult | None:
        while self.channel.is_open:
            envelope = self.channel.receive()
            if envelope is None:
                continue
            try:
                finished = self.handle(envelope)
            except ValidationError as exc:
                logger.warning(
                    "dealer_malformed_request",
                    extra={"message_name": envelope.name, "error": str(exc)},
                )
                continue
            except (ValueError, RuntimeError) as exc:
                # No reply: the referee's deadline turns this into a forfeit.
                logger.error(
                    "dealer_player_failed",
                    extra={"message_name": envelope.name, "error": repr(exc)},
                )
                continue
            if finished:
                break
        logger.info("dealer_stopped", extra={"player": self.player.name, "result": self._result_name()})
        return self.result

    def handle(self, envelope: MessageEnvelope) -> bool:
        """Process one request; return True once the game is over."""
        if envelope.name == MessageName.SETUP.value:
            setup = SetupPayload.model_validate(envelope.arguments)
            fleet = self.player.setup(setup.height, setup.width, setup.ship_spec())
            self._reply(MessageName.SETUP, FleetPayload.from_fleet(fleet).to_arguments())
        elif envelope.name == MessageName.TAKE_TURN.value:
            incoming = VolleyPayload.model_validate(envelope.arguments)
            volley = self.player.salvo(incoming.to_coordinates())
            self._reply(MessageName.TAKE_TURN, VolleyPayload.from_coordinates(volley).to_arguments())
        elif envelope.name == MessageName.HIT.value:
            landed = VolleyPayload.model_validate(envelope.arguments)
            self.player.hits(landed.to_coordinates())
            self._reply(MessageName.HIT, {})
        elif envelope.name == MessageName.WIN.value:
            outcome = WinPayload.model_validate(envelope.arguments)
            self.result = outcome.game_result()
            self.player.end_game(self.result, outcome.reason)
            self._reply(MessageName.WIN, {})
            return True
        else:
            logger.warning("dealer_unknown_message", extra={"message_name": envelope.name})
        return False

    def _reply(self, name: MessageName, arguments: dict) -> None:
        self.channel.send(MessageEnvelope(name=name.value, arguments=arguments))

    def _result_name(self) -> str:
        return self.result.value if self.result is not None else "none"
