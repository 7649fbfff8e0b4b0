"""Remote player adapter with a deadline on every reply."""

from __future__ import annotations

import concurrent.futures
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from salvo.config import DEFAULT_RESPONSE_TIMEOUT
from salvo.engine.fleet import Fleet, FleetSpec
from salvo.engine.player import GameResult, Player
from salvo.engine.ship import Coordinate, Orientation, Ship
from salvo.telemetry import get_meter, get_tracer

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
tracer = get_tracer("salvo.net.proxy")
meter = get_meter("salvo.net.proxy")

EXCHANGE_COUNTER = meter.create_counter(
    "salvo_remote_exchanges",
    unit="1",
    description="Request/response round trips with a remote player, by outcome",
)

SENTINEL_SHOT = Coordinate(-1, -1)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def sentinel_volley() -> list[Coordinate]:
    return [SENTINEL_SHOT]


def sentinel_fleet() -> Fleet:
    """A single zero-cell ship parked off the grid."""
    return [Ship(-1, SENTINEL_SHOT, Orientation.VERTICAL)]


class ExchangeStatus(Enum):
    REPLIED = "replied"
    TIMED_OUT = "timed_out"
    MISMATCHED = "mismatched"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ExchangeResult(Generic[PayloadT]):
    """Outcome of one round trip. ``payload`` is set only when REPLIED."""

    status: ExchangeStatus
    payload: PayloadT | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ExchangeStatus.REPLIED


class ProxyPlayer(Player):
    """Presents a player on the far end of a :class:`MessageChannel` as a local one.

    Each call sends one named message and waits at most ``response_timeout``
    seconds for a reply carrying the same name. Silence, a different name or
    an unreadable payload all yield a sentinel instead of an exception, so the
    referee sees a forfeit rather than a crash.

    The blocking receive runs on a single worker thread, so at most one read
    is ever outstanding on the channel. When a call times out its receive is
    left running and the request is counted as overdue. Later calls drop one
    inbound message per overdue request before accepting a reply, whenever
    the late answer shows up.
    """

    def __init__(
        self,
        channel: MessageChannel,
        name: str = "remote",
        response_timeout: float = DEFAULT_RESPONSE_TIMEOUT,
    ) -> None:
        self._channel = channel
        self._name = name
        self.response_timeout = response_timeout
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"salvo-recv-{name}"
        )
        self._pending: concurrent.futures.Future[MessageEnvelope | None] | None = None
        self._overdue = 0

    @property
    def name(self) -> str:
        return self._name

    def setup(self, height: int, width: int, spec: FleetSpec) -> Fleet:
        request = SetupPayload.create(height, width, dict(spec))
        result = self.exchange(MessageName.SETUP, request, FleetPayload)
        if result.ok and result.payload is not None:
            return result.payload.to_fleet()
        return sentinel_fleet()

    def salvo(self, shots: list[Coordinate]) -> list[Coordinate]:
        request = VolleyPayload.from_coordinates(shots)
        result = self.exchange(MessageName.TAKE_TURN, request, VolleyPayload)
        if result.ok and result.payload is not None:
            return result.payload.to_coordinates()
        return sentinel_volley()

    def hits(self, shots: list[Coordinate]) -> None:
        self.exchange(MessageName.HIT, VolleyPayload.from_coordinates(shots))

    def end_game(self, result: GameResult, reason: str) -> None:
        notice = WinPayload(win=result is GameResult.WIN, reason=reason, result=result)
        try:
            self.exchange(MessageName.WIN, notice)
        finally:
            self.close()

    def close(self) -> None:
        self._channel.close()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._pending = None

    def exchange(
        self,
        name: MessageName,
        request: BaseModel,
        response_model: type[PayloadT] | None = None,
    ) -> ExchangeResult[PayloadT]:
        """Send ``request`` under ``name`` and classify the reply.

        Send failures propagate. With ``response_model`` the reply arguments
        are validated into that model; without one any same-named reply counts.
        """
        with tracer.start_as_current_span("proxy.exchange") as span:
            span.set_attribute("message", name.value)
            span.set_attribute("player", self._name)
            self._channel.send(MessageEnvelope.build(name, request))
            arrived, reply = self._await_reply()
            if not arrived:
                # The peer may still answer this request; that answer is not ours.
                self._overdue += 1
            result = self._classify(name, arrived, reply, response_model)
            span.set_attribute("status", result.status.value)
            EXCHANGE_COUNTER.add(1, attributes={"message": name.value, "status": result.status.value})
            if not result.ok:
                logger.warning(
                    f"exchange_{result.status.value}",
                    extra={"player": self._name, "message_name": name.value, "detail": result.detail},
                )
            return result

    def _classify(
        self,
        name: MessageName,
        arrived: bool,
        reply: MessageEnvelope | None,
        response_model: type[PayloadT] | None,
    ) -> ExchangeResult[PayloadT]:
        if not arrived:
            return ExchangeResult(ExchangeStatus.TIMED_OUT, detail=f"no reply within {self.response_timeout}s")
        if reply is None:
            return ExchangeResult(ExchangeStatus.MALFORMED, detail="reply is not a message envelope")
        if reply.name != name.value:
            return ExchangeResult(
                ExchangeStatus.MISMATCHED, detail=f"expected {name.value!r}, got {reply.name!r}"
            )
        if response_model is None:
            return ExchangeResult(ExchangeStatus.REPLIED)
        try:
            payload = response_model.model_validate(reply.arguments)
        except ValidationError as exc:
            return ExchangeResult(ExchangeStatus.MALFORMED, detail=str(exc))
        return ExchangeResult(ExchangeStatus.REPLIED, payload)

    def _await_reply(self) -> tuple[bool, MessageEnvelope | None]:
        """Wait up to ``response_timeout`` for the reply to the request just sent.

        Returns ``(arrived, envelope)``. ``envelope`` is None when a line
        arrived that was not a valid envelope. Replies still owed to earlier
        timed-out requests are read and dropped first, inside the same deadline.
        """
        deadline = time.monotonic() + self.response_timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False, None
            if self._pending is None:
                try:
                    self._pending = self._executor.submit(self._channel.receive)
                except RuntimeError:
                    # Executor already shut down by close().
                    return False, None
            try:
                reply = self._pending.result(timeout=remaining)
            except concurrent.futures.TimeoutError:
                return False, None
            except Exception as exc:
                logger.warning("receive_failed", extra={"player": self._name, "error": repr(exc)})
                self._pending = None
                return False, None
            self._pending = None
            if reply is None and not self._channel.is_open:
                return False, None
            if self._overdue > 0:
                self._overdue -= 1
                logger.info(
                    "late_reply_discarded",
                    extra={"player": self._name, "message_name": reply.name if reply else "unreadable"},
                )
                continue
            return True, reply
