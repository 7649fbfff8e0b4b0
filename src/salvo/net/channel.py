"""Bidirectional message channels carrying :class:`MessageEnvelope` objects.

Envelopes travel as UTF-8 JSON, one object per line. ``receive`` blocks until
a message arrives and returns ``None`` instead of raising when the peer has
gone away or sent something that is not an envelope.
"""

from __future__ import annotations

import json
import logging
import queue
import socket
import threading
from typing import Protocol

from pydantic import ValidationError

from .messages import MessageEnvelope

logger = logging.getLogger(__name__)


class MessageChannel(Protocol):
    """What the remote adapter needs from a transport."""

    @property
    def is_open(self) -> bool:
        ...

    def send(self, envelope: MessageEnvelope) -> None:
        ...

    def receive(self) -> MessageEnvelope | None:
        ...

    def close(self) -> None:
        ...


def decode_envelope(line: str) -> MessageEnvelope | None:
    """Parse one JSON line, returning None when it is not a valid envelope."""
    try:
        return MessageEnvelope.model_validate(json.loads(line))
    except json.JSONDecodeError as exc:
        logger.warning("channel_invalid_json", extra={"error": str(exc)})
    except ValidationError as exc:
        logger.warning("channel_invalid_envelope", extra={"error": str(exc)})
    return None


def encode_envelope(envelope: MessageEnvelope) -> str:
    return json.dumps(envelope.to_wire(), separators=(",", ":")) + "\n"


class JsonSocketChannel:
    """Newline-delimited JSON over a connected stream socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._reader = sock.makefile("r", encoding="utf-8", newline="\n")
        self._writer = sock.makefile("w", encoding="utf-8", newline="\n")
        self._send_lock = threading.Lock()
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, envelope: MessageEnvelope) -> None:
        """Write one envelope. Socket errors propagate to the caller."""
        data = encode_envelope(envelope)
        with self._send_lock:
            self._writer.write(data)
            self._writer.flush()
        logger.debug("channel_sent", extra={"message_name": envelope.name})

    def receive(self) -> MessageEnvelope | None:
        if not self._open:
            return None
        try:
            line = self._reader.readline()
        except (OSError, ValueError) as exc:
            # ValueError: the file object was closed underneath a blocked read.
            logger.debug("channel_read_failed", extra={"error": str(exc)})
            self._open = False
            return None
        if not line:
            logger.info("channel_closed_by_peer")
            self._open = False
            return None
        envelope = decode_envelope(line)
        if envelope is not None:
            logger.debug("channel_received", extra={"message_name": envelope.name})
        return envelope

    def close(self) -> None:
        if not self._open and self._sock.fileno() == -1:
            return
        self._open = False
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # already disconnected
        for stream in (self._writer, self._reader):
            try:
                stream.close()
            except OSError as exc:
                logger.debug("channel_close_failed", extra={"error": str(exc)})
        self._sock.close()


_CLOSED = object()


class QueueChannel:
    """One end of an in-process channel pair built on :class:`queue.Queue`.

    Envelopes are passed through the JSON encoding so that both ends see
    exactly what a socket peer would.
    """

    def __init__(self, inbox: queue.Queue, outbox: queue.Queue) -> None:
        self._inbox = inbox
        self._outbox = outbox
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, envelope: MessageEnvelope) -> None:
        if not self._open:
            raise ConnectionError("Channel is closed.")
        self._outbox.put(encode_envelope(envelope))

    def send_raw(self, line: str) -> None:
        """Push an arbitrary line, e.g. to simulate a misbehaving peer."""
        self._outbox.put(line)

    def receive(self) -> MessageEnvelope | None:
        if not self._open:
            return None
        item = self._inbox.get()
        if item is _CLOSED:
            self._open = False
            return None
        return decode_envelope(item)

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        self._outbox.put(_CLOSED)
        # Wake a reader blocked on our own inbox.
        self._inbox.put(_CLOSED)


def channel_pair() -> tuple[QueueChannel, QueueChannel]:
    """Return two connected in-process channel ends."""
    left: queue.Queue = queue.Queue()
    right: queue.Queue = queue.Queue()
    return QueueChannel(left, right), QueueChannel(right, left)
