"""Tests for the message channels."""

import logging
import socket
import threading

import pytest

from salvo.net.channel import JsonSocketChannel, channel_pair, decode_envelope
from salvo.net.messages import MessageEnvelope, MessageName


@pytest.fixture
def socket_channels():
    left_sock, right_sock = socket.socketpair()
    left, right = JsonSocketChannel(left_sock), JsonSocketChannel(right_sock)
    yield left, right
    left.close()
    right.close()


def test_socket_channel_round_trip(socket_channels) -> None:
    left, right = socket_channels
    left.send(MessageEnvelope.build(MessageName.WIN, None))
    received = right.receive()
    assert received is not None
    assert received.name == "win"
    assert received.arguments == {}


def test_socket_channel_frames_one_json_object_per_line() -> None:
    left_sock, right_sock = socket.socketpair()
    channel = JsonSocketChannel(left_sock)
    channel.send(MessageEnvelope(name="hit", arguments={"coordinates": []}))
    data = right_sock.recv(4096)
    assert data == b'{"method-name":"hit","arguments":{"coordinates":[]}}\n'
    channel.close()
    right_sock.close()


def test_socket_channel_skips_garbage_but_stays_open(socket_channels) -> None:
    left, right = socket_channels
    left._writer.write("this is not json\n")
    left._writer.flush()
    assert right.receive() is None
    assert right.is_open

    left.send(MessageEnvelope(name="setup", arguments={}))
    received = right.receive()
    assert received is not None and received.name == "setup"


def test_socket_channel_reports_peer_closure(socket_channels) -> None:
    left, right = socket_channels
    left.close()
    assert right.receive() is None
    assert not right.is_open
    assert right.receive() is None


def test_closing_wakes_a_blocked_reader() -> None:
    left_sock, right_sock = socket.socketpair()
    channel = JsonSocketChannel(left_sock)
    results = []
    reader = threading.Thread(target=lambda: results.append(channel.receive()))
    reader.start()
    channel.close()
    reader.join(timeout=2.0)
    assert not reader.is_alive()
    assert results == [None]
    right_sock.close()


def test_queue_channel_pair() -> None:
    left, right = channel_pair()
    left.send(MessageEnvelope(name="take-turn", arguments={"coordinates": [{"x": 1, "y": 1}]}))
    received = right.receive()
    assert received is not None
    assert received.arguments == {"coordinates": [{"x": 1, "y": 1}]}

    right.send_raw("{broken\n")
    assert left.receive() is None

    left.close()
    assert right.receive() is None
    assert not right.is_open
    with pytest.raises(ConnectionError):
        left.send(MessageEnvelope(name="hit"))


def test_decode_envelope_requires_method_name() -> None:
    assert decode_envelope('{"arguments": {}}') is None
    assert decode_envelope('{"method-name": "win"}') is not None


def test_debug_logging_records_message_names(socket_channels, caplog: pytest.LogCaptureFixture) -> None:
    left, right = socket_channels
    with caplog.at_level(logging.DEBUG, logger="salvo.net.channel"):
        left.send(MessageEnvelope.build(MessageName.HIT, None))
        assert right.receive() is not None

    names = {
        record.getMessage(): record.message_name
        for record in caplog.records
        if record.name == "salvo.net.channel"
    }
    assert names == {"channel_sent": "hit", "channel_received": "hit"}
