"""Remote play: wire messages, channels, the proxy player and its dealer."""

from .channel import JsonSocketChannel, MessageChannel, QueueChannel, channel_pair
from .dealer import ProxyDealer
from .messages import MessageEnvelope, MessageName
from .proxy import ExchangeResult, ExchangeStatus, ProxyPlayer

__all__ = [
    "ExchangeResult",
    "ExchangeStatus",
    "JsonSocketChannel",
    "MessageChannel",
    "MessageEnvelope",
    "MessageName",
    "ProxyDealer",
    "ProxyPlayer",
    "QueueChannel",
    "channel_pair",
]
