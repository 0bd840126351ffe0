"""Venue connectivity.

This package contains the adapter abstraction, the signed REST transport,
the streaming session and the concrete CoinEx and Gate implementations.
"""

from spot_connector.exchange.base import (
    Command,
    ExchangeAdapter,
    ExchangeType,
    InboundFrame,
)
from spot_connector.exchange.codec import FrameCodec
from spot_connector.exchange.factory import create_adapter, register_adapter
from spot_connector.exchange.rest import RestResponse, RestTransport
from spot_connector.exchange.session import SessionState, StreamSession

__all__ = [
    "Command",
    "ExchangeAdapter",
    "ExchangeType",
    "FrameCodec",
    "InboundFrame",
    "RestResponse",
    "RestTransport",
    "SessionState",
    "StreamSession",
    "create_adapter",
    "register_adapter",
]
