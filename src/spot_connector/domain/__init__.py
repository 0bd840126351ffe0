"""Domain models for the connector.

This package contains the venue-agnostic types: credentials, order book
events and the error hierarchy.
"""

from spot_connector.domain.errors import (
    ApplicationError,
    AuthenticationError,
    BodyError,
    ConfigurationError,
    ConnectorError,
    FrameError,
    SessionError,
    StatusError,
    TransportError,
)
from spot_connector.domain.events import Event, EventType, OrderBookUpdate
from spot_connector.domain.types import Credentials, PriceLevel

__all__ = [
    # Types
    "Credentials",
    "PriceLevel",
    # Events
    "Event",
    "EventType",
    "OrderBookUpdate",
    # Errors
    "ApplicationError",
    "AuthenticationError",
    "BodyError",
    "ConfigurationError",
    "ConnectorError",
    "FrameError",
    "SessionError",
    "StatusError",
    "TransportError",
]
