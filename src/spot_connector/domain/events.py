"""Domain event types.

Events are decoded from streaming frames and handed to the caller one at a
time, in the order the frames arrived. All events are immutable.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic.dataclasses import dataclass

from spot_connector.domain.types import PriceLevel


class EventType(str, Enum):
    """Types of events produced by a stream session."""

    ORDER_BOOK = "order_book"


@dataclass(frozen=True)
class Event:
    """Base class for all events.

    All events have a type and the local time they were decoded.
    """

    event_type: EventType
    timestamp: datetime


@dataclass(frozen=True)
class OrderBookUpdate(Event):
    """Order book push for one pair.

    Either a full snapshot that replaces the caller's view of the book, or
    an incremental update describing changes since the previous push.
    Asks and bids keep the order the venue sent them in.
    """

    pair: str
    asks: list[PriceLevel]
    bids: list[PriceLevel]
    is_full: bool
    checksum: int | None = None
    last: Decimal | None = None
    updated_at: int | None = None

    def best_bid(self) -> PriceLevel | None:
        """Return the highest bid, or None if no bids."""
        if not self.bids:
            return None
        return max(self.bids, key=lambda x: x.price)

    def best_ask(self) -> PriceLevel | None:
        """Return the lowest ask, or None if no asks."""
        if not self.asks:
            return None
        return min(self.asks, key=lambda x: x.price)
