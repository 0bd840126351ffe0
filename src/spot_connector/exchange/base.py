"""Exchange adapter abstractions.

An adapter supplies everything that differs between venues: base URLs,
timestamp units, the signing variant, the REST response envelope, and the
websocket command and frame envelopes. The REST transport, stream session
and frame codec only ever call through this interface.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import Any

from pydantic.dataclasses import dataclass

from spot_connector.domain.events import OrderBookUpdate
from spot_connector.domain.types import Credentials
from spot_connector.exchange.signing import (
    QueryParams,
    SignedRequest,
    canonicalize_query,
)


class ExchangeType(str, Enum):
    """Supported venues."""

    COINEX = "coinex"
    GATE = "gate"


@dataclass(frozen=True)
class Command:
    """An outbound websocket command before envelope encoding.

    For CoinEx the name is a method and params the method params. For Gate
    the name is a channel and params holds the event and payload fields.
    """

    name: str
    params: dict[str, Any] | None = None


@dataclass(frozen=True)
class InboundFrame:
    """A decoded frame envelope.

    The payload is left as parsed JSON; only the adapter knows how to turn
    it into a domain event. Event is the Gate push kind ("update",
    "subscribe"). Command replies carry code and message.
    """

    name: str
    payload: Any = None
    event: str | None = None
    id: int | str | None = None
    code: int | str | None = None
    message: str | None = None


class ExchangeAdapter(ABC):
    """Per-venue constants and pure functions.

    Implementations are stateless apart from the configured URLs, so one
    adapter may be shared by any number of transports and sessions.
    """

    exchange_type: ExchangeType
    default_http_url: str
    default_ws_url: str
    ws_path: str
    keepalive_interval: float
    """Default seconds between liveness commands."""
    default_interval: str
    """Default order book merge or push interval."""

    def __init__(self, http_url: str | None = None, ws_url: str | None = None) -> None:
        """Initialize with optional URL overrides.

        Args:
            http_url: REST base URL (defaults to the venue's production URL)
            ws_url: Websocket base URL, without the venue path suffix
        """
        self._http_url = (http_url or self.default_http_url).rstrip("/")
        self._ws_url = (ws_url or self.default_ws_url).rstrip("/")

    @property
    def name(self) -> str:
        """Return the venue name."""
        return self.exchange_type.value

    @property
    def http_url(self) -> str:
        """Return the REST base URL."""
        return self._http_url

    @property
    def stream_url(self) -> str:
        """Return the full websocket endpoint."""
        return f"{self._ws_url}{self.ws_path}"

    # Signing

    def canonicalize_query(self, query: QueryParams | None) -> str:
        """Return the canonical query encoding used for URLs and signing."""
        return canonicalize_query(query)

    @abstractmethod
    def timestamp(self) -> int:
        """Return the current time in the venue's signing unit."""
        ...

    @abstractmethod
    def sign(self, request: SignedRequest, secret: str) -> str:
        """Compute the digest for a request.

        Args:
            request: The request to sign
            secret: API secret

        Returns:
            Lowercase hex digest
        """
        ...

    @abstractmethod
    def auth_headers(
        self, credentials: Credentials, digest: str, timestamp: int
    ) -> dict[str, str]:
        """Return the venue authentication headers.

        Args:
            credentials: API credentials (only the key is sent)
            digest: Digest computed by sign()
            timestamp: Timestamp that was signed

        Returns:
            Header name to value
        """
        ...

    # REST

    @abstractmethod
    def unwrap_response(self, raw: bytes) -> Any:
        """Parse a 2xx response body and return its data.

        Raises:
            BodyError: If the body is not the expected envelope
            ApplicationError: If the envelope reports a failure
        """
        ...

    # Streaming

    def decompress(self, data: bytes) -> bytes:
        """Undo transport-level frame compression.

        Venues that send plain frames pass them through.
        """
        return data

    @abstractmethod
    def encode_command(self, command: Command, command_id: int) -> str:
        """Encode a command as a single JSON text frame."""
        ...

    @abstractmethod
    def parse_envelope(self, data: bytes) -> InboundFrame:
        """Parse the outer JSON envelope of a decompressed frame.

        Raises:
            ValueError: If the frame is not a JSON object
        """
        ...

    @abstractmethod
    def parse_event(self, frame: InboundFrame) -> OrderBookUpdate | None:
        """Turn a frame into a domain event.

        Returns:
            The event, or None for frames with no event meaning

        Raises:
            ValueError, KeyError, TypeError: If an event payload is malformed
        """
        ...

    @abstractmethod
    def ping_command(self) -> Command:
        """Return the liveness command sent by the keepalive loop."""
        ...

    @abstractmethod
    def order_book_subscription(
        self,
        pairs: Sequence[str],
        depth: int,
        interval: str,
        full: bool,
    ) -> list[Command]:
        """Build the commands subscribing to order book pushes.

        Args:
            pairs: Pairs to subscribe (e.g., "BTCUSDT", "BTC_USDT")
            depth: Number of price levels
            interval: Price merge interval ("0" for none)
            full: Request full snapshots on every push where supported
        """
        ...

    @abstractmethod
    def order_book_unsubscription(
        self,
        pairs: Sequence[str],
        depth: int,
        interval: str,
        full: bool,
    ) -> list[Command]:
        """Build the commands cancelling a subscription made with the same args."""
        ...

    def login_command(self, credentials: Credentials) -> Command | None:
        """Return the handshake login command, or None if the venue has none."""
        return None

    def check_login_reply(self, frame: InboundFrame) -> None:
        """Validate the reply to the login command.

        Raises:
            AuthenticationError: If the venue rejected the login
        """
        return None


def unix_millis() -> int:
    """Return the current Unix time in milliseconds."""
    return int(time.time() * 1000)


def unix_seconds() -> int:
    """Return the current Unix time in seconds."""
    return int(time.time())
