"""Gate v4 adapter.

Gate specifics:
- REST success responses are bare JSON; failures are {"label", "message"}
- Signing is Variant B (HMAC-SHA512) with second timestamps
- Websocket frames are plain text JSON
- Commands are {"time", "id", "channel", "event", "payload"}; pushes are
  {"time", "channel", "event", "result"} and only event "update" carries data
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from spot_connector.domain.errors import ApplicationError, BodyError
from spot_connector.domain.events import EventType, OrderBookUpdate
from spot_connector.domain.types import Credentials, PriceLevel
from spot_connector.exchange.base import (
    Command,
    ExchangeAdapter,
    ExchangeType,
    InboundFrame,
    unix_seconds,
)
from spot_connector.exchange.signing import SignedRequest, sign_hmac_sha512

GATE_HTTP_URL = "https://api.gateio.ws"
GATE_WS_URL = "wss://api.gateio.ws"

CHANNEL_PING = "spot.ping"
CHANNEL_PONG = "spot.pong"
CHANNEL_ORDER_BOOK = "spot.order_book"
CHANNEL_ORDER_BOOK_UPDATE = "spot.order_book_update"

EVENT_SUBSCRIBE = "subscribe"
EVENT_UNSUBSCRIBE = "unsubscribe"
EVENT_UPDATE = "update"


class GateAdapter(ExchangeAdapter):
    """Adapter for the Gate v4 spot API."""

    exchange_type = ExchangeType.GATE
    default_http_url = GATE_HTTP_URL
    default_ws_url = GATE_WS_URL
    ws_path = "/ws/v4/"
    keepalive_interval = 10.0
    default_interval = "100ms"

    def timestamp(self) -> int:
        return unix_seconds()

    def sign(self, request: SignedRequest, secret: str) -> str:
        return sign_hmac_sha512(
            request.method,
            request.path,
            request.query_string,
            request.body,
            request.timestamp,
            secret,
        )

    def auth_headers(
        self, credentials: Credentials, digest: str, timestamp: int
    ) -> dict[str, str]:
        return {
            "KEY": credentials.key,
            "SIGN": digest,
            "Timestamp": str(timestamp),
        }

    def unwrap_response(self, raw: bytes) -> Any:
        """Parse a bare JSON body, mapping {"label", ...} to an error.

        Raises:
            BodyError: If the body is not JSON
            ApplicationError: If the body carries an error label
        """
        try:
            reply = json.loads(raw)
        except ValueError as e:
            raise BodyError(raw) from e

        if isinstance(reply, dict) and reply.get("label"):
            raise ApplicationError(str(reply["label"]), str(reply.get("message", "")))

        return reply

    def encode_command(self, command: Command, command_id: int) -> str:
        message: dict[str, Any] = {
            "time": unix_seconds(),
            "id": command_id,
            "channel": command.name,
        }
        if command.params:
            message.update(command.params)
        return json.dumps(message)

    def parse_envelope(self, data: bytes) -> InboundFrame:
        raw = json.loads(data)
        if not isinstance(raw, dict):
            raise ValueError("Frame is not a JSON object")

        error = raw.get("error")
        if not isinstance(error, dict):
            error = {}
        return InboundFrame(
            name=raw.get("channel") or "",
            payload=raw.get("result"),
            event=raw.get("event"),
            id=raw.get("id"),
            code=error.get("code"),
            message=error.get("message"),
        )

    def parse_event(self, frame: InboundFrame) -> OrderBookUpdate | None:
        if frame.event != EVENT_UPDATE:
            return None

        if frame.name == CHANNEL_ORDER_BOOK:
            return self.parse_order_book(frame.payload)
        if frame.name == CHANNEL_ORDER_BOOK_UPDATE:
            return self.parse_order_book_update(frame.payload)
        return None

    def parse_order_book(self, data: dict[str, Any]) -> OrderBookUpdate:
        """Convert a limited-level snapshot push.

        Args:
            data: {"t", "lastUpdateId", "s", "bids", "asks"}

        Returns:
            OrderBookUpdate flagged as a full snapshot
        """
        return OrderBookUpdate(
            event_type=EventType.ORDER_BOOK,
            timestamp=datetime.now(UTC),
            pair=data["s"],
            asks=[PriceLevel.from_pair(level) for level in data.get("asks") or []],
            bids=[PriceLevel.from_pair(level) for level in data.get("bids") or []],
            is_full=True,
            updated_at=data.get("t"),
        )

    def parse_order_book_update(self, data: dict[str, Any]) -> OrderBookUpdate:
        """Convert an incremental push.

        Args:
            data: {"t", "s", "U", "u", "b", "a", "full"?}

        Returns:
            OrderBookUpdate, full only when the venue flags it
        """
        return OrderBookUpdate(
            event_type=EventType.ORDER_BOOK,
            timestamp=datetime.now(UTC),
            pair=data["s"],
            asks=[PriceLevel.from_pair(level) for level in data.get("a") or []],
            bids=[PriceLevel.from_pair(level) for level in data.get("b") or []],
            is_full=bool(data.get("full", False)),
            updated_at=data.get("t"),
        )

    def ping_command(self) -> Command:
        return Command(name=CHANNEL_PING)

    def _order_book_commands(
        self,
        event: str,
        pairs: Sequence[str],
        depth: int,
        interval: str,
        full: bool,
    ) -> list[Command]:
        # spot.order_book pushes limited-level snapshots; spot.order_book_update
        # pushes changes and has no depth parameter.
        commands = []
        for pair in pairs:
            if full:
                channel = CHANNEL_ORDER_BOOK
                payload = [pair, str(depth), interval]
            else:
                channel = CHANNEL_ORDER_BOOK_UPDATE
                payload = [pair, interval]
            commands.append(
                Command(name=channel, params={"event": event, "payload": payload})
            )
        return commands

    def order_book_subscription(
        self,
        pairs: Sequence[str],
        depth: int,
        interval: str,
        full: bool,
    ) -> list[Command]:
        return self._order_book_commands(EVENT_SUBSCRIBE, pairs, depth, interval, full)

    def order_book_unsubscription(
        self,
        pairs: Sequence[str],
        depth: int,
        interval: str,
        full: bool,
    ) -> list[Command]:
        return self._order_book_commands(
            EVENT_UNSUBSCRIBE, pairs, depth, interval, full
        )
