"""CoinEx v2 adapter.

CoinEx specifics:
- REST responses are wrapped in {"code", "data", "message"}; code 0 is success
- Signing is Variant A over the path including its query, millisecond timestamps
- Websocket frames are gzip compressed
- Commands are {"id", "method", "params"}; pushes are {"method", "data", "id"}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from spot_connector.domain.errors import (
    ApplicationError,
    AuthenticationError,
    BodyError,
)
from spot_connector.domain.events import EventType, OrderBookUpdate
from spot_connector.domain.types import Credentials, PriceLevel
from spot_connector.exchange.base import (
    Command,
    ExchangeAdapter,
    ExchangeType,
    InboundFrame,
    unix_millis,
)
from spot_connector.exchange.codec import gzip_decode
from spot_connector.exchange.signing import (
    SignedRequest,
    sign_hmac_sha256,
    sign_sha256,
)

logger = logging.getLogger(__name__)

COINEX_HTTP_URL = "https://api.coinex.com"
COINEX_WS_URL = "wss://socket.coinex.com"

METHOD_PING = "server.ping"
METHOD_SIGN = "server.sign"
METHOD_DEPTH_SUBSCRIBE = "depth.subscribe"
METHOD_DEPTH_UNSUBSCRIBE = "depth.unsubscribe"
METHOD_DEPTH_UPDATE = "depth.update"


class CoinExAdapter(ExchangeAdapter):
    """Adapter for the CoinEx v2 spot API."""

    exchange_type = ExchangeType.COINEX
    default_http_url = COINEX_HTTP_URL
    default_ws_url = COINEX_WS_URL
    ws_path = "/v2/spot"
    keepalive_interval = 3.0
    default_interval = "0"

    def timestamp(self) -> int:
        return unix_millis()

    def sign(self, request: SignedRequest, secret: str) -> str:
        return sign_sha256(
            request.method,
            request.path_with_query,
            request.body,
            request.timestamp,
            secret,
        )

    def auth_headers(
        self, credentials: Credentials, digest: str, timestamp: int
    ) -> dict[str, str]:
        return {
            "X-COINEX-KEY": credentials.key,
            "X-COINEX-SIGN": digest,
            "X-COINEX-TIMESTAMP": str(timestamp),
        }

    def unwrap_response(self, raw: bytes) -> Any:
        """Unwrap {"code", "data", "message"}.

        Raises:
            BodyError: If the body is not JSON or has no integer code
            ApplicationError: If code is non-zero
        """
        try:
            reply = json.loads(raw)
        except ValueError as e:
            raise BodyError(raw) from e

        if not isinstance(reply, dict) or not isinstance(reply.get("code"), int):
            raise BodyError(raw)

        if reply["code"] != 0:
            raise ApplicationError(reply["code"], str(reply.get("message", "")))

        return reply.get("data")

    def decompress(self, data: bytes) -> bytes:
        return gzip_decode(data)

    def encode_command(self, command: Command, command_id: int) -> str:
        return json.dumps(
            {
                "id": command_id,
                "method": command.name,
                "params": command.params if command.params is not None else {},
            }
        )

    def parse_envelope(self, data: bytes) -> InboundFrame:
        raw = json.loads(data)
        if not isinstance(raw, dict):
            raise ValueError("Frame is not a JSON object")

        return InboundFrame(
            name=raw.get("method") or "",
            payload=raw.get("data"),
            id=raw.get("id"),
            code=raw.get("code"),
            message=raw.get("message"),
        )

    def parse_event(self, frame: InboundFrame) -> OrderBookUpdate | None:
        if frame.name == METHOD_DEPTH_UPDATE:
            return self.parse_depth(frame.payload)
        return None

    def parse_depth(self, data: dict[str, Any]) -> OrderBookUpdate:
        """Convert a depth payload to an OrderBookUpdate.

        The same shape is returned by the REST depth endpoint.

        Args:
            data: {"market", "is_full", "depth": {"asks", "bids", ...}}

        Returns:
            OrderBookUpdate event
        """
        depth = data["depth"]
        last = depth.get("last")

        return OrderBookUpdate(
            event_type=EventType.ORDER_BOOK,
            timestamp=datetime.now(UTC),
            pair=data["market"],
            asks=[PriceLevel.from_pair(level) for level in depth.get("asks") or []],
            bids=[PriceLevel.from_pair(level) for level in depth.get("bids") or []],
            is_full=bool(data.get("is_full", False)),
            checksum=depth.get("checksum"),
            last=last if last not in (None, "") else None,
            updated_at=depth.get("updated_at"),
        )

    def ping_command(self) -> Command:
        return Command(name=METHOD_PING, params={})

    def order_book_subscription(
        self,
        pairs: Sequence[str],
        depth: int,
        interval: str,
        full: bool,
    ) -> list[Command]:
        market_list = [[pair, depth, interval, full] for pair in pairs]
        return [
            Command(name=METHOD_DEPTH_SUBSCRIBE, params={"market_list": market_list})
        ]

    def order_book_unsubscription(
        self,
        pairs: Sequence[str],
        depth: int,
        interval: str,
        full: bool,
    ) -> list[Command]:
        return [
            Command(
                name=METHOD_DEPTH_UNSUBSCRIBE, params={"market_list": list(pairs)}
            )
        ]

    def login_command(self, credentials: Credentials) -> Command:
        """Build the server.sign command.

        The signed string is HMAC-SHA256 of the millisecond timestamp.
        """
        timestamp = self.timestamp()
        return Command(
            name=METHOD_SIGN,
            params={
                "access_id": credentials.key,
                "signed_str": sign_hmac_sha256(str(timestamp), credentials.secret),
                "timestamp": timestamp,
            },
        )

    def check_login_reply(self, frame: InboundFrame) -> None:
        if frame.code != 0:
            logger.error(f"CoinEx login rejected: {frame.code} {frame.message}")
            raise AuthenticationError(
                f"Login rejected: code={frame.code} message={frame.message}",
                context={"code": frame.code},
            )
