"""Tests for the CoinEx adapter."""

import json
from decimal import Decimal
from unittest.mock import patch

import pytest

from spot_connector.domain.errors import (
    ApplicationError,
    AuthenticationError,
    BodyError,
)
from spot_connector.exchange.base import Command, ExchangeType, InboundFrame
from spot_connector.exchange.coinex.adapter import (
    COINEX_HTTP_URL,
    COINEX_WS_URL,
    CoinExAdapter,
)
from spot_connector.exchange.signing import SignedRequest, sign_hmac_sha256


class TestCoinExAdapterConfig:
    """Tests for CoinEx constants and URLs."""

    def test_defaults(self) -> None:
        """Production URLs are used by default."""
        adapter = CoinExAdapter()
        assert adapter.exchange_type == ExchangeType.COINEX
        assert adapter.name == "coinex"
        assert adapter.http_url == COINEX_HTTP_URL
        assert adapter.stream_url == f"{COINEX_WS_URL}/v2/spot"

    def test_url_overrides_strip_slash(self) -> None:
        """Overrides drop a trailing slash."""
        adapter = CoinExAdapter(http_url="http://localhost:8080/", ws_url="ws://localhost:9000/")
        assert adapter.http_url == "http://localhost:8080"
        assert adapter.stream_url == "ws://localhost:9000/v2/spot"

    def test_keepalive_defaults(self) -> None:
        """CoinEx pings every 3 seconds with no merge interval."""
        adapter = CoinExAdapter()
        assert adapter.keepalive_interval == 3.0
        assert adapter.default_interval == "0"

    def test_timestamp_milliseconds(self) -> None:
        """Timestamps are in milliseconds."""
        with patch("spot_connector.exchange.base.time.time", return_value=1700000000.5):
            assert CoinExAdapter().timestamp() == 1700000000500


class TestCoinExSigning:
    """Tests for CoinEx request signing."""

    def test_sign_includes_query(self, coinex_adapter) -> None:
        """The signed path carries the canonical query."""
        request = SignedRequest(
            method="GET",
            path="/v2/assets/deposit-address",
            timestamp=1700000000000,
            query=(("ccy", "USDT"), ("chain", "TRC20")),
        )
        assert coinex_adapter.sign(request, "test") == (
            "067197b3f20da238bbc188f4d4d9a7bf70198f76e36d1175e95742a9bd0b251c"
        )

    def test_sign_without_query(self, coinex_adapter) -> None:
        """No trailing '?' is signed for an empty query."""
        request = SignedRequest(method="GET", path="/v2/spot/market", timestamp=1700000000000)
        assert coinex_adapter.sign(request, "test") == (
            "2acbdcfd7a7a3642ca829435e281829a4b61e6249ee33427213ed841827116e8"
        )

    def test_auth_headers(self, coinex_adapter, credentials) -> None:
        """Headers use the X-COINEX names."""
        headers = coinex_adapter.auth_headers(credentials, "abc", 1700000000000)
        assert headers == {
            "X-COINEX-KEY": "test_key",
            "X-COINEX-SIGN": "abc",
            "X-COINEX-TIMESTAMP": "1700000000000",
        }


class TestCoinExUnwrap:
    """Tests for CoinEx response envelopes."""

    def test_success_returns_data(self, coinex_adapter) -> None:
        """code 0 returns data."""
        raw = b'{"code": 0, "data": [{"market": "BTCUSDT"}], "message": "OK"}'
        assert coinex_adapter.unwrap_response(raw) == [{"market": "BTCUSDT"}]

    def test_nonzero_code_raises(self, coinex_adapter) -> None:
        """A non-zero code is an ApplicationError with the server values."""
        raw = b'{"code": 3109, "data": {}, "message": "balance not enough"}'
        with pytest.raises(ApplicationError) as exc_info:
            coinex_adapter.unwrap_response(raw)
        assert exc_info.value.code == 3109
        assert exc_info.value.message == "balance not enough"

    def test_invalid_json_raises(self, coinex_adapter) -> None:
        """A non-JSON body is a BodyError with the raw bytes."""
        with pytest.raises(BodyError) as exc_info:
            coinex_adapter.unwrap_response(b"<html>")
        assert exc_info.value.body == b"<html>"

    def test_missing_code_raises(self, coinex_adapter) -> None:
        """A body without an integer code is a BodyError."""
        with pytest.raises(BodyError):
            coinex_adapter.unwrap_response(b'{"data": {}}')
        with pytest.raises(BodyError):
            coinex_adapter.unwrap_response(b"[]")


class TestCoinExCommands:
    """Tests for CoinEx websocket commands."""

    def test_encode_command(self, coinex_adapter) -> None:
        """Commands are {id, method, params}."""
        text = coinex_adapter.encode_command(Command(name="server.ping", params={}), 7)
        assert json.loads(text) == {"id": 7, "method": "server.ping", "params": {}}

    def test_encode_command_without_params(self, coinex_adapter) -> None:
        """Missing params encode as an empty object."""
        text = coinex_adapter.encode_command(Command(name="server.time"), 1)
        assert json.loads(text)["params"] == {}

    def test_ping_command(self, coinex_adapter) -> None:
        """Keepalive uses server.ping."""
        assert coinex_adapter.ping_command().name == "server.ping"

    def test_subscription(self, coinex_adapter) -> None:
        """One depth.subscribe covers all markets."""
        commands = coinex_adapter.order_book_subscription(["BTCUSDT", "ETHUSDT"], 20, "0", True)
        assert len(commands) == 1
        assert commands[0].name == "depth.subscribe"
        assert commands[0].params == {
            "market_list": [["BTCUSDT", 20, "0", True], ["ETHUSDT", 20, "0", True]]
        }

    def test_unsubscription(self, coinex_adapter) -> None:
        """depth.unsubscribe lists the markets only."""
        commands = coinex_adapter.order_book_unsubscription(["BTCUSDT"], 20, "0", True)
        assert commands[0].name == "depth.unsubscribe"
        assert commands[0].params == {"market_list": ["BTCUSDT"]}

    def test_login_command(self, coinex_adapter, credentials) -> None:
        """server.sign carries the HMAC of the millisecond timestamp."""
        with patch("spot_connector.exchange.base.time.time", return_value=1700000000.0):
            command = coinex_adapter.login_command(credentials)

        assert command.name == "server.sign"
        assert command.params == {
            "access_id": "test_key",
            "signed_str": sign_hmac_sha256("1700000000000", "test"),
            "timestamp": 1700000000000,
        }

    def test_login_reply_accepted(self, coinex_adapter) -> None:
        """code 0 is a successful login."""
        coinex_adapter.check_login_reply(InboundFrame(name="", id=1, code=0, message="OK"))

    def test_login_reply_rejected(self, coinex_adapter) -> None:
        """A non-zero code is an AuthenticationError."""
        frame = InboundFrame(name="", id=1, code=23, message="invalid signature")
        with pytest.raises(AuthenticationError, match="invalid signature"):
            coinex_adapter.check_login_reply(frame)


class TestCoinExEvents:
    """Tests for CoinEx event parsing."""

    def test_parse_envelope(self, coinex_adapter, coinex_depth_full) -> None:
        """Envelope exposes method, data and id."""
        frame = coinex_adapter.parse_envelope(json.dumps(coinex_depth_full).encode())
        assert frame.name == "depth.update"
        assert frame.payload["market"] == "BTCUSDT"
        assert frame.id is None

    def test_parse_reply_envelope(self, coinex_adapter) -> None:
        """Command replies have no method but carry id and code."""
        frame = coinex_adapter.parse_envelope(b'{"id": 3, "code": 0, "message": "OK", "data": {}}')
        assert frame.name == ""
        assert frame.id == 3
        assert frame.code == 0

    def test_parse_depth(self, coinex_adapter, coinex_depth_full) -> None:
        """depth.update becomes an OrderBookUpdate with every field."""
        event = coinex_adapter.parse_depth(coinex_depth_full["data"])

        assert event.pair == "BTCUSDT"
        assert event.is_full is True
        assert [level.price for level in event.asks] == [Decimal("30000.5"), Decimal("30001")]
        assert [level.size for level in event.bids] == [Decimal("0.8"), Decimal("2")]
        assert event.checksum == 123456789
        assert event.last == Decimal("30000")
        assert event.updated_at == 1700000000000

    def test_parse_depth_empty_last(self, coinex_adapter, coinex_depth_full) -> None:
        """An empty last price is None."""
        coinex_depth_full["data"]["depth"]["last"] = ""
        event = coinex_adapter.parse_depth(coinex_depth_full["data"])
        assert event.last is None

    def test_other_methods_ignored(self, coinex_adapter) -> None:
        """Frames other than depth.update carry no event."""
        assert coinex_adapter.parse_event(InboundFrame(name="state.update", payload={})) is None
