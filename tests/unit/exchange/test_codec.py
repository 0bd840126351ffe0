"""Tests for the frame codec."""

import gzip
import json
from decimal import Decimal

import pytest

from spot_connector.domain.errors import FrameError
from spot_connector.exchange.codec import FrameCodec, gzip_decode


class TestGzipDecode:
    """Tests for gzip_decode."""

    def test_roundtrip(self) -> None:
        """Decompresses a gzip member."""
        assert gzip_decode(gzip.compress(b"hello")) == b"hello"

    def test_not_gzip(self) -> None:
        """Raises OSError for non-gzip data."""
        with pytest.raises(OSError):
            gzip_decode(b"plain text")


class TestCoinExCodec:
    """Tests for decoding CoinEx frames."""

    def test_decodes_depth_update(
        self, coinex_adapter, gzip_json, coinex_depth_full
    ) -> None:
        """A gzip depth.update frame becomes an OrderBookUpdate."""
        codec = FrameCodec(coinex_adapter)
        event = codec.decode(gzip_json(coinex_depth_full))

        assert event is not None
        assert event.pair == "BTCUSDT"
        assert event.is_full is True
        assert event.asks[0].price == Decimal("30000.5")
        assert event.checksum == 123456789

    def test_frames_decode_in_order(
        self, coinex_adapter, gzip_json, coinex_depth_full, coinex_depth_incremental
    ) -> None:
        """Full then incremental frames decode independently, in order."""
        codec = FrameCodec(coinex_adapter)
        first = codec.decode(gzip_json(coinex_depth_full))
        second = codec.decode(gzip_json(coinex_depth_incremental))

        assert first is not None and first.is_full
        assert second is not None and not second.is_full
        assert second.last == Decimal("30000.1")

    def test_pong_dropped(self, coinex_adapter, gzip_json) -> None:
        """Command replies decode to None."""
        codec = FrameCodec(coinex_adapter)
        reply = {"id": 1, "code": 0, "data": {"result": "pong"}, "message": "OK"}
        assert codec.decode(gzip_json(reply)) is None

    def test_unknown_method_dropped(self, coinex_adapter, gzip_json) -> None:
        """Unknown push methods decode to None."""
        codec = FrameCodec(coinex_adapter)
        assert codec.decode(gzip_json({"method": "deals.update", "data": {}})) is None

    def test_not_gzip_raises(self, coinex_adapter) -> None:
        """Plain text where gzip is expected is a FrameError."""
        codec = FrameCodec(coinex_adapter)
        with pytest.raises(FrameError, match="decompress") as exc_info:
            codec.decode(b'{"method": "depth.update"}')
        assert exc_info.value.frame == b'{"method": "depth.update"}'

    def test_truncated_gzip_raises(self, coinex_adapter, gzip_json) -> None:
        """A truncated gzip member is a FrameError."""
        codec = FrameCodec(coinex_adapter)
        frame = gzip_json({"method": "depth.update", "data": {}})
        with pytest.raises(FrameError):
            codec.decode(frame[:-6])

    def test_invalid_json_raises(self, coinex_adapter) -> None:
        """Non-JSON after decompression is a FrameError."""
        codec = FrameCodec(coinex_adapter)
        with pytest.raises(FrameError, match="envelope"):
            codec.decode(gzip.compress(b"not json"))

    def test_non_object_raises(self, coinex_adapter) -> None:
        """A JSON array envelope is a FrameError."""
        codec = FrameCodec(coinex_adapter)
        with pytest.raises(FrameError, match="envelope"):
            codec.decode(gzip.compress(b"[1, 2]"))

    def test_malformed_payload_raises(self, coinex_adapter, gzip_json) -> None:
        """A depth.update without depth is a FrameError."""
        codec = FrameCodec(coinex_adapter)
        frame = gzip_json({"method": "depth.update", "data": {"market": "BTCUSDT"}})
        with pytest.raises(FrameError, match="depth.update"):
            codec.decode(frame)

    def test_bad_price_raises(self, coinex_adapter, gzip_json, coinex_depth_full) -> None:
        """A non-numeric price is a FrameError."""
        codec = FrameCodec(coinex_adapter)
        coinex_depth_full["data"]["depth"]["asks"] = [["abc", "1"]]
        with pytest.raises(FrameError):
            codec.decode(gzip_json(coinex_depth_full))


class TestGateCodec:
    """Tests for decoding Gate frames."""

    def test_decodes_text_frame(self, gate_adapter, gate_order_book_update) -> None:
        """Plain text frames decode without decompression."""
        codec = FrameCodec(gate_adapter)
        event = codec.decode(json.dumps(gate_order_book_update))

        assert event is not None
        assert event.pair == "BTC_USDT"
        assert event.is_full is False

    def test_decodes_bytes_frame(self, gate_adapter, gate_order_book_snapshot) -> None:
        """Binary frames are accepted too."""
        codec = FrameCodec(gate_adapter)
        event = codec.decode(json.dumps(gate_order_book_snapshot).encode())

        assert event is not None
        assert event.is_full is True

    def test_pong_dropped(self, gate_adapter) -> None:
        """spot.pong decodes to None."""
        codec = FrameCodec(gate_adapter)
        frame = {"time": 1700000000, "channel": "spot.pong", "event": "", "result": None}
        assert codec.decode(json.dumps(frame)) is None

    def test_subscribe_ack_dropped(self, gate_adapter) -> None:
        """Subscription acknowledgements decode to None."""
        codec = FrameCodec(gate_adapter)
        frame = {
            "time": 1700000000,
            "id": 2,
            "channel": "spot.order_book_update",
            "event": "subscribe",
            "result": {"status": "success"},
        }
        assert codec.decode(json.dumps(frame)) is None

    def test_invalid_json_raises(self, gate_adapter) -> None:
        """Non-JSON text is a FrameError."""
        codec = FrameCodec(gate_adapter)
        with pytest.raises(FrameError, match="envelope"):
            codec.decode("{not json")
