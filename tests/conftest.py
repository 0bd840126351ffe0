"""Pytest configuration and shared fixtures."""

import gzip
import json
from collections.abc import Callable
from typing import Any

import pytest

from spot_connector.domain.types import Credentials
from spot_connector.exchange.coinex.adapter import CoinExAdapter
from spot_connector.exchange.gate.adapter import GateAdapter


def _gzip_json(message: dict[str, Any]) -> bytes:
    return gzip.compress(json.dumps(message).encode("utf-8"))


@pytest.fixture
def gzip_json() -> Callable[[dict[str, Any]], bytes]:
    """Encoder producing frames the way CoinEx sends them."""
    return _gzip_json


@pytest.fixture
def credentials() -> Credentials:
    """Test API credentials."""
    return Credentials(key="test_key", secret="test")


@pytest.fixture
def coinex_adapter() -> CoinExAdapter:
    """CoinEx adapter pointed at placeholder hosts."""
    return CoinExAdapter(http_url="https://coinex.test", ws_url="ws://coinex.test")


@pytest.fixture
def gate_adapter() -> GateAdapter:
    """Gate adapter pointed at placeholder hosts."""
    return GateAdapter(http_url="https://gate.test", ws_url="ws://gate.test")


@pytest.fixture
def coinex_depth_full() -> dict:
    """Full depth.update push from CoinEx."""
    return {
        "method": "depth.update",
        "data": {
            "market": "BTCUSDT",
            "is_full": True,
            "depth": {
                "asks": [["30000.5", "0.5"], ["30001", "1.2"]],
                "bids": [["29999.5", "0.8"], ["29998", "2"]],
                "last": "30000",
                "updated_at": 1700000000000,
                "checksum": 123456789,
            },
        },
        "id": None,
    }


@pytest.fixture
def coinex_depth_incremental() -> dict:
    """Incremental depth.update push from CoinEx."""
    return {
        "method": "depth.update",
        "data": {
            "market": "BTCUSDT",
            "is_full": False,
            "depth": {
                "asks": [["30000.5", "0"]],
                "bids": [["29999.6", "0.3"]],
                "last": "30000.1",
                "updated_at": 1700000000100,
                "checksum": 987654321,
            },
        },
        "id": None,
    }


@pytest.fixture
def gate_order_book_update() -> dict:
    """Incremental spot.order_book_update push from Gate."""
    return {
        "time": 1700000000,
        "time_ms": 1700000000123,
        "channel": "spot.order_book_update",
        "event": "update",
        "result": {
            "t": 1700000000123,
            "e": "depthUpdate",
            "E": 1700000000,
            "s": "BTC_USDT",
            "U": 48776301,
            "u": 48776306,
            "b": [["29999.9", "0.1"]],
            "a": [["30000.1", "0.25"], ["30000.2", "0"]],
        },
    }


@pytest.fixture
def gate_order_book_snapshot() -> dict:
    """Limited-level spot.order_book push from Gate."""
    return {
        "time": 1700000000,
        "channel": "spot.order_book",
        "event": "update",
        "result": {
            "t": 1700000000456,
            "lastUpdateId": 48791820,
            "s": "BTC_USDT",
            "bids": [["29999.9", "0.5"], ["29999.8", "1"]],
            "asks": [["30000.1", "0.3"]],
        },
    }
