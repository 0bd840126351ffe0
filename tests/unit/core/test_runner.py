"""Tests for the stream runner and its builders."""

import asyncio
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from spot_connector.core.config import ConnectorConfig
from spot_connector.core.runner import StreamRunner, create_rest_client, create_session
from spot_connector.domain.errors import TransportError
from spot_connector.domain.events import EventType, OrderBookUpdate
from spot_connector.domain.types import PriceLevel
from spot_connector.exchange.coinex.rest import CoinExRestClient
from spot_connector.exchange.gate.adapter import GateAdapter
from spot_connector.exchange.gate.rest import GateRestClient
from spot_connector.exchange.session import SessionState


def make_update(pair: str = "BTC_USDT") -> OrderBookUpdate:
    return OrderBookUpdate(
        event_type=EventType.ORDER_BOOK,
        timestamp=datetime.now(UTC),
        pair=pair,
        asks=[PriceLevel(price=Decimal("30000.1"), size=Decimal("1"))],
        bids=[],
        is_full=True,
    )


class FakeSession:
    """Session stand-in that replays events and then idles until closed."""

    def __init__(self, events: list[OrderBookUpdate], error: Exception | None = None) -> None:
        self._events = events
        self._error = error
        self._closed = asyncio.Event()
        self.subscriptions: list[tuple] = []

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._closed.set()

    async def subscribe_order_book(self, pairs, depth=20, interval=None, full=False) -> None:
        self.subscriptions.append((list(pairs), depth, interval, full))

    async def events(self) -> AsyncIterator[OrderBookUpdate]:
        for event in self._events:
            yield event
        if self._error is not None:
            raise self._error
        await self._closed.wait()


class TestBuilders:
    """Tests for create_session and create_rest_client."""

    def test_create_session(self) -> None:
        """Session settings are taken from configuration."""
        config = ConnectorConfig.from_dict(
            {"exchange": {"type": "gate"}, "session": {"keepalive_interval": 5, "read_timeout": 50}}
        )

        session = create_session(config)

        assert session.state is SessionState.DISCONNECTED
        assert session.read_timeout == 50.0

    def test_create_session_with_adapter(self) -> None:
        """A supplied adapter is used as-is."""
        session = create_session(ConnectorConfig(), GateAdapter(ws_url="ws://gate.test"))

        assert session.state is SessionState.DISCONNECTED

    def test_create_rest_client(self) -> None:
        """The REST client matches the configured venue."""
        assert isinstance(create_rest_client(ConnectorConfig()), CoinExRestClient)
        gate = ConnectorConfig.from_dict({"exchange": {"type": "gate"}})
        assert isinstance(create_rest_client(gate), GateRestClient)


class TestStreamRunner:
    """Tests for StreamRunner."""

    @pytest.mark.asyncio
    async def test_runs_for_duration(self) -> None:
        """The runner subscribes, counts events and stops after the duration."""
        config = ConnectorConfig.from_dict(
            {"stream": {"pairs": ["BTC_USDT"], "depth": 10, "duration_seconds": 0.05}}
        )
        session = FakeSession([make_update(), make_update()])
        runner = StreamRunner(config)

        count = await asyncio.wait_for(runner.run(session), 2)

        assert count == 2
        assert runner.event_count == 2
        assert session.subscriptions == [(["BTC_USDT"], 10, None, False)]

    @pytest.mark.asyncio
    async def test_stop(self) -> None:
        """stop() ends the run."""
        config = ConnectorConfig.from_dict({"stream": {"pairs": ["BTC_USDT"]}})
        runner = StreamRunner(config)

        task = asyncio.create_task(runner.run(FakeSession([make_update()])))
        await asyncio.sleep(0.05)
        runner.stop()

        assert await asyncio.wait_for(task, 2) == 1

    @pytest.mark.asyncio
    async def test_session_failure_raised(self) -> None:
        """A failure reported by the session is raised from run()."""
        config = ConnectorConfig.from_dict({"stream": {"pairs": ["BTC_USDT"]}})
        session = FakeSession([make_update()], error=TransportError("Connection closed"))
        runner = StreamRunner(config)

        with pytest.raises(TransportError):
            await asyncio.wait_for(runner.run(session), 2)

        assert runner.event_count == 1
