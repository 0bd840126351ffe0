"""Stream runner - command line streaming loop.

Wires configuration into an adapter and a stream session, subscribes to the
configured pairs and logs order book events until stopped.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from spot_connector.core.config import ConnectorConfig
from spot_connector.domain.events import OrderBookUpdate
from spot_connector.exchange.base import ExchangeAdapter, ExchangeType
from spot_connector.exchange.coinex.rest import CoinExRestClient
from spot_connector.exchange.factory import create_adapter
from spot_connector.exchange.gate.rest import GateRestClient
from spot_connector.exchange.rest import RestTransport
from spot_connector.exchange.session import StreamSession

logger = logging.getLogger(__name__)


def create_session(
    config: ConnectorConfig, adapter: ExchangeAdapter | None = None
) -> StreamSession:
    """Build a stream session from configuration.

    Args:
        config: Connector configuration
        adapter: Adapter to use (built from config.exchange if None)

    Returns:
        A disconnected StreamSession
    """
    exchange = config.exchange
    adapter = adapter or create_adapter(exchange.type, exchange.http_url, exchange.ws_url)
    session = config.session
    return StreamSession(
        adapter,
        credentials=exchange.credentials(),
        keepalive_interval=session.keepalive_interval,
        read_timeout=session.read_timeout,
        queue_size=session.queue_size,
        open_timeout=session.open_timeout,
        close_timeout=session.close_timeout,
    )


def create_rest_client(config: ConnectorConfig) -> CoinExRestClient | GateRestClient:
    """Build the venue REST client from configuration."""
    exchange = config.exchange
    adapter = create_adapter(exchange.type, exchange.http_url, exchange.ws_url)
    transport = RestTransport(
        adapter, credentials=exchange.credentials(), timeout=config.http.timeout
    )
    if exchange.type is ExchangeType.GATE:
        return GateRestClient(transport=transport)
    return CoinExRestClient(transport=transport)


class StreamRunner:
    """Streams order book events for the configured pairs.

    Stops when:
    - The configured duration elapses
    - SIGTERM/SIGINT is received
    - The session closes on its own (the failure is re-raised)
    """

    def __init__(self, config: ConnectorConfig) -> None:
        """Initialize the runner.

        Args:
            config: Connector configuration
        """
        self._config = config
        self._shutdown_event = asyncio.Event()
        self._event_count = 0

    @property
    def event_count(self) -> int:
        """Return the number of events received."""
        return self._event_count

    def stop(self) -> None:
        """Request a graceful stop."""
        logger.info("Stopping stream runner")
        self._shutdown_event.set()

    async def run(self, session: StreamSession | None = None) -> int:
        """Connect, subscribe and stream until stopped.

        Args:
            session: Session to use (built from config if None)

        Returns:
            Number of events received
        """
        stream = self._config.stream
        session = session or create_session(self._config)

        self._setup_signal_handlers()
        try:
            async with session:
                await session.subscribe_order_book(
                    stream.pairs, stream.depth, stream.interval, stream.full
                )
                consumer = asyncio.create_task(self._consume(session))
                waiter = asyncio.create_task(self._shutdown_event.wait())

                done, _ = await asyncio.wait(
                    {consumer, waiter},
                    timeout=stream.duration_seconds,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if not done:
                    logger.info(f"Stream duration of {stream.duration_seconds}s elapsed")
                waiter.cancel()

            # The session is closed here, so the consumer drains and returns.
            await consumer
        finally:
            self._remove_signal_handlers()

        logger.info(f"Received {self._event_count} order book events")
        return self._event_count

    async def _consume(self, session: StreamSession) -> None:
        async for event in session.events():
            self._event_count += 1
            self._log_event(event)

    def _log_event(self, event: OrderBookUpdate) -> None:
        best_bid = event.best_bid()
        best_ask = event.best_ask()
        kind = "snapshot" if event.is_full else "update"
        logger.info(
            f"{event.pair} {kind}: "
            f"bid={best_bid.price if best_bid else '-'} "
            f"ask={best_ask.price if best_ask else '-'} "
            f"levels={len(event.bids)}/{len(event.asks)}"
        )

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown")
        self._shutdown_event.set()
