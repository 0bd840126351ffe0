"""Streaming websocket session.

One StreamSession owns one websocket connection and two background tasks:

- the keepalive task, which sends the venue ping command on a fixed interval
- the read task, the only reader of the socket, which decodes frames and
  puts events on a bounded queue

The caller drains the queue with next_event() or events(). Commands are
written under a lock shared with the keepalive task. Explicit close() and a
failing read task converge on the same shutdown routine.

Detection of a dead connection is bounded by the read timeout: a keepalive
failure is reported but does not close the session, and the read task
notices within read_timeout seconds at the latest.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from collections.abc import AsyncIterator, Sequence
from enum import Enum
from typing import Any

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed, WebSocketException

from spot_connector.domain.errors import (
    ConfigurationError,
    ConnectorError,
    SessionError,
    TransportError,
)
from spot_connector.domain.events import OrderBookUpdate
from spot_connector.domain.types import Credentials
from spot_connector.exchange.base import Command, ExchangeAdapter
from spot_connector.exchange.codec import FrameCodec

logger = logging.getLogger(__name__)

DEFAULT_READ_TIMEOUT = 120.0
DEFAULT_QUEUE_SIZE = 1000

# Marks the end of the event stream once the session is closed.
_END = object()

# Wakes a waiting consumer so it checks for recorded failures.
_WAKE = object()


class SessionState(str, Enum):
    """Lifecycle of a stream session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
    CLOSED = "closed"


class StreamSession:
    """Persistent websocket session for one venue.

    Features:
    - Anonymous or authenticated handshake
    - Keepalive pings on a fixed interval
    - Ordered, bounded event delivery (the read task blocks when full)
    - Idempotent close that joins both background tasks

    Reconnection is left to the caller: a closed session is not reusable.
    """

    def __init__(
        self,
        adapter: ExchangeAdapter,
        credentials: Credentials | None = None,
        keepalive_interval: float | None = None,
        read_timeout: float | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        open_timeout: float = 10.0,
        close_timeout: float = 5.0,
    ) -> None:
        """Initialize the session.

        Args:
            adapter: Venue adapter supplying URLs, commands and frame parsing
            credentials: If set and the venue supports it, log in on connect
            keepalive_interval: Seconds between pings (venue default if None)
            read_timeout: Seconds without any frame before the connection is
                considered dead; must exceed keepalive_interval
            queue_size: Maximum undelivered events
            open_timeout: Seconds allowed for the opening handshake
            close_timeout: Seconds allowed for each shutdown step

        Raises:
            ConfigurationError: If read_timeout does not exceed the interval
        """
        self._adapter = adapter
        self._codec = FrameCodec(adapter)
        self._credentials = credentials

        self._keepalive_interval = keepalive_interval or adapter.keepalive_interval
        self._read_timeout = read_timeout or max(
            DEFAULT_READ_TIMEOUT, 10 * self._keepalive_interval
        )
        if self._read_timeout <= self._keepalive_interval:
            raise ConfigurationError(
                f"read_timeout ({self._read_timeout}s) must exceed "
                f"keepalive_interval ({self._keepalive_interval}s)",
                field="read_timeout",
            )
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout

        self._state = SessionState.DISCONNECTED
        self._ws: ClientConnection | None = None
        self._write_lock = asyncio.Lock()
        self._shutdown = asyncio.Event()
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=queue_size)
        self._failures: deque[Exception] = deque()
        self._command_ids = itertools.count(1)

        self._keepalive_task: asyncio.Task[None] | None = None
        self._read_task: asyncio.Task[None] | None = None
        self._close_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SessionState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def read_timeout(self) -> float:
        """Return the read deadline in seconds."""
        return self._read_timeout

    def is_connected(self) -> bool:
        """Return True if connected."""
        return self._state is SessionState.CONNECTED and self._ws is not None

    async def __aenter__(self) -> StreamSession:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # Lifecycle

    async def connect(self) -> None:
        """Open the socket, run the handshake and start both tasks.

        Raises:
            SessionError: If the session was already connected or closed
            TransportError: If the socket could not be opened
            AuthenticationError: If the venue rejected the login
        """
        if self._state is not SessionState.DISCONNECTED:
            raise SessionError(f"Cannot connect a session in state {self._state.value}")

        self._state = SessionState.CONNECTING
        url = self._adapter.stream_url

        try:
            ws = await websockets.connect(
                url,
                ping_interval=None,
                open_timeout=self._open_timeout,
                close_timeout=self._close_timeout,
                max_size=None,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            logger.error(f"{self._adapter.name} websocket connection failed: {e}")
            self._abort_connect()
            raise TransportError(
                f"Failed to connect to {url}: {e}", exchange=self._adapter.name
            ) from e

        try:
            await self._login(ws)
        except Exception:
            await ws.close()
            self._abort_connect()
            raise

        if self._shutdown.is_set():
            # close() ran while the handshake was in flight
            await ws.close()
            raise SessionError("Session closed during connect")

        self._ws = ws
        self._state = SessionState.CONNECTED
        logger.info(f"{self._adapter.name} websocket connected: {url}")

        self._keepalive_task = asyncio.create_task(
            self._keepalive_loop(), name=f"{self._adapter.name}-keepalive"
        )
        self._read_task = asyncio.create_task(
            self._read_loop(), name=f"{self._adapter.name}-read"
        )

    def _abort_connect(self) -> None:
        """Return a failed connect to DISCONNECTED unless close() already ran."""
        if not self._shutdown.is_set():
            self._state = SessionState.DISCONNECTED

    async def close(self) -> None:
        """Close the session and wait for both tasks to finish.

        Safe to call any number of times, from any state.
        """
        if self._close_task is None and self._state in (
            SessionState.DISCONNECTED,
            SessionState.CLOSED,
        ):
            return

        close_task = self._begin_close()
        await asyncio.shield(close_task)

    def _begin_close(self) -> asyncio.Task[None]:
        """Signal shutdown and start the shutdown routine once."""
        if self._close_task is None:
            self._shutdown.set()
            self._state = SessionState.CLOSING
            self._close_task = asyncio.create_task(
                self._shutdown_session(), name=f"{self._adapter.name}-close"
            )
        return self._close_task

    async def _shutdown_session(self) -> None:
        async with self._write_lock:
            ws, self._ws = self._ws, None
            if ws is not None:
                try:
                    await ws.close()
                except (ConnectionClosed, OSError) as e:
                    logger.debug(f"Ignoring error while closing websocket: {e}")

        tasks = [
            task
            for task in (self._keepalive_task, self._read_task)
            if task is not None
        ]
        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=self._close_timeout)
            for task in pending:
                logger.warning(f"Cancelling {task.get_name()} after close timeout")
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        self._state = SessionState.CLOSED
        try:
            self._queue.put_nowait(_END)
        except asyncio.QueueFull:
            # The consumer still has events to drain and sees CLOSED after.
            pass

        logger.info(f"{self._adapter.name} websocket closed")

    async def _login(self, ws: ClientConnection) -> None:
        """Send the venue login command and wait for its reply.

        Runs before the read task exists, so reading here does not compete
        with it.
        """
        if self._credentials is None:
            return
        command = self._adapter.login_command(self._credentials)
        if command is None:
            return

        command_id = next(self._command_ids)
        try:
            await ws.send(self._adapter.encode_command(command, command_id))
            while True:
                raw = await asyncio.wait_for(ws.recv(), timeout=self._read_timeout)
                frame = self._codec.decode_frame(raw)
                if frame.id == command_id:
                    break
        except (ConnectionClosed, TimeoutError) as e:
            raise TransportError(
                f"Login handshake failed: {e!r}", exchange=self._adapter.name
            ) from e

        self._adapter.check_login_reply(frame)
        logger.info(f"{self._adapter.name} websocket authenticated")

    # Write path

    async def _write(self, message: str) -> None:
        """Write one text frame under the write lock.

        A write on a closing or closed session is a no-op.

        Raises:
            TransportError: If the write fails
        """
        async with self._write_lock:
            if self._ws is None or self._shutdown.is_set():
                logger.debug(f"Session not connected, dropping message: {message}")
                return

            try:
                await self._ws.send(message)
            except (ConnectionClosed, OSError) as e:
                logger.error(f"WebSocket write failed: {e} msg={message}")
                raise TransportError(
                    f"Write failed: {e}", exchange=self._adapter.name
                ) from e

        logger.debug(f"Sent WebSocket message: {message}")

    async def send(self, message: str) -> None:
        """Send a raw text frame.

        A failed write starts shutdown before the error is raised.

        Args:
            message: Text frame to send

        Raises:
            TransportError: If the write fails
        """
        try:
            await self._write(message)
        except TransportError:
            self._begin_close()
            raise

    async def send_command(self, name: str, params: dict[str, Any] | None = None) -> int:
        """Encode and send a venue command.

        Args:
            name: Method (CoinEx) or channel (Gate)
            params: Command parameters

        Returns:
            The command id used in the envelope
        """
        command_id = next(self._command_ids)
        await self.send(
            self._adapter.encode_command(Command(name=name, params=params), command_id)
        )
        return command_id

    async def subscribe_order_book(
        self,
        pairs: Sequence[str],
        depth: int = 20,
        interval: str | None = None,
        full: bool = False,
    ) -> None:
        """Subscribe to order book pushes.

        Args:
            pairs: Venue pair names
            depth: Number of price levels
            interval: Merge/push interval (venue default if None)
            full: Ask for full snapshots on every push
        """
        commands = self._adapter.order_book_subscription(
            list(pairs), depth, interval or self._adapter.default_interval, full
        )
        for command in commands:
            await self.send_command(command.name, command.params)
        logger.debug(f"Subscribed to order book: {list(pairs)}")

    async def unsubscribe_order_book(
        self,
        pairs: Sequence[str],
        depth: int = 20,
        interval: str | None = None,
        full: bool = False,
    ) -> None:
        """Cancel an order book subscription made with the same arguments."""
        commands = self._adapter.order_book_unsubscription(
            list(pairs), depth, interval or self._adapter.default_interval, full
        )
        for command in commands:
            await self.send_command(command.name, command.params)
        logger.debug(f"Unsubscribed from order book: {list(pairs)}")

    # Background tasks

    async def _keepalive_loop(self) -> None:
        command = self._adapter.ping_command()

        while not self._shutdown.is_set():
            try:
                await asyncio.wait_for(
                    self._shutdown.wait(), timeout=self._keepalive_interval
                )
                return
            except TimeoutError:
                pass

            try:
                await self._write(
                    self._adapter.encode_command(command, next(self._command_ids))
                )
            except TransportError as e:
                logger.error(f"{self._adapter.name} keepalive failed: {e}")
                if not self._shutdown.is_set():
                    self._report(e)
                return

    async def _read_loop(self) -> None:
        ws = self._ws
        if ws is None:
            return

        try:
            while not self._shutdown.is_set():
                try:
                    raw = await asyncio.wait_for(ws.recv(), timeout=self._read_timeout)
                except TimeoutError as e:
                    raise TransportError(
                        f"No frame received within {self._read_timeout}s",
                        exchange=self._adapter.name,
                    ) from e
                except ConnectionClosed as e:
                    raise TransportError(
                        f"Connection closed: {e}", exchange=self._adapter.name
                    ) from e

                event = self._codec.decode(raw)
                if event is not None and not await self._deliver(event):
                    return

        except Exception as e:
            if self._shutdown.is_set():
                return
            if isinstance(e, ConnectorError):
                logger.error(f"{self._adapter.name} read loop stopped: {e}")
            else:
                logger.exception(f"{self._adapter.name} read loop crashed")
            self._report(e)
            self._begin_close()

    async def _deliver(self, event: OrderBookUpdate) -> bool:
        """Put an event on the queue, blocking while it is full.

        Returns:
            False if shutdown began before there was room
        """
        try:
            self._queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            pass

        put = asyncio.ensure_future(self._queue.put(event))
        stop = asyncio.ensure_future(self._shutdown.wait())
        try:
            await asyncio.wait({put, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            put.cancel()
            stop.cancel()
        return put.done() and not put.cancelled()

    def _report(self, error: Exception) -> None:
        """Record a failure for the consumer.

        Failures are kept off the bounded queue so a full queue or a
        cancelled task cannot lose them. They are raised by next_event()
        after the events queued before them.
        """
        self._failures.append(error)
        try:
            self._queue.put_nowait(_WAKE)
        except asyncio.QueueFull:
            # next_event() checks for failures once the queue drains.
            pass

    # Delivery

    async def next_event(self) -> OrderBookUpdate | None:
        """Wait for the next event.

        A keepalive failure does not close the session, so one outage can
        be reported twice: once by the keepalive task and once more when
        the read task hits the dead connection.

        Returns:
            The next event in arrival order, or None once the session is
            closed and every queued event and failure has been delivered

        Raises:
            SessionError: If the session was never connected
            ConnectorError: A failure reported by a background task; each
                reported failure is raised once
        """
        while True:
            if self._queue.empty():
                if self._failures:
                    raise self._failures.popleft()
                if self._state is SessionState.DISCONNECTED:
                    raise SessionError("Session is not connected")
                if self._state is SessionState.CLOSED:
                    return None

            item = await self._queue.get()
            if item is _WAKE:
                if self._failures:
                    raise self._failures.popleft()
                continue
            if item is _END:
                if self._failures:
                    raise self._failures.popleft()
                return None
            event: OrderBookUpdate = item
            return event

    async def events(self) -> AsyncIterator[OrderBookUpdate]:
        """Iterate over events until the session closes.

        Reported failures are raised from the iterator.
        """
        while True:
            event = await self.next_event()
            if event is None:
                return
            yield event
