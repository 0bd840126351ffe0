"""Frame codec.

Turns raw websocket frames into domain events in three independently
failable steps: decompress, parse the envelope, parse the payload. Frames
whose name the adapter does not recognize decode to None.
"""

from __future__ import annotations

import gzip
import logging
import zlib

from spot_connector.domain.errors import FrameError
from spot_connector.domain.events import OrderBookUpdate
from spot_connector.exchange.base import ExchangeAdapter, InboundFrame

logger = logging.getLogger(__name__)


def gzip_decode(data: bytes) -> bytes:
    """Decompress a gzip member.

    Raises:
        OSError: If the data is not gzip
        EOFError: If the data is truncated
    """
    return gzip.decompress(data)


class FrameCodec:
    """Decodes frames for one venue."""

    def __init__(self, adapter: ExchangeAdapter) -> None:
        self._adapter = adapter

    def decode_frame(self, raw: bytes | str) -> InboundFrame:
        """Decompress and parse the envelope of a raw frame.

        Args:
            raw: Frame as received from the socket

        Returns:
            The parsed envelope

        Raises:
            FrameError: If decompression or envelope parsing fails
        """
        data = raw.encode("utf-8") if isinstance(raw, str) else raw

        try:
            data = self._adapter.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise FrameError(f"Failed to decompress frame: {e}", frame=data) from e

        try:
            return self._adapter.parse_envelope(data)
        except (ValueError, TypeError, KeyError) as e:
            raise FrameError(f"Failed to parse frame envelope: {e}", frame=data) from e

    def dispatch(self, frame: InboundFrame) -> OrderBookUpdate | None:
        """Turn an envelope into a domain event.

        Args:
            frame: Parsed envelope

        Returns:
            The event, or None if the frame carries no event

        Raises:
            FrameError: If an event payload is malformed
        """
        try:
            event = self._adapter.parse_event(frame)
        except (ValueError, TypeError, KeyError, ArithmeticError) as e:
            raise FrameError(
                f"Failed to parse {frame.name} payload: {e}",
                context={"payload": frame.payload},
            ) from e

        if event is None:
            logger.debug(f"Dropping frame without event: {frame.name!r}")
        return event

    def decode(self, raw: bytes | str) -> OrderBookUpdate | None:
        """Decode a raw frame into a domain event.

        Args:
            raw: Frame as received from the socket

        Returns:
            The event, or None if the frame carries no event

        Raises:
            FrameError: If any decoding step fails
        """
        return self.dispatch(self.decode_frame(raw))
