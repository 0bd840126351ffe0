"""Exception hierarchy for connector errors.

All connector errors inherit from ConnectorError, allowing code to catch
broad categories of errors. Each error type includes relevant context for
debugging and logging.

Error categories:
- TransportError: Connection or IO failure, never retried internally
- StatusError: Non-2xx HTTP response
- BodyError: Response body did not match the expected envelope
- ApplicationError: Venue reported a business-level failure
- FrameError: Streaming frame could not be decompressed or parsed
- AuthenticationError: Missing credentials or rejected login
- SessionError: Stream session used in the wrong state
- ConfigurationError: Invalid configuration
"""

from __future__ import annotations

from typing import Any


class ConnectorError(Exception):
    """Base exception for all connector errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize with message and optional context.

        Args:
            message: Human-readable error description
            context: Additional structured data for logging/debugging
        """
        super().__init__(message)
        self.context = context or {}


class TransportError(ConnectorError):
    """Connection or IO failure talking to a venue.

    Raised when:
    - The HTTP request could not be sent or its response not read
    - The websocket could not be opened, written or read
    - The streaming read deadline expired
    """

    def __init__(
        self,
        message: str,
        exchange: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with message and exchange name.

        Args:
            message: Human-readable error description
            exchange: Name of the venue (e.g., "coinex", "gate")
            context: Additional structured data
        """
        super().__init__(message, context)
        self.exchange = exchange


class StatusError(ConnectorError):
    """The venue answered with a non-2xx HTTP status.

    Takes precedence over any inspection of the response body. The body is
    kept so callers can look at venue-specific error details.
    """

    def __init__(
        self,
        code: int,
        status: str,
        body: bytes = b"",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"{code}: {status}", context)
        self.code = code
        self.status = status
        self.body = body


class BodyError(ConnectorError):
    """A 2xx response body did not match the expected shape.

    Carries the raw, unparsed bytes so no information is lost.
    """

    def __init__(self, body: bytes, context: dict[str, Any] | None = None) -> None:
        super().__init__(body.decode("utf-8", errors="replace"), context)
        self.body = body


class ApplicationError(ConnectorError):
    """The venue reported a business-level failure.

    The code and message are exactly what the server sent. CoinEx uses
    integer codes, Gate uses string labels.
    """

    def __init__(
        self,
        code: int | str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"code={code} message={message}", context)
        self.code = code
        self.message = message


class FrameError(ConnectorError):
    """A streaming frame could not be decompressed or parsed.

    Terminates the session read loop.
    """

    def __init__(
        self,
        message: str,
        frame: bytes | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with message and the offending frame.

        Args:
            message: Human-readable error description
            frame: The raw frame as received (before decompression)
            context: Additional structured data
        """
        super().__init__(message, context)
        self.frame = frame


class AuthenticationError(ConnectorError):
    """Authentication could not be performed or was rejected."""

    pass


class SessionError(ConnectorError):
    """A stream session was used in a state that does not allow it."""

    pass


class ConfigurationError(ConnectorError):
    """Invalid configuration.

    Raised when:
    - Configuration file is malformed
    - Required configuration values are missing
    - Configuration values fail validation
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with field information.

        Args:
            message: Human-readable error description
            field: Name of the configuration field with the issue
            context: Additional structured data
        """
        super().__init__(message, context)
        self.field = field
