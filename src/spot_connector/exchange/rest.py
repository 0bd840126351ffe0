"""Signed REST transport.

Performs one HTTP request/response cycle per call: build the URL, sign if
required, send exactly once, and map every failure into the connector
error taxonomy. Retries are the caller's business.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic.dataclasses import dataclass

from spot_connector.domain.errors import (
    AuthenticationError,
    BodyError,
    StatusError,
    TransportError,
)
from spot_connector.domain.types import Credentials
from spot_connector.exchange.base import ExchangeAdapter
from spot_connector.exchange.signing import QueryParams, SignedRequest, query_pairs

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class RestResponse:
    """A successful response: the raw body and its unwrapped data."""

    raw: bytes
    data: Any


def decode_model(response: RestResponse, model: type[M]) -> M:
    """Validate unwrapped data as a single model.

    Raises:
        BodyError: If the data does not match the model
    """
    try:
        return model.model_validate(response.data)
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} payload: {e}")
        raise BodyError(response.raw) from e


def decode_list(response: RestResponse, model: type[M]) -> list[M]:
    """Validate unwrapped data as a list of models.

    A null list decodes to an empty one.

    Raises:
        BodyError: If the data does not match the model
    """
    if response.data is None:
        return []
    try:
        return TypeAdapter(list[model]).validate_python(response.data)  # type: ignore[valid-type]
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} list payload: {e}")
        raise BodyError(response.raw) from e


def encode_body(body: dict[str, Any] | None) -> bytes | None:
    """Encode a JSON body compactly with sorted keys.

    The returned bytes are both signed and sent.
    """
    if body is None:
        return None
    return json.dumps(body, separators=(",", ":"), sort_keys=True).encode("utf-8")


class RestTransport:
    """HTTP transport bound to one venue adapter.

    Handles:
    - URL building with canonical query encoding
    - Request signing and auth headers for authenticated calls
    - Status, body and application error mapping

    All methods are async.
    """

    def __init__(
        self,
        adapter: ExchangeAdapter,
        credentials: Credentials | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            adapter: Venue adapter supplying URLs, signing and envelopes
            credentials: API credentials, required for authenticated calls
            timeout: Request timeout in seconds
            client: Optional pre-built HTTP client (owned by the caller)
        """
        self._adapter = adapter
        self._credentials = credentials
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def adapter(self) -> ExchangeAdapter:
        """Return the venue adapter."""
        return self._adapter

    async def start(self) -> None:
        """Start the transport."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True

    async def stop(self) -> None:
        """Stop the transport."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> RestTransport:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def request(
        self,
        method: str,
        path: str,
        query: QueryParams | None = None,
        body: dict[str, Any] | None = None,
        authenticated: bool = False,
    ) -> RestResponse:
        """Make a single request.

        Args:
            method: HTTP method
            path: API path (relative to the venue base URL)
            query: Query parameters, encoded canonically
            body: Optional JSON body
            authenticated: Whether to sign the request

        Returns:
            The raw body and unwrapped envelope data

        Raises:
            AuthenticationError: If authenticated without credentials
            TransportError: If not started or the request could not be completed
            StatusError: If the status is not 2xx
            BodyError: If the body is not the expected envelope
            ApplicationError: If the venue reports a failure
        """
        if not self._client:
            raise TransportError("Transport not started", exchange=self._adapter.name)

        method = method.upper()
        pairs = query_pairs(query)
        query_string = self._adapter.canonicalize_query(pairs)
        url = f"{self._adapter.http_url}{path}"
        if query_string:
            url = f"{url}?{query_string}"

        content = encode_body(body)
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

        if authenticated:
            headers.update(self._auth_headers(method, path, pairs, content))
            logger.info(
                f"Request {method} {url} body={content.decode() if content else ''}"
            )

        try:
            response = await self._client.request(
                method, url, headers=headers, content=content
            )
        except httpx.RequestError as e:
            logger.error(f"{self._adapter.name} request failed: {method} {url}: {e}")
            raise TransportError(
                f"Request failed: {e}", exchange=self._adapter.name
            ) from e

        raw = response.content

        if authenticated:
            logger.info(f"Response {method} {url} body={response.text}")

        if not response.is_success:
            logger.error(
                f"{self._adapter.name} API error: {method} {url} "
                f"{response.status_code} - {response.text}"
            )
            raise StatusError(response.status_code, response.reason_phrase, raw)

        return RestResponse(raw=raw, data=self._adapter.unwrap_response(raw))

    def _auth_headers(
        self,
        method: str,
        path: str,
        query: tuple[tuple[str, str], ...],
        content: bytes | None,
    ) -> dict[str, str]:
        """Sign a request with a fresh timestamp and return its headers."""
        if self._credentials is None:
            raise AuthenticationError(
                f"Credentials required for {method} {path}",
                context={"exchange": self._adapter.name},
            )

        signed = SignedRequest(
            method=method,
            path=path,
            timestamp=self._adapter.timestamp(),
            query=query,
            body=content,
        )
        digest = self._adapter.sign(signed, self._credentials.secret)
        return self._adapter.auth_headers(self._credentials, digest, signed.timestamp)
