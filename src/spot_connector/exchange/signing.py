"""Request signing.

Pure functions that reproduce each venue's canonical string and digest.
Any deviation in ordering or whitespace is only noticed as a rejected
request, so every byte here matters.

Variant A (CoinEx):
    hex(SHA256(method + path + body + timestamp + secret))

Variant B (Gate):
    hex(HMAC-SHA512(secret, method\\npath\\nquery\\nhex(SHA512(body))\\ntimestamp))
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from urllib.parse import urlencode

from cryptography.hazmat.primitives import hashes, hmac
from pydantic.dataclasses import dataclass

QueryParams = Mapping[str, str] | Iterable[tuple[str, str]]


def query_pairs(query: QueryParams | None) -> tuple[tuple[str, str], ...]:
    """Normalize query parameters to a tuple of (key, value) pairs.

    Args:
        query: Mapping or iterable of pairs, or None

    Returns:
        Pairs in insertion order
    """
    if query is None:
        return ()
    items = query.items() if isinstance(query, Mapping) else query
    return tuple((str(k), str(v)) for k, v in items)


def canonicalize_query(query: QueryParams | None) -> str:
    """Encode query parameters in canonical form.

    Keys are sorted (stable, so repeated keys keep their relative order)
    and form encoded with spaces as '+'. Two constructions with the same
    pairs in different insertion order encode identically.

    Args:
        query: Mapping or iterable of pairs, or None

    Returns:
        Encoded query string without the leading '?'
    """
    pairs = sorted(query_pairs(query), key=lambda kv: kv[0])
    return urlencode(pairs)


@dataclass(frozen=True)
class SignedRequest:
    """Everything that goes into one request digest.

    Built at send time; a retry must build a new one with a fresh timestamp.
    """

    method: str
    path: str
    timestamp: int
    query: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None

    @property
    def query_string(self) -> str:
        """Return the canonical query encoding."""
        return canonicalize_query(self.query)

    @property
    def path_with_query(self) -> str:
        """Return the path with '?query' appended when there is a query."""
        qs = self.query_string
        return f"{self.path}?{qs}" if qs else self.path


def sign_sha256(
    method: str,
    path: str,
    body: bytes | None,
    timestamp: int | str,
    secret: str,
) -> str:
    """Compute a Variant A digest.

    Args:
        method: HTTP method, upper case
        path: Request path including '?query' if any
        body: Raw request body, or None
        timestamp: Timestamp as sent in the header
        secret: API secret

    Returns:
        Lowercase hex SHA-256 digest
    """
    prepared = (
        method.encode("utf-8")
        + path.encode("utf-8")
        + (body or b"")
        + str(timestamp).encode("utf-8")
        + secret.encode("utf-8")
    )
    return hashlib.sha256(prepared).hexdigest().lower()


def sign_hmac_sha512(
    method: str,
    path: str,
    query: str,
    body: bytes | None,
    timestamp: int | str,
    secret: str,
) -> str:
    """Compute a Variant B digest.

    An absent body hashes the empty byte string; it is never left out of
    the signing string.

    Args:
        method: HTTP method, upper case
        path: Request path without query
        query: Canonical query string
        body: Raw request body, or None
        timestamp: Timestamp as sent in the header
        secret: API secret

    Returns:
        Lowercase hex HMAC-SHA512 digest
    """
    payload = hashlib.sha512(body or b"").hexdigest()
    message = f"{method}\n{path}\n{query}\n{payload}\n{timestamp}"

    mac = hmac.HMAC(secret.encode("utf-8"), hashes.SHA512())
    mac.update(message.encode("utf-8"))
    return mac.finalize().hex()


def sign_hmac_sha256(message: str, secret: str) -> str:
    """Compute a lowercase hex HMAC-SHA256 of a message.

    Used for websocket login where the venue signs only the timestamp.
    """
    mac = hmac.HMAC(secret.encode("utf-8"), hashes.SHA256())
    mac.update(message.encode("utf-8"))
    return mac.finalize().hex()
