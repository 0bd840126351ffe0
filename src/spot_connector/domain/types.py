"""Core value objects for the connector.

All types are immutable. Prices and sizes are kept as Decimal exactly as
the venue reported them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import field
from decimal import Decimal
from typing import Any

from pydantic import field_validator
from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class Credentials:
    """API key and secret for one venue account.

    The secret is only ever an input to signing; it is kept out of repr.
    """

    key: str
    secret: str = field(repr=False)

    @field_validator("key", "secret")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Reject empty key material."""
        if not v:
            raise ValueError("Credentials must not be empty")
        return v


@dataclass(frozen=True)
class PriceLevel:
    """A single price level in an order book update."""

    price: Decimal
    size: Decimal

    @classmethod
    def from_pair(cls, pair: Sequence[Any]) -> PriceLevel:
        """Create a PriceLevel from a venue [price, size] pair.

        Args:
            pair: Two-element sequence of decimal strings or numbers

        Returns:
            PriceLevel with Decimal values

        Raises:
            ValueError: If the pair does not have exactly two elements
        """
        if len(pair) != 2:
            raise ValueError(f"Price level must have 2 elements, got {len(pair)}")
        return cls(price=Decimal(str(pair[0])), size=Decimal(str(pair[1])))

    def __repr__(self) -> str:
        return f"PriceLevel({self.price}, {self.size})"
