"""Exchange adapter factory.

Provides configuration-driven adapter instantiation, allowing the venue to
be selected via configuration rather than code changes.
"""

from __future__ import annotations

from collections.abc import Callable

from spot_connector.domain.errors import ConfigurationError
from spot_connector.exchange.base import ExchangeAdapter, ExchangeType
from spot_connector.exchange.coinex.adapter import CoinExAdapter
from spot_connector.exchange.gate.adapter import GateAdapter

AdapterFactory = Callable[[str | None, str | None], ExchangeAdapter]

# Registry of adapter factories
_adapter_factories: dict[ExchangeType, AdapterFactory] = {}


def register_adapter(exchange_type: ExchangeType, factory: AdapterFactory) -> None:
    """Register an adapter factory for a venue.

    Args:
        exchange_type: The venue
        factory: Function that creates an adapter from (http_url, ws_url)
    """
    _adapter_factories[exchange_type] = factory


def create_adapter(
    exchange_type: ExchangeType | str,
    http_url: str | None = None,
    ws_url: str | None = None,
) -> ExchangeAdapter:
    """Create a venue adapter.

    Args:
        exchange_type: Venue, as an ExchangeType or its value
        http_url: Optional REST base URL override
        ws_url: Optional websocket base URL override

    Returns:
        Configured adapter

    Raises:
        ConfigurationError: If the venue is unknown or has no adapter
    """
    try:
        exchange_type = ExchangeType(exchange_type)
    except ValueError as err:
        raise ConfigurationError(
            f"Unknown exchange type: {exchange_type}",
            field="exchange_type",
        ) from err

    factory = _adapter_factories.get(exchange_type)
    if factory is None:
        raise ConfigurationError(
            f"No adapter registered for exchange type: {exchange_type.value}",
            field="exchange_type",
        )
    return factory(http_url, ws_url)


register_adapter(ExchangeType.COINEX, CoinExAdapter)
register_adapter(ExchangeType.GATE, GateAdapter)
