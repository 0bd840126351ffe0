"""CoinEx integration.

Provides the v2 adapter and REST client.
"""

from spot_connector.exchange.coinex.adapter import CoinExAdapter
from spot_connector.exchange.coinex.rest import CoinExRestClient

__all__ = [
    "CoinExAdapter",
    "CoinExRestClient",
]
