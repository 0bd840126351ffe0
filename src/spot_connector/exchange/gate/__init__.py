"""Gate integration.

Provides the v4 adapter and REST client.
"""

from spot_connector.exchange.gate.adapter import GateAdapter
from spot_connector.exchange.gate.rest import GateRestClient

__all__ = [
    "GateAdapter",
    "GateRestClient",
]
