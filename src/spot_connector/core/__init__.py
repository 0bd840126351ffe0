"""Core application components."""

from spot_connector.core.config import ConnectorConfig, load_config
from spot_connector.core.runner import StreamRunner, create_rest_client, create_session

__all__ = [
    "ConnectorConfig",
    "StreamRunner",
    "create_rest_client",
    "create_session",
    "load_config",
]
