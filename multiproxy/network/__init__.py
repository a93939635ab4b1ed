"""Network stack integration: config sink, auth listeners, configurator."""

from multiproxy.network.configurator import ProxyConfigurator
from multiproxy.network.sink import AuthListenerRegistry, NetworkConfigSink, RecordingNetworkSink

__all__ = [
    "AuthListenerRegistry",
    "NetworkConfigSink",
    "ProxyConfigurator",
    "RecordingNetworkSink",
]
