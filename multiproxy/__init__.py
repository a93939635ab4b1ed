"""Multiproxy: route outbound traffic to several upstream proxies by domain."""

__version__ = "1.0.0"
