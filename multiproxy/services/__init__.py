"""Proxy management and command channel services."""
