"""Error hierarchy and FastAPI exception handlers."""

from multiproxy.middleware.error_handler import (
    BackupNotFoundError,
    InvalidProxyError,
    InvalidStateError,
    MultiproxyError,
    ProxyNotFoundError,
    ValidationError,
    register_error_handlers,
)

__all__ = [
    "BackupNotFoundError",
    "InvalidProxyError",
    "InvalidStateError",
    "MultiproxyError",
    "ProxyNotFoundError",
    "ValidationError",
    "register_error_handlers",
]
