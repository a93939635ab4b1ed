"""Error types raised by the service and their HTTP rendering.

Every error carries a status code and a default message; keyword arguments
become the ``meta`` of the reply. Replies always use the
{ success, data, error, meta } envelope, also for request validation failures
and unexpected exceptions.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class MultiproxyError(Exception):
    """Base error for all multiproxy errors."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class ValidationError(MultiproxyError):
    """Payload validation failures, with per-field details in ``fields``."""

    status_code = 422
    message = "Validation error"


class InvalidProxyError(MultiproxyError):
    """Proxy edit rejected (missing host, non-numeric port, bad domain rule)."""

    status_code = 422
    message = "Invalid proxy entry"


class InvalidStateError(MultiproxyError):
    """State document does not have the expected shape."""

    status_code = 422
    message = "Invalid state document"


class ProxyNotFoundError(MultiproxyError):
    """No proxy with the given index or id."""

    status_code = 404
    message = "Proxy not found"


class BackupNotFoundError(MultiproxyError):
    """No valid backup to restore from."""

    status_code = 404
    message = "No valid backup available"


# ---------------------------------------------------------------------------
# Envelope rendering
# ---------------------------------------------------------------------------


def field_errors(errors: list[dict]) -> list[dict]:
    """Flatten pydantic error dicts to ``{field, message, type}`` entries."""
    return [
        {
            "field": " -> ".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in errors
    ]


def error_envelope(status_code: int, error: str, meta: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "data": None, "error": error, "meta": meta},
    )


async def _on_multiproxy_error(request: Request, exc: MultiproxyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_envelope(exc.status_code, exc.message, meta=exc.details or None)


async def _on_request_validation_error(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_envelope(422, ValidationError.message, meta={"fields": field_errors(exc.errors())})


async def _on_unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback; the client only sees a generic 500."""
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method,
        request.url.path,
        exc,
        traceback.format_exc(),
    )
    return error_envelope(500, MultiproxyError.message)


def register_error_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on ``app``."""
    app.add_exception_handler(MultiproxyError, _on_multiproxy_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _on_request_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _on_unhandled_error)  # type: ignore[arg-type]
