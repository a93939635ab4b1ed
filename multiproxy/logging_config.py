"""Logging setup: one JSON object per line on stderr.

Entries always have ``timestamp``, ``level``, ``logger``, ``message`` and
``request_id``. Routing context passed through ``extra`` (``proxy_id``,
``target_host``, ``tab_id``, ``mode``, ``attempt``) is copied to the top level
when present.

SECURITY: proxy credentials must never appear in output. Messages and
tracebacks are scrubbed of ``key=value`` secrets and of ``login:password@``
userinfo before they are written.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

_SECRET_ASSIGNMENT = re.compile(
    r"(?:password|passwd|login|username|secret|token|credential|authorization)\s*[=:]\s*\S+",
    re.IGNORECASE,
)

# login:password@ in proxy lines and URLs
_USERINFO = re.compile(r"[^\s/@:]+:[^\s/@]+@")

CONTEXT_FIELDS = ("proxy_id", "target_host", "tab_id", "mode", "attempt")

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def redact(text: str) -> str:
    """Strip credentials from free-form log text."""
    return _SECRET_ASSIGNMENT.sub("[REDACTED]", _USERINFO.sub("[REDACTED]@", text))


class JsonFormatter(logging.Formatter):
    """Renders a record as a single JSON line with routing context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        entry.update(
            (name, getattr(record, name)) for name in CONTEXT_FIELDS if hasattr(record, name)
        )
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Replace the root logger's handlers with a single stream handler.

    Parameters
    ----------
    level:
        Level name; unknown names fall back to INFO.
    json_output:
        Use ``JsonFormatter``; otherwise the plain ``PLAIN_FORMAT`` layout.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
