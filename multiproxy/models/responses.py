"""Response envelope shared by the command channel and the HTTP API.

Every reply has the shape
{ success: bool, data: T | None, error: str | None, meta: dict | None }
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope for channel and API replies."""

    success: bool
    data: T | None = None
    error: str | None = None
    meta: dict | None = None


def ok(data: Any = None, meta: dict | None = None) -> dict:
    """Dumped success envelope."""
    return ApiResponse(success=True, data=data, meta=meta).model_dump(mode="json")
