"""Observability records reported to the overlay."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DomainCategory(str, Enum):
    """Coarse classification of a destination host."""

    MAIN = "main"
    ANALYTICS = "analytics"
    CDN = "cdn"
    ADS = "ads"
    OTHER = "other"


# Report order: main content first, noise last
CATEGORY_ORDER: dict[DomainCategory, int] = {
    DomainCategory.MAIN: 0,
    DomainCategory.CDN: 1,
    DomainCategory.ANALYTICS: 2,
    DomainCategory.ADS: 3,
    DomainCategory.OTHER: 4,
}


class DomainInfo(BaseModel):
    """A host seen in a tab, annotated with the current routing decision.

    ``proxy_id`` and ``color`` are computed at read time and are ``None`` for
    hosts that connect directly.
    """

    model_config = ConfigDict(populate_by_name=True)

    domain: str
    category: DomainCategory
    request_count: int = Field(alias="requestCount", ge=0)
    last_seen: int = Field(alias="lastSeen")  # epoch milliseconds
    proxy_id: str | None = Field(default=None, alias="proxyId")
    color: str | None = None


class AvailableProxy(BaseModel):
    """An active proxy as offered in the overlay's assignment menu."""

    id: str
    name: str
    color: str
