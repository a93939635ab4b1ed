"""Pydantic request bodies for the control API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from multiproxy.models.state import ProxyMode


class ImportProxiesRequest(BaseModel):
    """Bulk proxy import, one proxy per line."""

    text: str = Field(..., min_length=1)


class SetModeRequest(BaseModel):
    mode: ProxyMode


class DomainRequest(BaseModel):
    domain: str = Field(..., min_length=1)


class ObservedRequest(BaseModel):
    """An outbound request reported by the network stack."""

    url: str = Field(..., min_length=1)
    tab_id: int


class AuthChallengeRequest(BaseModel):
    url: str
    request_id: str = Field(..., min_length=1)
