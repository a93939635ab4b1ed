"""Public models for the multiproxy service."""

from multiproxy.models.domains import AvailableProxy, DomainCategory, DomainInfo
from multiproxy.models.messages import (
    AssignDomainToProxy,
    GetAvailableProxies,
    GetCurrentDomains,
    HideOverlay,
    Message,
    ShowOverlay,
    parse_message,
)
from multiproxy.models.requests import (
    AuthChallengeRequest,
    DomainRequest,
    ImportProxiesRequest,
    ObservedRequest,
    SetModeRequest,
)
from multiproxy.models.responses import ApiResponse
from multiproxy.models.state import AppState, ProxyEntry, ProxyMode, ProxySettings

__all__ = [
    "ApiResponse",
    "AppState",
    "AssignDomainToProxy",
    "AuthChallengeRequest",
    "AvailableProxy",
    "DomainCategory",
    "DomainInfo",
    "DomainRequest",
    "GetAvailableProxies",
    "GetCurrentDomains",
    "HideOverlay",
    "ImportProxiesRequest",
    "Message",
    "ObservedRequest",
    "ProxyEntry",
    "ProxyMode",
    "ProxySettings",
    "SetModeRequest",
    "ShowOverlay",
    "parse_message",
]
