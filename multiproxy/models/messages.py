"""Command channel messages.

Each message is tagged by its ``type`` field; the payload shape is fixed per
tag and validated when the message crosses the boundary.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from multiproxy.middleware.error_handler import ValidationError, field_errors

DIRECT = "direct"


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class GetCurrentDomains(_Message):
    type: Literal["GET_CURRENT_DOMAINS"]
    tab_id: int = Field(alias="tabId")


class AssignDomainData(_Message):
    domain: str = Field(min_length=1)
    proxy_id: str = Field(alias="proxyId", min_length=1)

    @property
    def is_direct(self) -> bool:
        return self.proxy_id == DIRECT


class AssignDomainToProxy(_Message):
    type: Literal["ASSIGN_DOMAIN_TO_PROXY"]
    data: AssignDomainData


class GetAvailableProxies(_Message):
    type: Literal["GET_AVAILABLE_PROXIES"]


class ShowOverlay(_Message):
    type: Literal["SHOW_OVERLAY"]
    tab_id: int = Field(alias="tabId")


class HideOverlay(_Message):
    type: Literal["HIDE_OVERLAY"]
    tab_id: int = Field(alias="tabId")


Message = Annotated[
    Union[
        GetCurrentDomains,
        AssignDomainToProxy,
        GetAvailableProxies,
        ShowOverlay,
        HideOverlay,
    ],
    Field(discriminator="type"),
]

_message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def parse_message(raw: Any) -> Message:
    """Validate a raw payload into one of the tagged message types.

    Raises ``ValidationError`` with per-field details on an unknown tag or a
    payload that does not fit its tag.
    """
    try:
        return _message_adapter.validate_python(raw)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid message", fields=field_errors(exc.errors())) from exc
