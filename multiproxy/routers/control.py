"""Control API: command channel, proxy management, tracker feed and auth.

- POST   /api/v1/messages                 — overlay command channel
- GET    /api/v1/state                    — current state (passwords omitted)
- PUT    /api/v1/state                    — replace the whole state document
- PUT    /api/v1/settings/mode            — switch routing mode
- POST   /api/v1/proxies/import           — bulk import
- PATCH  /api/v1/proxies/{index}          — edit one proxy
- POST   /api/v1/proxies/{index}/toggle   — toggle active flag
- DELETE /api/v1/proxies/{index}          — delete one proxy
- POST   /api/v1/domains                  — add domain to the active proxy
- DELETE /api/v1/domains/{domain}         — remove domain from all proxies
- GET    /api/v1/domains/conflicts        — rules claimed by several proxies
- POST   /api/v1/requests                 — report an outbound request
- DELETE /api/v1/tabs/{tab_id}            — tab closed
- POST   /api/v1/auth/challenge           — proxy auth challenge
- GET    /api/v1/config                   — installed network config
- GET    /proxy.pac                       — installed PAC script
- POST   /api/v1/state/backup             — save backup
- POST   /api/v1/state/restore            — restore backup
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import PlainTextResponse

from multiproxy.middleware.error_handler import (
    BackupNotFoundError,
    InvalidStateError,
    ProxyNotFoundError,
)
from multiproxy.models.messages import parse_message
from multiproxy.models.requests import (
    AuthChallengeRequest,
    DomainRequest,
    ImportProxiesRequest,
    ObservedRequest,
    SetModeRequest,
)
from multiproxy.models.responses import ok
from multiproxy.models.state import AppState
from multiproxy.routing.auth import AuthChallenge
from multiproxy.routing.pac import PacScriptConfig
from multiproxy.services.proxy_admin import ProxyUpdate
from multiproxy.store.state_store import validate_state

logger = logging.getLogger(__name__)


def state_payload(state: AppState) -> dict:
    """State as returned to clients: derived ids added, passwords left out."""
    proxies = []
    for proxy in state.proxies:
        data = proxy.model_dump(mode="json", exclude={"password"})
        data["id"] = proxy.id
        data["has_credentials"] = proxy.has_credentials
        data["usable"] = proxy.is_usable
        proxies.append(data)
    return {"proxies": proxies, "settings": state.settings.model_dump(mode="json")}


def create_control_router(
    *,
    store: Any,
    commands: Any,
    tracker: Any,
    auth_registry: Any,
    sink: Any,
) -> APIRouter:
    """Factory that creates the control router with injected dependencies.

    Parameters
    ----------
    store:
        StateStore owning the application state.
    commands:
        CommandService handling messages and proxy management.
    tracker:
        DomainTracker fed by reported requests.
    auth_registry:
        AuthListenerRegistry that challenges are dispatched to.
    sink:
        RecordingNetworkSink holding the installed configuration.
    """
    control_router = APIRouter(tags=["control"])

    # --- Command channel ---

    @control_router.post("/api/v1/messages")
    async def post_message(payload: dict = Body(...)) -> dict:
        message = parse_message(payload)
        return ok(await commands.handle(message))

    # --- State and settings ---

    @control_router.get("/api/v1/state")
    async def get_state() -> dict:
        return ok(state_payload(await store.get_state()))

    @control_router.put("/api/v1/state")
    async def replace_state(payload: dict = Body(...)) -> dict:
        state = validate_state(payload)
        if state is None:
            raise InvalidStateError()
        return ok(state_payload(await store.set_state(state)))

    @control_router.put("/api/v1/settings/mode")
    async def set_mode(body: SetModeRequest) -> dict:
        return ok(state_payload(await commands.set_mode(body.mode)))

    @control_router.post("/api/v1/state/backup")
    async def backup_state() -> dict:
        await store.backup_state()
        return ok({"backed_up": True})

    @control_router.post("/api/v1/state/restore")
    async def restore_state() -> dict:
        if not await store.restore_from_backup():
            raise BackupNotFoundError()
        return ok(state_payload(await store.get_state()))

    # --- Proxies ---

    @control_router.post("/api/v1/proxies/import")
    async def import_proxies(body: ImportProxiesRequest) -> dict:
        return ok(state_payload(await commands.import_proxies(body.text)))

    @control_router.patch("/api/v1/proxies/{index}")
    async def update_proxy(index: int, body: ProxyUpdate) -> dict:
        return ok(state_payload(await commands.update_proxy(index, body)))

    @control_router.post("/api/v1/proxies/{index}/toggle")
    async def toggle_proxy(index: int) -> dict:
        return ok(state_payload(await commands.toggle_proxy(index)))

    @control_router.delete("/api/v1/proxies/{index}")
    async def delete_proxy(index: int) -> dict:
        return ok(state_payload(await commands.delete_proxy(index)))

    # --- Domains ---

    @control_router.get("/api/v1/domains/conflicts")
    async def domain_conflicts() -> dict:
        return ok([conflict.model_dump() for conflict in commands.find_conflicts()])

    @control_router.post("/api/v1/domains")
    async def add_domain(body: DomainRequest) -> dict:
        return ok(state_payload(await commands.add_domain(body.domain)))

    @control_router.delete("/api/v1/domains/{domain}")
    async def remove_domain(domain: str) -> dict:
        return ok(state_payload(await commands.remove_domain(domain)))

    # --- Tracker feed ---

    @control_router.post("/api/v1/requests")
    async def observe_request(body: ObservedRequest) -> dict:
        record = tracker.observe_url(body.url, body.tab_id)
        if record is None:
            return ok({"tracked": False})
        return ok({"tracked": True, "domain": record.domain, "category": record.category.value})

    @control_router.delete("/api/v1/tabs/{tab_id}")
    async def close_tab(tab_id: int) -> dict:
        commands.close_tab(tab_id)
        return ok({"tab_id": tab_id, "cleared": True})

    # --- Auth ---

    @control_router.post("/api/v1/auth/challenge")
    async def auth_challenge(body: AuthChallengeRequest) -> dict:
        response = auth_registry.dispatch(
            AuthChallenge(url=body.url, request_id=body.request_id)
        )
        if response.is_empty:
            return ok({})
        return ok({"username": response.username, "password": response.password})

    # --- Installed configuration ---

    @control_router.get("/api/v1/config")
    async def get_config() -> dict:
        return ok(sink.current.model_dump(mode="json"))

    @control_router.get("/proxy.pac", response_class=PlainTextResponse)
    async def get_pac() -> str:
        if not isinstance(sink.current, PacScriptConfig):
            raise ProxyNotFoundError("No PAC script installed")
        return sink.current.data

    return control_router
