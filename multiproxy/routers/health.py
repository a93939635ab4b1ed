"""Health and metrics endpoints.

- GET /health — service status + routing summary
- GET /metrics — component counters
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter

from multiproxy.models.responses import ApiResponse
from multiproxy.routing.resolver import active_proxies

if TYPE_CHECKING:
    from multiproxy.network.configurator import ProxyConfigurator
    from multiproxy.routing.auth import AuthResolver
    from multiproxy.store.state_store import StateStore
    from multiproxy.tracking.domain_tracker import DomainTracker


def create_health_router(
    *,
    store: StateStore | Any = None,
    configurator: ProxyConfigurator | Any = None,
    auth_resolver: AuthResolver | Any = None,
    tracker: DomainTracker | Any = None,
) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health() -> dict:
        """Service health with the current routing summary."""
        state = store.snapshot() if store else None
        routing = (
            {
                "mode": state.settings.mode.value,
                "proxies": len(state.proxies),
                "active": len(active_proxies(state.proxies)),
            }
            if state is not None
            else {}
        )

        return ApiResponse(
            success=True,
            data={"status": "healthy", "routing": routing},
        ).model_dump()

    @health_router.get("/metrics")
    async def metrics() -> dict:
        """Operational metrics endpoint."""
        return ApiResponse(
            success=True,
            data={
                "state_version": store.version if store else 0,
                "configurator": configurator.get_stats() if configurator else {},
                "auth": auth_resolver.get_stats() if auth_resolver else {},
                "tracker": tracker.get_stats() if tracker else {},
            },
        ).model_dump()

    return health_router
