"""FastAPI application entry point with lifespan management.

Startup: load and migrate persisted state, which installs the first network
configuration through the configurator subscription.
Shutdown: log the final state version.

Run with ``uvicorn multiproxy.main:app``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI

from multiproxy.config.domain_categories import load_category_lists
from multiproxy.config.settings import MultiproxySettings
from multiproxy.logging_config import configure_logging
from multiproxy.middleware.error_handler import register_error_handlers
from multiproxy.network.configurator import ProxyConfigurator
from multiproxy.network.sink import AuthListenerRegistry, RecordingNetworkSink
from multiproxy.routers.control import create_control_router
from multiproxy.routers.health import create_health_router
from multiproxy.routing.auth import AuthResolver
from multiproxy.services.commands import CommandService
from multiproxy.store.state_store import StateStore
from multiproxy.store.storage import JsonFileStorage, KeyValueStorage
from multiproxy.tracking.domain_tracker import DomainTracker

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Component graph shared by the routers."""

    settings: MultiproxySettings
    store: StateStore
    tracker: DomainTracker
    auth_resolver: AuthResolver
    auth_registry: AuthListenerRegistry
    sink: RecordingNetworkSink
    configurator: ProxyConfigurator
    commands: CommandService


def build_services(
    settings: MultiproxySettings,
    storage: KeyValueStorage | None = None,
) -> Services:
    """Create and wire all components. Nothing is loaded until ``store.load()``."""
    store = StateStore(storage or JsonFileStorage(settings.state_path))

    tracker = DomainTracker(
        category_lists=load_category_lists(settings.domain_categories_path),
        max_tracked_hosts=settings.max_tracked_hosts,
    )

    auth_resolver = AuthResolver(store.snapshot, max_attempts=settings.auth_max_attempts)
    auth_registry = AuthListenerRegistry()
    sink = RecordingNetworkSink(
        pac_output_path=settings.pac_output_path,
        history_size=settings.config_history_size,
    )

    configurator = ProxyConfigurator(
        sink=sink,
        registry=auth_registry,
        auth_listener=auth_resolver.handle,
    )
    store.subscribe(configurator.on_state_change)

    return Services(
        settings=settings,
        store=store,
        tracker=tracker,
        auth_resolver=auth_resolver,
        auth_registry=auth_registry,
        sink=sink,
        configurator=configurator,
        commands=CommandService(store, tracker),
    )


def create_app(
    settings: MultiproxySettings | None = None,
    storage: KeyValueStorage | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``storage`` overrides the JSON file backend (tests pass ``MemoryStorage``).
    """
    settings = settings or MultiproxySettings()
    services = build_services(settings, storage)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan: startup and shutdown logic."""
        configure_logging(settings.log_level, json_output=settings.log_json)
        logger.info("Starting multiproxy on %s:%d", settings.host, settings.port)

        await services.store.load()
        logger.info("Multiproxy started")

        yield

        logger.info(
            "Shutting down multiproxy (state version %d)", services.store.version
        )

    app = FastAPI(
        title="Multiproxy Routing Service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    register_error_handlers(app)

    app.include_router(
        create_health_router(
            store=services.store,
            configurator=services.configurator,
            auth_resolver=services.auth_resolver,
            tracker=services.tracker,
        )
    )
    app.include_router(
        create_control_router(
            store=services.store,
            commands=services.commands,
            tracker=services.tracker,
            auth_registry=services.auth_registry,
            sink=services.sink,
        )
    )

    return app


app = create_app()
