"""Pydantic Settings for the multiproxy service.

All environment variables use the MULTIPROXY_ prefix.
Example: MULTIPROXY_PORT=8765, MULTIPROXY_STATE_PATH=/var/lib/multiproxy/state.json
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from multiproxy.config.domain_categories import DEFAULT_CATEGORIES_PATH


class MultiproxySettings(BaseSettings):
    """Service configuration validated from environment variables."""

    # Service
    host: str = "127.0.0.1"
    port: int = Field(default=8765, ge=1, le=65535)
    log_level: str = "INFO"
    log_json: bool = True

    # State persistence
    state_path: str = "multiproxy_state.json"

    # Network configuration output
    pac_output_path: str | None = None  # Also write installed PAC scripts here
    config_history_size: int = Field(default=50, ge=1)

    # Auth loop guard
    auth_max_attempts: int = Field(default=3, ge=1)

    # Domain tracker
    max_tracked_hosts: int = Field(default=10_000, ge=1)
    domain_categories_path: str = DEFAULT_CATEGORIES_PATH

    model_config = {"env_prefix": "MULTIPROXY_"}
