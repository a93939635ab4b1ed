"""Unit tests for MultiproxySettings."""

import pytest

from multiproxy.config.domain_categories import DEFAULT_CATEGORIES_PATH
from multiproxy.config.settings import MultiproxySettings


class TestMultiproxySettings:
    def test_defaults_are_correct(self, monkeypatch: pytest.MonkeyPatch):
        for key in ("MULTIPROXY_PORT", "MULTIPROXY_AUTH_MAX_ATTEMPTS", "MULTIPROXY_LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)

        settings = MultiproxySettings()

        assert settings.host == "127.0.0.1"
        assert settings.port == 8765
        assert settings.log_level == "INFO"
        assert settings.log_json is True
        assert settings.state_path == "multiproxy_state.json"
        assert settings.pac_output_path is None
        assert settings.config_history_size == 50
        assert settings.auth_max_attempts == 3
        assert settings.max_tracked_hosts == 10_000
        assert settings.domain_categories_path == DEFAULT_CATEGORIES_PATH

    def test_env_prefix_is_multiproxy(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MULTIPROXY_PORT", "9000")
        monkeypatch.setenv("MULTIPROXY_AUTH_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("MULTIPROXY_LOG_JSON", "false")

        settings = MultiproxySettings()
        assert settings.port == 9000
        assert settings.auth_max_attempts == 5
        assert settings.log_json is False

    def test_invalid_values_raise(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MULTIPROXY_AUTH_MAX_ATTEMPTS", "0")
        with pytest.raises(Exception):
            MultiproxySettings()

    def test_history_size_must_be_positive(self):
        with pytest.raises(Exception):
            MultiproxySettings(config_history_size=0)

    def test_port_out_of_range(self):
        with pytest.raises(Exception):
            MultiproxySettings(port=70000)
