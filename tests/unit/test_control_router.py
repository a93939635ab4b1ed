"""HTTP API tests against the fully wired application."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from multiproxy.main import create_app
from multiproxy.store.state_store import STATE_KEY
from multiproxy.store.storage import MemoryStorage


@pytest.fixture
def client(app_settings, storage):
    app = create_app(app_settings, storage=storage)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def _import(client, text="u:p@h1:8001\nh2:8002"):
    resp = client.post("/api/v1/proxies/import", json={"text": text})
    assert resp.status_code == 200
    return resp.json()["data"]


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert body["data"]["routing"] == {"mode": "global", "proxies": 0, "active": 0}

    def test_metrics(self, client):
        data = client.get("/metrics").json()["data"]
        assert data["state_version"] == 1
        assert data["configurator"]["applied"] == 1
        assert data["auth"]["max_attempts"] == 3
        assert data["tracker"]["tracked_hosts"] == 0


class TestState:
    def test_startup_installs_clear_config(self, client):
        assert client.get("/api/v1/config").json()["data"] == {"kind": "clear"}

    def test_state_omits_passwords(self, client):
        data = _import(client)
        first = data["proxies"][0]
        assert "password" not in first
        assert first["id"] == "h1:8001"
        assert first["has_credentials"] is True
        assert first["usable"] is False

    def test_startup_loads_persisted_legacy_state(self, app_settings):
        storage = MemoryStorage({
            STATE_KEY: {
                "proxies": [{"host": "h", "port": "1", "active": True}],
                "settings": {"mode": "selected", "selectedDomains": ["x.com"]},
            }
        })
        with TestClient(create_app(app_settings, storage=storage)) as client:
            data = client.get("/api/v1/state").json()["data"]
            assert data["settings"]["mode"] == "domain-based"
            assert data["proxies"][0]["domains"] == ["x.com"]
            assert client.get("/api/v1/config").json()["data"]["kind"] == "pac_script"

    def test_replace_state(self, client):
        doc = {"proxies": [{"host": "h", "port": "1", "active": True}], "settings": {"mode": "all"}}
        resp = client.put("/api/v1/state", json=doc)
        assert resp.status_code == 200
        assert resp.json()["data"]["settings"]["mode"] == "global"
        assert client.get("/api/v1/config").json()["data"] == {
            "kind": "fixed_servers", "scheme": "http", "host": "h", "port": 1,
        }

    def test_replace_state_rejects_malformed(self, client):
        resp = client.put("/api/v1/state", json={"proxies": "x", "settings": {}})
        assert resp.status_code == 422
        assert resp.json()["error"] == "Invalid state document"

    def test_set_mode(self, client):
        resp = client.put("/api/v1/settings/mode", json={"mode": "domain-based"})
        assert resp.json()["data"]["settings"]["mode"] == "domain-based"

    def test_set_mode_rejects_unknown(self, client):
        resp = client.put("/api/v1/settings/mode", json={"mode": "sometimes"})
        assert resp.status_code == 422

    def test_backup_and_restore(self, client):
        _import(client)
        assert client.post("/api/v1/state/backup").json()["data"] == {"backed_up": True}
        client.delete("/api/v1/proxies/0")
        client.delete("/api/v1/proxies/0")

        resp = client.post("/api/v1/state/restore")
        assert resp.status_code == 200
        assert len(resp.json()["data"]["proxies"]) == 2

    def test_restore_without_backup(self, client):
        resp = client.post("/api/v1/state/restore")
        assert resp.status_code == 404
        assert resp.json()["error"] == "No valid backup available"


class TestProxies:
    def test_toggle_installs_config_and_auth_listener(self, client):
        _import(client)
        client.post("/api/v1/proxies/0/toggle")
        assert client.get("/api/v1/config").json()["data"]["host"] == "h1"
        assert client.get("/metrics").json()["data"]["configurator"]["auth_listener_registered"] is True

    def test_update(self, client):
        _import(client)
        resp = client.patch("/api/v1/proxies/1", json={"name": "Two", "domains": ["*.x.com"]})
        assert resp.status_code == 200
        assert resp.json()["data"]["proxies"][1]["name"] == "Two"

    def test_update_invalid(self, client):
        _import(client)
        resp = client.patch("/api/v1/proxies/1", json={"port": "abc"})
        assert resp.status_code == 422
        assert resp.json()["meta"]["fields"]["port"] == "Port must be a number"

    def test_missing_index(self, client):
        resp = client.post("/api/v1/proxies/9/toggle")
        assert resp.status_code == 404
        assert resp.json()["meta"] == {"index": 9}

    def test_import_requires_text(self, client):
        assert client.post("/api/v1/proxies/import", json={"text": ""}).status_code == 422


class TestDomains:
    def test_add_domain_switches_to_pac(self, client):
        _import(client)
        client.post("/api/v1/proxies/1/toggle")
        resp = client.post("/api/v1/domains", json={"domain": "x.com"})
        assert resp.json()["data"]["settings"]["mode"] == "domain-based"

        pac = client.get("/proxy.pac")
        assert pac.status_code == 200
        assert "FindProxyForURL" in pac.text
        assert "PROXY h2:8002" in pac.text

    def test_add_domain_without_active_proxy(self, client):
        _import(client)
        assert client.post("/api/v1/domains", json={"domain": "x.com"}).status_code == 404

    def test_remove_domain(self, client):
        _import(client)
        client.post("/api/v1/proxies/0/toggle")
        client.post("/api/v1/domains", json={"domain": "x.com"})
        data = client.delete("/api/v1/domains/x.com").json()["data"]
        assert data["proxies"][0]["domains"] == []

    def test_conflicts(self, client):
        client.put("/api/v1/state", json={
            "proxies": [
                {"host": "a", "port": "1", "active": True, "domains": ["x.com"], "priority": 1},
                {"host": "b", "port": "2", "active": True, "domains": ["x.com"], "priority": 0},
            ],
            "settings": {"mode": "domain-based"},
        })
        data = client.get("/api/v1/domains/conflicts").json()["data"]
        assert data == [{"domain": "x.com", "proxy_ids": ["b:2", "a:1"], "winner": "b:2"}]

    def test_no_pac_in_global_mode(self, client):
        assert client.get("/proxy.pac").status_code == 404


class TestMessages:
    def test_domains_for_tab(self, client):
        _import(client)
        client.post("/api/v1/proxies/0/toggle")
        client.post("/api/v1/domains", json={"domain": "x.com"})

        client.post("/api/v1/requests", json={"url": "https://api.x.com/v1", "tab_id": 5})
        client.post("/api/v1/requests", json={"url": "https://other.org/", "tab_id": 5})

        resp = client.post("/api/v1/messages", json={"type": "GET_CURRENT_DOMAINS", "tabId": 5})
        items = {item["domain"]: item for item in resp.json()["data"]}
        assert items["api.x.com"]["proxyId"] == "h1:8001"
        assert items["other.org"]["proxyId"] is None

    def test_assign_domain(self, client):
        _import(client)
        client.post("/api/v1/proxies/1/toggle")
        resp = client.post(
            "/api/v1/messages",
            json={"type": "ASSIGN_DOMAIN_TO_PROXY", "data": {"domain": "y.com", "proxyId": "h2:8002"}},
        )
        assert resp.json() == {
            "success": True,
            "data": {"domain": "y.com", "proxyId": "h2:8002"},
            "error": None,
            "meta": None,
        }

    def test_available_proxies(self, client):
        _import(client)
        client.post("/api/v1/proxies/1/toggle")
        data = client.post("/api/v1/messages", json={"type": "GET_AVAILABLE_PROXIES"}).json()["data"]
        assert [p["id"] for p in data] == ["h2:8002"]

    def test_invalid_message(self, client):
        resp = client.post("/api/v1/messages", json={"type": "DO_SOMETHING"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Invalid message"
        assert body["meta"]["fields"]


class TestTracking:
    def test_request_tracked(self, client):
        data = client.post("/api/v1/requests", json={"url": "https://cdn.jsdelivr.net/x.js", "tab_id": 1}).json()["data"]
        assert data == {"tracked": True, "domain": "cdn.jsdelivr.net", "category": "cdn"}

    @pytest.mark.parametrize(
        "payload",
        [
            {"url": "http://localhost:3000/", "tab_id": 1},
            {"url": "https://example.com/", "tab_id": -1},
        ],
    )
    def test_request_not_tracked(self, client, payload):
        assert client.post("/api/v1/requests", json=payload).json()["data"] == {"tracked": False}

    def test_close_tab(self, client):
        client.post("/api/v1/requests", json={"url": "https://example.com/", "tab_id": 2})
        assert client.delete("/api/v1/tabs/2").json()["data"] == {"tab_id": 2, "cleared": True}
        data = client.post("/api/v1/messages", json={"type": "GET_CURRENT_DOMAINS", "tabId": 2}).json()["data"]
        assert data == []


class TestAuthChallenge:
    def test_no_listener_gives_empty_answer(self, client):
        resp = client.post("/api/v1/auth/challenge", json={"url": "http://x.com/", "request_id": "r1"})
        assert resp.json()["data"] == {}

    def test_credentials_then_loop_guard(self, client):
        _import(client)
        client.post("/api/v1/proxies/0/toggle")
        challenge = {"url": "http://x.com/", "request_id": "r1"}

        for _ in range(2):
            data = client.post("/api/v1/auth/challenge", json=challenge).json()["data"]
            assert data == {"username": "u", "password": "p"}

        assert client.post("/api/v1/auth/challenge", json=challenge).json()["data"] == {}
        assert client.get("/metrics").json()["data"]["auth"]["refused"] == 1
