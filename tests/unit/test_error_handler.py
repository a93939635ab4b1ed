"""Unit tests for the error hierarchy and FastAPI exception handlers."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from multiproxy.middleware.error_handler import (
    BackupNotFoundError,
    InvalidProxyError,
    InvalidStateError,
    MultiproxyError,
    ProxyNotFoundError,
    ValidationError,
    register_error_handlers,
)


# ---------------------------------------------------------------------------
# Test app fixture
# ---------------------------------------------------------------------------


def _make_app() -> FastAPI:
    """Build a minimal FastAPI app with error handlers registered."""
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/raise-base")
    async def _raise_base():
        raise MultiproxyError()

    @app.get("/raise-invalid-proxy")
    async def _raise_invalid_proxy():
        raise InvalidProxyError(fields={"port": "Port must be a number"})

    @app.get("/raise-invalid-state")
    async def _raise_invalid_state():
        raise InvalidStateError()

    @app.get("/raise-not-found")
    async def _raise_not_found():
        raise ProxyNotFoundError()

    @app.get("/raise-no-backup")
    async def _raise_no_backup():
        raise BackupNotFoundError()

    @app.get("/raise-custom-message")
    async def _raise_custom():
        raise ProxyNotFoundError("No proxy at index 4", index=4)

    @app.get("/raise-unhandled")
    async def _raise_unhandled():
        raise RuntimeError("something unexpected")

    class Payload(BaseModel):
        host: str
        port: int

    @app.post("/validate")
    async def _validate(payload: Payload):
        return {"ok": True}

    return app


@pytest.fixture()
def client():
    return TestClient(_make_app(), raise_server_exceptions=False)


# ---------------------------------------------------------------------------
# Error hierarchy tests
# ---------------------------------------------------------------------------


class TestErrorHierarchy:
    """All custom errors are subclasses of MultiproxyError."""

    def test_all_subclass_base(self):
        for cls in (ValidationError, InvalidProxyError, InvalidStateError, ProxyNotFoundError, BackupNotFoundError):
            assert issubclass(cls, MultiproxyError)

    def test_default_messages(self):
        assert MultiproxyError().message == "Internal server error"
        assert ValidationError().message == "Validation error"
        assert InvalidProxyError().message == "Invalid proxy entry"
        assert InvalidStateError().message == "Invalid state document"
        assert ProxyNotFoundError().message == "Proxy not found"
        assert BackupNotFoundError().message == "No valid backup available"

    def test_custom_message_override(self):
        err = ProxyNotFoundError("Proxy 'a:1' not found")
        assert err.message == "Proxy 'a:1' not found"
        assert str(err) == "Proxy 'a:1' not found"

    def test_details_kwargs(self):
        err = InvalidProxyError(fields={"host": "Host is required"})
        assert err.details == {"fields": {"host": "Host is required"}}


# ---------------------------------------------------------------------------
# Exception handler tests
# ---------------------------------------------------------------------------


class TestExceptionHandlers:
    """FastAPI exception handlers return correct envelope and status codes."""

    @pytest.mark.parametrize(
        "path,expected_status,expected_error",
        [
            ("/raise-base", 500, "Internal server error"),
            ("/raise-invalid-proxy", 422, "Invalid proxy entry"),
            ("/raise-invalid-state", 422, "Invalid state document"),
            ("/raise-not-found", 404, "Proxy not found"),
            ("/raise-no-backup", 404, "No valid backup available"),
        ],
    )
    def test_error_envelope(self, client, path, expected_status, expected_error):
        resp = client.get(path)
        assert resp.status_code == expected_status
        body = resp.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["error"] == expected_error

    def test_details_in_meta(self, client):
        body = client.get("/raise-invalid-proxy").json()
        assert body["meta"] == {"fields": {"port": "Port must be a number"}}

    def test_no_details_means_null_meta(self, client):
        assert client.get("/raise-not-found").json()["meta"] is None

    def test_custom_message_in_response(self, client):
        resp = client.get("/raise-custom-message")
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "No proxy at index 4"
        assert body["meta"] == {"index": 4}

    def test_pydantic_request_validation_error(self, client):
        resp = client.post("/validate", json={"host": 123})
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Validation error"
        assert len(body["meta"]["fields"]) > 0

    def test_unhandled_exception_returns_500(self, client):
        resp = client.get("/raise-unhandled")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Internal server error"
        assert body["data"] is None
