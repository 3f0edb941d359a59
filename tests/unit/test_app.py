"""Unit tests for the app entry point and the JSON error envelope."""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

import src.api.app as app_module
from src.api.app import create_app
from src.core.config import get_settings
from src.core.exceptions import BackendError, RecordNotFoundError, TaskTimeoutError


@pytest.fixture
async def client():
    app = create_app()

    @app.get("/boom/backend")
    async def backend_down():
        raise BackendError("Backend timed out", category="timeout")

    @app.get("/boom/timeout")
    async def poll_timeout():
        raise TaskTimeoutError("t9", attempts=60)

    @app.get("/boom/missing")
    async def missing():
        raise RecordNotFoundError("gone.mp3")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


class TestErrorEnvelope:
    async def test_backend_category_is_exposed(self, client):
        resp = await client.get("/boom/backend")

        assert resp.status_code == 502
        body = resp.json()
        assert body["code"] == "BACKEND_ERROR"
        assert body["context"] == {"category": "timeout", "response_status": None}

    async def test_task_id_is_exposed(self, client):
        resp = await client.get("/boom/timeout")

        body = resp.json()
        assert body["context"] == {"task_id": "t9", "attempts": 60}
        assert "t9" in body["detail"]

    async def test_plain_errors_have_no_context(self, client):
        resp = await client.get("/boom/missing")

        assert resp.status_code == 404
        body = resp.json()
        assert set(body) == {"detail", "code", "timestamp"}


class TestMain:
    def test_serves_on_default_bind(self):
        with patch.object(app_module.uvicorn, "run") as run:
            app_module.main()

        run.assert_called_once_with(
            app_module.app, host="0.0.0.0", port=8100, log_level="info"
        )

    def test_bind_comes_from_environment(self, monkeypatch):
        monkeypatch.setenv("APP_HOST", "127.0.0.1")
        monkeypatch.setenv("APP_PORT", "9001")
        get_settings.cache_clear()

        with patch.object(app_module.uvicorn, "run") as run:
            app_module.main()

        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 9001
