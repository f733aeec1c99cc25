"""Tests for the credential smoke check entry point."""

import importlib.util
from pathlib import Path

import httpx
import pytest


APP_PATH = Path(__file__).resolve().parents[1] / "apps" / "check_credentials.py"


@pytest.fixture
def app(monkeypatch):
    """Load the entry module with settings and client factory stubbed out."""
    spec = importlib.util.spec_from_file_location("check_credentials", APP_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    module.responses = []
    monkeypatch.setattr(module, "load_settings", lambda: object())
    monkeypatch.setattr(
        module,
        "create_client",
        lambda settings: httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: module.responses.pop(0)),
            base_url="https://api.searchads.apple.com/api/v4/",
        ),
    )
    return module


class TestCheckCredentials:
    """Tests for check_credentials."""

    @pytest.mark.asyncio
    async def test_prints_acls(self, app, capsys):
        """A JSON ACL response is printed and reported as success."""
        app.responses.append(httpx.Response(200, json={"data": [{"orgId": 1}]}))

        assert await app.check_credentials() == 0
        assert '"orgId": 1' in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_http_error_returns_failure(self, app):
        """An error status is reported as failure."""
        app.responses.append(httpx.Response(403, text="forbidden"))

        assert await app.check_credentials() == 1

    @pytest.mark.asyncio
    async def test_non_json_body_returns_failure(self, app):
        """A successful but non-JSON response is reported as failure, not raised."""
        app.responses.append(httpx.Response(200, content=b"<html>maintenance</html>"))

        assert await app.check_credentials() == 1
