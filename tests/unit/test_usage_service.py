from __future__ import annotations

import json

import pytest

from llm_quota.core.clients.http import TransportError
from llm_quota.core.config.settings import get_settings
from llm_quota.modules.usage import service
from llm_quota.modules.usage.service import EXIT_AUTH_ERROR, EXIT_FAILURE, EXIT_OK, run

pytestmark = pytest.mark.unit


class FakeResponse:
    def __init__(self, status: int, body: bytes) -> None:
        self.status = status
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, status: int, body: bytes) -> None:
        self._response = FakeResponse(status, body)
        self.calls: list[dict[str, object]] = []

    def get(self, url: str, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers})
        return self._response


@pytest.mark.asyncio
async def test_run_claude_success(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ANTHROPIC_OAUTH_API_KEY", "claude-token")
    body = {"five_hour": {"utilization": 40, "resets_at": "2025-11-04T05:00:00+00:00"}}
    session = FakeSession(200, json.dumps(body).encode())

    envelope, exit_code = await run("claude", session=session)

    assert exit_code == EXIT_OK
    assert envelope.to_payload() == {
        "ok": True,
        "usage": body,
        "summary": {"five_hour": {"utilization": 40, "percent_left": 60, "resets_at": "2025-11-04T05:00:00+00:00"}},
    }
    call = session.calls[0]
    assert call["url"] == "https://api.anthropic.com/api/oauth/usage"
    headers = call["headers"]
    assert headers["Authorization"] == "Bearer claude-token"
    assert headers["anthropic-beta"] == "oauth-2025-04-20"


@pytest.mark.asyncio
async def test_run_codex_sends_account_header_to_overridden_base_url(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("OPENAI_OAUTH_API_KEY", "codex-token")
    monkeypatch.setenv("CHATGPT_ACCOUNT_ID", "acct-1")
    monkeypatch.setenv("CHATGPT_BASE_URL", "http://localhost:9000/")
    session = FakeSession(200, b'{"rate_limit": {"primary_window": {"used_percent": 3}}}')

    envelope, exit_code = await run("codex", session=session)

    assert exit_code == EXIT_OK
    assert envelope.summary == {"five_hour": {"used_percent": 3}}
    call = session.calls[0]
    assert call["url"] == "http://localhost:9000/backend-api/wham/usage"
    headers = call["headers"]
    assert headers["Authorization"] == "Bearer codex-token"
    assert headers["ChatGPT-Account-Id"] == "acct-1"


@pytest.mark.asyncio
async def test_run_missing_credentials_exits_with_auth_code():
    session = FakeSession(200, b"{}")

    envelope, exit_code = await run("codex", session=session)

    assert exit_code == EXIT_AUTH_ERROR
    payload = envelope.to_payload()
    assert payload["ok"] is False
    assert set(payload) == {"ok", "error"}
    assert session.calls == []


@pytest.mark.asyncio
async def test_run_http_error_exits_with_failure(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ANTHROPIC_OAUTH_API_KEY", "claude-token")

    envelope, exit_code = await run("claude", session=FakeSession(500, b"server error"))

    assert exit_code == EXIT_FAILURE
    assert envelope.to_payload() == {"ok": False, "error": "http status 500", "response_body": "server error"}


@pytest.mark.asyncio
async def test_run_invalid_json_exits_with_failure(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ANTHROPIC_OAUTH_API_KEY", "claude-token")

    envelope, exit_code = await run("claude", session=FakeSession(200, b"not json"))

    assert exit_code == EXIT_FAILURE
    payload = envelope.to_payload()
    assert payload["error"].startswith("invalid json")
    assert "response_body" not in payload


@pytest.mark.asyncio
async def test_run_transport_error_exits_with_failure(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ANTHROPIC_OAUTH_API_KEY", "claude-token")

    async def _fail(*args, **kwargs):
        raise TransportError("request failed: connection refused")

    monkeypatch.setattr(service.http, "get", _fail)

    envelope, exit_code = await run("claude", settings=get_settings())

    assert exit_code == EXIT_FAILURE
    assert envelope.to_payload() == {"ok": False, "error": "request failed: connection refused"}


@pytest.mark.asyncio
async def test_run_never_embeds_credentials_in_output(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("OPENAI_OAUTH_API_KEY", "very-secret-token")
    monkeypatch.setenv("OPENAI_ACCOUNT_ID", "very-secret-account")

    envelope, _ = await run("codex", session=FakeSession(403, b"forbidden"))

    text = json.dumps(envelope.to_payload())
    assert "very-secret-token" not in text
    assert "very-secret-account" not in text


@pytest.mark.asyncio
async def test_run_non_standard_number_exits_with_failure(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ANTHROPIC_OAUTH_API_KEY", "claude-token")
    session = FakeSession(200, b'{"five_hour": {"utilization": NaN, "resets_at": null}}')

    envelope, exit_code = await run("claude", session=session)

    assert exit_code == EXIT_FAILURE
    assert envelope.to_payload()["error"].startswith("invalid json")
