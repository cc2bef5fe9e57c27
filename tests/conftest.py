from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest

from llm_quota.core.config.settings import get_settings

_ENV_VARS = (
    "ANTHROPIC_OAUTH_API_KEY",
    "ANTHROPIC_BASE_URL",
    "OPENAI_OAUTH_API_KEY",
    "OPENAI_ACCOUNT_ID",
    "CHATGPT_ACCOUNT_ID",
    "CHATGPT_BASE_URL",
    "CODEX_HOME",
    "LLM_QUOTA_CLAUDE_CREDENTIALS",
    "LLM_QUOTA_CODEX_CREDENTIALS",
    "LLM_QUOTA_TIMEOUT_SECONDS",
    "LLM_QUOTA_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    get_settings.cache_clear()
    yield home
    get_settings.cache_clear()


@pytest.fixture
def write_claude_credentials(isolated_env: Path):
    def _write(payload: object) -> Path:
        path = isolated_env / ".claude" / ".credentials.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_codex_credentials(isolated_env: Path):
    def _write(payload: object) -> Path:
        path = isolated_env / ".codex" / "auth.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
