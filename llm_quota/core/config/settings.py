from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"
DEFAULT_CHATGPT_BASE_URL = "https://chatgpt.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


def _default_claude_credentials_path() -> Path:
    return Path.home() / ".claude" / ".credentials.json"


def _default_codex_credentials_path() -> Path:
    codex_home = os.environ.get("CODEX_HOME")
    if codex_home:
        return Path(codex_home).expanduser() / "auth.json"
    return Path.home() / ".codex" / "auth.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_ignore_empty=True, extra="ignore")

    anthropic_oauth_api_key: str | None = Field(default=None, validation_alias="ANTHROPIC_OAUTH_API_KEY")
    anthropic_base_url: str = Field(default=DEFAULT_ANTHROPIC_BASE_URL, validation_alias="ANTHROPIC_BASE_URL")
    openai_oauth_api_key: str | None = Field(default=None, validation_alias="OPENAI_OAUTH_API_KEY")
    openai_account_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_ACCOUNT_ID", "CHATGPT_ACCOUNT_ID"),
    )
    chatgpt_base_url: str = Field(default=DEFAULT_CHATGPT_BASE_URL, validation_alias="CHATGPT_BASE_URL")
    claude_credentials_path: Path = Field(
        default_factory=_default_claude_credentials_path,
        validation_alias="LLM_QUOTA_CLAUDE_CREDENTIALS",
    )
    codex_credentials_path: Path = Field(
        default_factory=_default_codex_credentials_path,
        validation_alias="LLM_QUOTA_CODEX_CREDENTIALS",
    )
    request_timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        validation_alias="LLM_QUOTA_TIMEOUT_SECONDS",
    )
    log_level: str = Field(default="WARNING", validation_alias="LLM_QUOTA_LOG_LEVEL")

    @field_validator("anthropic_base_url", "chatgpt_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped:
            raise ValueError("base URL must not be empty")
        return stripped

    @field_validator("claude_credentials_path", "codex_credentials_path")
    @classmethod
    def _expand_path(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
