from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from operator import attrgetter

from llm_quota.core.auth.credentials import Credentials, resolve_claude_credentials, resolve_codex_credentials
from llm_quota.core.config.settings import Settings
from llm_quota.core.types import JsonValue
from llm_quota.modules.usage.summary import summarize_claude, summarize_codex
from llm_quota.modules.usage.types import ProviderConfig, Summary

ANTHROPIC_BETA = "oauth-2025-04-20"


@dataclass(frozen=True, slots=True)
class UsageProvider:
    name: str
    usage_path: str
    base_url: Callable[[Settings], str]
    resolve_credentials: Callable[[Settings], Credentials]
    build_headers: Callable[[Credentials], dict[str, str]]
    summarize: Callable[[JsonValue], Summary]

    def config(self, settings: Settings) -> ProviderConfig:
        return ProviderConfig(base_url=self.base_url(settings))

    def usage_url(self, config: ProviderConfig) -> str:
        return f"{config.base_url}{self.usage_path}"


def _claude_headers(credentials: Credentials) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {credentials.access_token}",
        "anthropic-beta": ANTHROPIC_BETA,
        "Accept": "application/json",
    }


def _codex_headers(credentials: Credentials) -> dict[str, str]:
    if not credentials.account_id:
        raise ValueError("Codex credentials require an account id")
    return {
        "Authorization": f"Bearer {credentials.access_token}",
        "ChatGPT-Account-Id": credentials.account_id,
        "Accept": "application/json",
    }


PROVIDERS: dict[str, UsageProvider] = {
    "claude": UsageProvider(
        name="claude",
        usage_path="/api/oauth/usage",
        base_url=attrgetter("anthropic_base_url"),
        resolve_credentials=resolve_claude_credentials,
        build_headers=_claude_headers,
        summarize=summarize_claude,
    ),
    "codex": UsageProvider(
        name="codex",
        usage_path="/backend-api/wham/usage",
        base_url=attrgetter("chatgpt_base_url"),
        resolve_credentials=resolve_codex_credentials,
        build_headers=_codex_headers,
        summarize=summarize_codex,
    ),
}


def get_provider(name: str) -> UsageProvider:
    try:
        return PROVIDERS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown provider: {name}") from exc
