from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from llm_quota.core.auth.models import ClaudeCredentialsFile, CodexAuthFile
from llm_quota.core.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "missing_credentials"
UNREADABLE_CREDENTIALS = "unreadable_credentials"
INVALID_CREDENTIALS = "invalid_credentials"

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class Credentials:
    access_token: str = field(repr=False)
    account_id: str | None = field(default=None, repr=False)
    source: str = "env"


class AuthError(Exception):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


CredentialSource = Callable[[Settings], Credentials | None]


def resolve_claude_credentials(settings: Settings | None = None) -> Credentials:
    settings = settings or get_settings()
    return _first_resolved(
        (_claude_from_env, _claude_from_file),
        settings,
        missing_message=(
            "Claude credentials not found: set ANTHROPIC_OAUTH_API_KEY "
            f"or sign in with Claude Code ({settings.claude_credentials_path})"
        ),
    )


def resolve_codex_credentials(settings: Settings | None = None) -> Credentials:
    settings = settings or get_settings()
    return _first_resolved(
        (_codex_from_env, _codex_from_file),
        settings,
        missing_message=(
            "Codex credentials not found: set OPENAI_OAUTH_API_KEY with OPENAI_ACCOUNT_ID "
            f"(or CHATGPT_ACCOUNT_ID), or sign in with Codex ({settings.codex_credentials_path})"
        ),
    )


def _first_resolved(
    sources: Sequence[CredentialSource],
    settings: Settings,
    *,
    missing_message: str,
) -> Credentials:
    for source in sources:
        credentials = source(settings)
        if credentials is not None:
            logger.debug("Credentials resolved source=%s", credentials.source)
            return credentials
    raise AuthError(MISSING_CREDENTIALS, missing_message)


def _claude_from_env(settings: Settings) -> Credentials | None:
    token = _clean(settings.anthropic_oauth_api_key)
    if token is None:
        return None
    return Credentials(access_token=token, source="env")


def _claude_from_file(settings: Settings) -> Credentials | None:
    path = settings.claude_credentials_path
    document = _load_credentials_file(path, ClaudeCredentialsFile)
    if document is None:
        return None
    oauth = document.claude_ai_oauth
    token = _clean(oauth.access_token) if oauth else None
    if token is None:
        raise AuthError(INVALID_CREDENTIALS, f"Credentials file {path} has no claudeAiOauth.accessToken")
    return Credentials(access_token=token, source="file")


def _codex_from_env(settings: Settings) -> Credentials | None:
    token = _clean(settings.openai_oauth_api_key)
    account_id = _clean(settings.openai_account_id)
    if token is None or account_id is None:
        if token is not None or account_id is not None:
            logger.debug("Ignoring incomplete Codex environment credentials")
        return None
    return Credentials(access_token=token, account_id=account_id, source="env")


def _codex_from_file(settings: Settings) -> Credentials | None:
    path = settings.codex_credentials_path
    document = _load_credentials_file(path, CodexAuthFile)
    if document is None:
        return None
    tokens = document.tokens
    token = _clean(tokens.access_token) if tokens else None
    account_id = _clean(tokens.account_id) if tokens else None
    if token is None:
        raise AuthError(INVALID_CREDENTIALS, f"Credentials file {path} has no tokens.access_token")
    if account_id is None:
        raise AuthError(INVALID_CREDENTIALS, f"Credentials file {path} has no tokens.account_id")
    return Credentials(access_token=token, account_id=account_id, source="file")


def _load_credentials_file(path: Path, model: type[ModelT]) -> ModelT | None:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Credentials file unreadable path=%s", path)
        raise AuthError(UNREADABLE_CREDENTIALS, f"Cannot read credentials file {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise AuthError(INVALID_CREDENTIALS, f"Credentials file {path} is not valid JSON: {exc.msg}") from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise AuthError(INVALID_CREDENTIALS, f"Credentials file {path} has an unexpected format") from exc


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
