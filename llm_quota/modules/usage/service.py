from __future__ import annotations

import json
import logging
import math

import aiohttp

from llm_quota.core.auth.credentials import AuthError
from llm_quota.core.clients import http
from llm_quota.core.clients.http import TransportError
from llm_quota.core.config.settings import Settings, get_settings
from llm_quota.modules.usage.providers import get_provider
from llm_quota.modules.usage.types import UsageEnvelope

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_AUTH_ERROR = 2

logger = logging.getLogger(__name__)


def normalize(provider_name: str, status: int, body: bytes) -> UsageEnvelope:
    provider = get_provider(provider_name)
    if not 200 <= status < 300:
        return UsageEnvelope.failure(
            f"http status {status}",
            response_body=body.decode("utf-8", errors="replace"),
        )
    try:
        usage = json.loads(body, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as exc:
        return UsageEnvelope.failure(f"invalid json: {exc}")
    except RecursionError:
        return UsageEnvelope.failure("invalid json: document nested too deeply")
    return UsageEnvelope.success(usage, provider.summarize(usage))


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-standard constant {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range {text}")
    return value


async def run(
    provider_name: str,
    *,
    settings: Settings | None = None,
    session: aiohttp.ClientSession | None = None,
) -> tuple[UsageEnvelope, int]:
    settings = settings or get_settings()
    provider = get_provider(provider_name)
    config = provider.config(settings)

    try:
        credentials = provider.resolve_credentials(settings)
    except AuthError as exc:
        logger.warning("Credential resolution failed provider=%s code=%s", provider.name, exc.code)
        return UsageEnvelope.failure(exc.message), EXIT_AUTH_ERROR

    url = provider.usage_url(config)
    logger.info("Fetching usage provider=%s url=%s source=%s", provider.name, url, credentials.source)
    try:
        response = await http.get(
            url,
            headers=provider.build_headers(credentials),
            timeout_seconds=settings.request_timeout_seconds,
            session=session,
        )
    except TransportError as exc:
        return UsageEnvelope.failure(exc.message), EXIT_FAILURE

    envelope = normalize(provider.name, response.status, response.body)
    if not envelope.ok:
        logger.warning("Usage request failed provider=%s status=%s", provider.name, response.status)
        return envelope, EXIT_FAILURE
    return envelope, EXIT_OK
