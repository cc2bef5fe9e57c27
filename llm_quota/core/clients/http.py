from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass

import aiohttp

from llm_quota import __version__

USER_AGENT = f"llm-quota/{__version__}"

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: bytes


class TransportError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


async def get(
    url: str,
    *,
    headers: Mapping[str, str],
    timeout_seconds: float,
    session: aiohttp.ClientSession | None = None,
) -> HttpResponse:
    """Issue one GET request and return the status and raw body.

    Any HTTP status is returned as-is. Only failures where no response was
    received are raised, as ``TransportError``.
    """
    request_headers = {"User-Agent": USER_AGENT, **headers}
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    try:
        if session is not None:
            return await _read_response(session, url, request_headers, timeout)
        async with aiohttp.ClientSession() as client_session:
            return await _read_response(client_session, url, request_headers, timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("Request timed out url=%s timeout=%s", url, timeout_seconds)
        raise TransportError(f"request timed out after {timeout_seconds:g}s") from exc
    except aiohttp.ClientError as exc:
        logger.warning("Request failed url=%s error=%s", url, type(exc).__name__)
        raise TransportError(f"request failed: {str(exc) or type(exc).__name__}") from exc


async def _read_response(
    session: aiohttp.ClientSession,
    url: str,
    headers: dict[str, str],
    timeout: aiohttp.ClientTimeout,
) -> HttpResponse:
    async with session.get(url, headers=headers, timeout=timeout) as resp:
        body = await resp.read()
        return HttpResponse(status=resp.status, body=body)
