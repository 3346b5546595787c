"""Small JSON-over-HTTP helper shared by the API clients."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from ..constants import HTTP_REQUEST_TIMEOUT_SECONDS, HTTP_USER_AGENT
from ..errors.handling import handle_api_error


def default_timeout() -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(total=HTTP_REQUEST_TIMEOUT_SECONDS)


async def fetch_json(
    session: aiohttp.ClientSession,
    url: str,
    context: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET ``url`` and decode its JSON body.

    Raises:
        NetworkError, RateLimitError, ParsingError: see ``handle_api_error``.
    """
    request_headers = {"User-Agent": HTTP_USER_AGENT, "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    async def operation() -> Any:
        async with session.get(
            url, params=params, headers=request_headers, timeout=default_timeout()
        ) as resp:
            logging.debug(
                f"HTTP response: status={resp.status}, "
                f"content-type={resp.headers.get('content-type', 'none')}, url={url}"
            )
            resp.raise_for_status()
            return await resp.json(content_type=None)

    return await handle_api_error(operation, context)
