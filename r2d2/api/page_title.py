"""Fetch the <title> of web pages linked in the channel."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import re
import socket
from collections.abc import Awaitable, Callable
from urllib.parse import urljoin, urlsplit

import aiohttp
from bs4 import BeautifulSoup

from ..constants import HTTP_USER_AGENT, PAGE_TITLE_MAX_BYTES
from ..errors.handling import handle_api_error
from ..logs.logger import logger
from .http import default_timeout

URL_PATTERN = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)
_MAX_TITLE_CHARS = 200
MAX_REDIRECTS = 3
_REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

Resolver = Callable[[str, int], Awaitable[list[str]]]


def extract_urls(text: str) -> list[str]:
    # Trailing punctuation is almost always prose, not part of the link
    return [u.rstrip(".,;:!?)]}") for u in URL_PATTERN.findall(text)]


def extract_title(document: str) -> str | None:
    soup = BeautifulSoup(document, "html.parser")
    if soup.title is None:
        return None
    title = " ".join(soup.title.get_text().split())
    if not title:
        return None
    if len(title) > _MAX_TITLE_CHARS:
        title = title[: _MAX_TITLE_CHARS - 1] + "…"
    return title


def is_public_address(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return ip.is_global and not (ip.is_multicast or ip.is_reserved)


async def resolve_host(host: str, port: int) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


class PageTitleFetcher:
    """Read page titles, refusing anything that is not a public web host.

    Every hop of a redirect chain is checked the same way as the first URL,
    so a public page cannot bounce the bot onto a private address.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        max_bytes: int = PAGE_TITLE_MAX_BYTES,
        resolver: Resolver | None = None,
    ):
        self._session = session
        self.max_bytes = max_bytes
        self.resolver = resolver

    async def blocked_reason(self, url: str) -> str | None:
        """Return why ``url`` must not be fetched, or None when it is allowed."""
        try:
            parts = urlsplit(url)
            port = parts.port or (443 if parts.scheme == "https" else 80)
        except ValueError:
            return "malformed url"
        if parts.scheme not in ("http", "https"):
            return "unsupported scheme"
        if parts.username or parts.password:
            return "embedded credentials"
        host = (parts.hostname or "").rstrip(".").lower()
        if not host or host == "localhost":
            return "not a public host"
        try:
            ipaddress.ip_address(host)
        except ValueError:
            pass
        else:
            return None if is_public_address(host) else "not a public address"
        resolve = self.resolver or resolve_host
        try:
            addresses = await resolve(host, port)
        except OSError:
            return "host does not resolve"
        if not addresses:
            return "host does not resolve"
        if not all(is_public_address(a) for a in addresses):
            return "resolves to a non-public address"
        return None

    async def fetch_title(self, url: str) -> str | None:
        """Return the page title, or None for blocked, non-HTML or title-less pages."""
        for _ in range(MAX_REDIRECTS + 1):
            reason = await self.blocked_reason(url)
            if reason is not None:
                logger.log_event(
                    "pagetitle", "blocked", level=logging.WARNING, url=url, reason=reason
                )
                return None
            location, title = await self._fetch_once(url)
            if location is None:
                return title
            url = urljoin(url, location)
        return None

    async def _fetch_once(self, url: str) -> tuple[str | None, str | None]:
        """Return ``(redirect_location, None)`` or ``(None, title)``."""

        async def operation() -> tuple[str | None, str | None]:
            async with self._session.get(
                url,
                headers={"User-Agent": HTTP_USER_AGENT, "Accept": "text/html"},
                timeout=default_timeout(),
                allow_redirects=False,
            ) as resp:
                if resp.status in _REDIRECT_STATUSES:
                    return resp.headers.get("location") or None, None
                resp.raise_for_status()
                if "html" not in resp.headers.get("content-type", "").lower():
                    return None, None
                head = await resp.content.read(self.max_bytes)
                try:
                    document = head.decode(resp.charset or "utf-8", errors="replace")
                except LookupError:
                    document = head.decode("utf-8", errors="replace")
                return None, extract_title(document)

        return await handle_api_error(operation, f"page title {url}")
