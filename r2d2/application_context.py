"""Central application context for shared async resources."""

from __future__ import annotations

import asyncio
import logging

import aiohttp


class ApplicationContext:
    """Owns the shared aiohttp session for the lifetime of the bot."""

    session: aiohttp.ClientSession | None
    _owns_session: bool
    _lock: asyncio.Lock

    def __init__(self, session: aiohttp.ClientSession | None = None) -> None:
        self.session = session
        self._owns_session = session is None
        self._lock = asyncio.Lock()

    @classmethod
    async def create(cls, session: aiohttp.ClientSession | None = None) -> ApplicationContext:
        """Create a context, opening a new HTTP session unless one is given.

        A session passed in by the caller is used but never closed here.
        """
        ctx = cls(session)
        if ctx.session is None:
            logging.debug("🧪 Creating application context")
            ctx.session = aiohttp.ClientSession()
            logging.debug("🔗 HTTP session created")
        return ctx

    @property
    def http(self) -> aiohttp.ClientSession:
        if self.session is None:
            raise RuntimeError("application context is shut down")
        return self.session

    async def shutdown(self) -> None:
        async with self._lock:
            await self._close_http_session()
            logging.debug("✅ Application context shutdown complete")

    async def _close_http_session(self) -> None:
        if not self.session:
            return
        if not self._owns_session:
            self.session = None
            return
        try:
            await self.session.close()
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logging.error(f"💥 Error closing HTTP session: {str(e)}")
        finally:
            self.session = None
