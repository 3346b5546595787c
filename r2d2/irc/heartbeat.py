"""Client side keepalive: periodic PING and server activity timeout."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from ..errors.internal import NetworkError
from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from .connection import IRCConnection


class IRCHeartbeat:
    def __init__(
        self, connection: IRCConnection, ping_interval: float, activity_timeout: float
    ):
        self.connection = connection
        self.ping_interval = ping_interval
        self.activity_timeout = activity_timeout

    def start(self) -> asyncio.Task[None] | None:
        if self.ping_interval <= 0:
            return None
        return asyncio.create_task(self.run(), name="irc-heartbeat")

    def is_connection_stale(self, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        return now - self.connection.last_server_activity > self.activity_timeout

    async def run(self) -> None:
        while self.connection.connected:
            await asyncio.sleep(self.ping_interval)
            if not self.connection.connected:
                return
            if self.is_connection_stale():
                logger.log_event(
                    "irc",
                    "no_server_activity",
                    level=logging.WARNING,
                    user=self.connection.nick,
                    timeout=self.activity_timeout,
                )
                await self.connection.close(send_quit=False)
                return
            try:
                await self.connection.send_line(f"PING :{int(time.time())}")
            except NetworkError as e:
                logger.log_event(
                    "irc",
                    "ping_failed",
                    level=logging.WARNING,
                    user=self.connection.nick,
                    error=str(e),
                )
                await self.connection.close(send_quit=False)
                return
