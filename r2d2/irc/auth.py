"""NickServ identify handshake."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Protocol

from ..constants import AUTH_SERVICE_NICK, IDENTIFY_RETRY_SECONDS
from ..logs.logger import logger
from .models import EventKind, HandshakeState, InboundEvent

IDENTIFY_REQUEST_PATTERN = re.compile(
    r"nickserv identify|this nickname is registered", re.IGNORECASE
)
IDENTIFY_ACCEPTED_PATTERN = re.compile(
    r"password accepted|you are now identified", re.IGNORECASE
)


class HandshakeTransport(Protocol):
    nick: str

    async def privmsg(self, target: str, text: str) -> None: ...

    def on_event(self, kind: EventKind, callback): ...  # noqa: ANN001, ANN201


class NickServHandshake:
    """Identify to the authentication service and wait for its confirmation.

    IDENTIFY is sent as soon as the handshake starts, again whenever
    ``retry_interval`` elapses without confirmation, and again whenever the
    service asks for it. There is no attempt limit: the handshake only ends
    when the service accepts the password (or the task is cancelled).
    The NOTICE observer lives exactly as long as :meth:`run`.
    """

    def __init__(
        self,
        connection: HandshakeTransport,
        secret: str,
        service: str = AUTH_SERVICE_NICK,
        retry_interval: float = IDENTIFY_RETRY_SECONDS,
    ) -> None:
        if not secret:
            raise ValueError("a nick password is required to identify")
        self.connection = connection
        self.secret = secret
        self.service = service
        self.retry_interval = retry_interval
        self.state = HandshakeState.IDLE
        self.attempts = 0
        self._confirmed = asyncio.Event()
        self._active = False

    @property
    def observing(self) -> bool:
        return self._active

    async def run(self) -> None:
        if self._active:
            raise RuntimeError("identify handshake already in progress")
        self._active = True
        self._confirmed.clear()
        try:
            with self.connection.on_event(EventKind.NOTICE, self._observe):
                await self._identify()
                while not self._confirmed.is_set():
                    try:
                        await asyncio.wait_for(
                            self._confirmed.wait(), timeout=self.retry_interval
                        )
                    except TimeoutError:
                        logger.log_event(
                            "auth",
                            "retry",
                            level=logging.DEBUG,
                            user=self.connection.nick,
                            attempts=self.attempts,
                        )
                        await self._identify()
        finally:
            self._active = False
        self.state = HandshakeState.CONFIRMED
        logger.log_event(
            "auth", "confirmed", user=self.connection.nick, attempts=self.attempts
        )

    async def _identify(self) -> None:
        if self._confirmed.is_set():
            return
        self.attempts += 1
        self.state = HandshakeState.SENT
        await self.connection.privmsg(self.service, f"IDENTIFY {self.secret}")
        logger.log_event(
            "auth",
            "identify_sent",
            user=self.connection.nick,
            service=self.service,
            attempt=self.attempts,
        )

    async def _observe(self, event: InboundEvent) -> None:
        if event.sender != self.service or self._confirmed.is_set():
            return
        if IDENTIFY_ACCEPTED_PATTERN.search(event.text):
            self._confirmed.set()
        elif IDENTIFY_REQUEST_PATTERN.search(event.text):
            logger.log_event(
                "auth", "identify_requested", level=logging.DEBUG, user=self.connection.nick
            )
            await self._identify()
