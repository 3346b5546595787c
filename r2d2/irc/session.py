"""Session lifecycle: connect, identify, join."""

from __future__ import annotations

import logging

from ..config.model import IrcConfig
from ..constants import IDENTIFY_RETRY_SECONDS
from ..errors.internal import NetworkError, SessionError
from ..logs.logger import logger
from .auth import NickServHandshake
from .connection import IRCConnection
from .models import AuthState, Session

DEBUG_GREETING = "beep beedibeep dibeep"


class SessionManager:
    """Drive the single IRC session from DISCONNECTED to JOINED.

    ``start`` either returns the ready Session or raises SessionError, in
    which case the caller is expected to terminate the process.
    """

    def __init__(
        self,
        config: IrcConfig,
        connection: IRCConnection | None = None,
        identify_retry: float = IDENTIFY_RETRY_SECONDS,
    ) -> None:
        self.config = config
        self.connection = connection or IRCConnection(
            config.host, config.port, config.nick, use_tls=config.tls
        )
        self.identify_retry = identify_retry
        self.session = Session(
            nick=config.nick,
            channel=config.channel,
            channel_key=config.channel_pass,
            connection=self.connection,
        )
        self.joined: set[str] = set()

    @property
    def state(self) -> AuthState:
        return self.session.state

    def _set_state(self, new_state: AuthState) -> None:
        if self.session.state is not new_state:
            logger.log_event(
                "session",
                "state_change",
                level=logging.DEBUG,
                user=self.session.nick,
                old_state=self.session.state.name,
                new_state=new_state.name,
            )
            self.session.state = new_state

    async def start(self) -> Session:
        self._set_state(AuthState.CONNECTING)
        try:
            await self.connection.connect()
        except NetworkError as e:
            self._set_state(AuthState.DISCONNECTED)
            raise SessionError(
                f"Connection to IRC server failed: {e}",
                data={"server": self.config.server},
            ) from e
        # The server may have handed out a different nick (433 handling).
        self.session.nick = self.connection.nick

        try:
            if self.config.nickpass:
                self._set_state(AuthState.AUTHENTICATING)
                handshake = NickServHandshake(
                    self.connection,
                    self.config.nickpass,
                    service=self.config.auth_service,
                    retry_interval=self.identify_retry,
                )
                await handshake.run()

            await self.join(self.session.channel, self.session.channel_key)
            if self.config.debug:
                await self.connection.privmsg(self.session.channel, DEBUG_GREETING)
        except NetworkError as e:
            self._set_state(AuthState.DISCONNECTED)
            raise SessionError(f"IRC session lost during startup: {e}") from e

        self._set_state(AuthState.JOINED)
        logger.log_event(
            "session", "ready", user=self.session.nick, channel=self.session.channel
        )
        return self.session

    async def join(self, channel: str, key: str = "") -> None:
        """Join ``channel`` once; later calls for the same channel are no-ops."""
        if channel in self.joined:
            return
        await self.connection.join(channel, key)
        self.joined.add(channel)

    async def stop(self) -> None:
        await self.connection.close()
        self._set_state(AuthState.DISCONNECTED)
