"""Core R2D2Bot: one session, one dispatcher, a set of publishers."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from ..api.github import GitHubAPI
from ..api.page_title import PageTitleFetcher
from ..api.untappd import UntappdAPI
from ..application_context import ApplicationContext
from ..config.model import BotConfig
from ..errors.internal import SessionError
from ..irc.connection import IRCConnection, Subscription
from ..irc.models import EventKind, InboundEvent, Session
from ..irc.session import SessionManager
from ..irc.transmitter import ResponseTransmitter
from ..logs.logger import logger
from ..publishers import (
    GithubEventsProvider,
    PageTitleProvider,
    Provider,
    Publisher,
    UntappdCheckinsProvider,
)
from .commands import BotCommandHandlers
from .dispatcher import CommandDispatcher

SHUTDOWN_GRACE_SECONDS = 5.0


class R2D2Bot:  # pylint: disable=too-many-instance-attributes
    """Wire the IRC session, the command dispatcher and the publishers.

    ``run`` returns normally when ``stop_event`` is set and raises
    ``SessionError`` when the session cannot be established or the
    connection is lost afterwards. Either way every task and the HTTP
    session are released before it returns.

    Attributes:
        config: Immutable bot configuration.
        stop_event: Set to request a graceful shutdown.
        session_manager: Owner of the single IRC session.
        transmitter: The one writer used by replies and publishers.
        dispatcher: Created once the session is ready.
        publishers: Background publishers started after the session is ready.
    """

    def __init__(
        self,
        config: BotConfig,
        connection: IRCConnection | None = None,
        http_session: aiohttp.ClientSession | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        self.config = config
        self.stop_event = stop_event or asyncio.Event()
        self.session_manager = SessionManager(config.irc, connection)
        self.connection = self.session_manager.connection
        self.transmitter = ResponseTransmitter(self.connection)
        self._http_session = http_session
        self.context: ApplicationContext | None = None
        self.dispatcher: CommandDispatcher | None = None
        self.page_titles: PageTitleProvider | None = None
        self.publishers: list[Publisher] = []
        self._publisher_tasks: list[asyncio.Task[None]] = []
        self._subscriptions: list[Subscription] = []

    async def run(self) -> None:
        self.context = await ApplicationContext.create(self._http_session)
        try:
            session = await self._start_session()
            if session is None:
                return
            self.dispatcher = CommandDispatcher(
                session,
                BotCommandHandlers(self.config, self.context.http),
                self.transmitter,
            )
            await self._start_publishers(session)
            self._subscriptions.append(
                self.connection.on_event(EventKind.PRIVMSG, self._on_privmsg)
            )
            await self._wait_for_shutdown()
        finally:
            await self.shutdown()

    async def _start_session(self) -> Session | None:
        """Start the session unless a stop is requested first; None on stop."""
        start = asyncio.create_task(self.session_manager.start(), name="session-start")
        stop = asyncio.create_task(self.stop_event.wait())
        try:
            await asyncio.wait({start, stop}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            start.cancel()
            raise
        finally:
            stop.cancel()
        if start.done():
            return start.result()
        # Cancelling unwinds the handshake and releases its NOTICE observer
        start.cancel()
        await asyncio.gather(start, return_exceptions=True)
        logger.log_event(
            "bot",
            "startup_aborted",
            user=self.session_manager.session.nick,
            state=self.session_manager.state.name,
        )
        return None

    def _on_privmsg(self, event: InboundEvent) -> None:
        if self.page_titles is not None:
            self.page_titles.offer(event)
        if self.dispatcher is not None:
            self.dispatcher.schedule(event)

    async def _start_publishers(self, session: Session) -> None:
        assert self.context is not None
        http = self.context.http
        github = self.config.github
        if github.enabled:
            channel, key = self.config.destination_for(github)
            await self.session_manager.join(channel, key)
            self._add_publisher(
                GithubEventsProvider(GitHubAPI(http, github.token), github.repos),
                channel,
                github.interval,
            )
        untappd = self.config.untappd
        if untappd.enabled:
            channel, key = self.config.destination_for(untappd)
            await self.session_manager.join(channel, key)
            self._add_publisher(
                UntappdCheckinsProvider(
                    UntappdAPI(http, untappd.client_id, untappd.client_secret),
                    untappd.users,
                ),
                channel,
                untappd.interval,
            )
        if self.config.pagetitles.enabled:
            self.page_titles = PageTitleProvider(
                PageTitleFetcher(http), session.channel, nick=session.nick
            )
            self._add_publisher(
                self.page_titles, session.channel, self.config.pagetitles.interval
            )

    def _add_publisher(self, provider: Provider, destination: str, interval: float) -> None:
        publisher = Publisher(
            provider, self.transmitter, destination, interval, self.stop_event
        )
        self.publishers.append(publisher)
        self._publisher_tasks.append(
            asyncio.create_task(publisher.run(), name=f"publisher-{publisher.name}")
        )

    async def _wait_for_shutdown(self) -> None:
        stop = asyncio.create_task(self.stop_event.wait())
        lost = asyncio.create_task(self.connection.wait_closed())
        try:
            await asyncio.wait({stop, lost}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            lost.cancel()
        if not self.stop_event.is_set():
            logger.log_event(
                "bot",
                "connection_lost",
                level=logging.ERROR,
                user=self.session_manager.session.nick,
            )
            raise SessionError("IRC connection lost")

    async def shutdown(self) -> None:
        """Stop publishers, pending answers, the connection and HTTP session."""
        logger.log_event("bot", "shutdown_start", level=logging.DEBUG)
        self.stop_event.set()
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        await self._stop_tasks()
        await self.session_manager.stop()
        if self.context is not None:
            await self.context.shutdown()
        logger.log_event("bot", "shutdown_complete")

    async def _stop_tasks(self) -> None:
        pending: list[asyncio.Task] = [t for t in self._publisher_tasks if not t.done()]
        if self.dispatcher is not None:
            pending.extend(t for t in self.dispatcher.tasks if not t.done())
        if pending:
            _, still_running = await asyncio.wait(pending, timeout=SHUTDOWN_GRACE_SECONDS)
            for task in still_running:
                task.cancel()
            if still_running:
                await asyncio.gather(*still_running, return_exceptions=True)
        self._publisher_tasks.clear()
