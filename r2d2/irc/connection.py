"""Asyncio IRC transport: connect, register, read loop, serialized writes."""

from __future__ import annotations

import asyncio
import inspect
import logging
import socket
import ssl
import time
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from ..constants import (
    IRC_ACTIVITY_TIMEOUT,
    IRC_CONNECT_TIMEOUT,
    IRC_PING_INTERVAL,
    IRC_QUIT_MESSAGE,
    IRC_REGISTRATION_TIMEOUT,
)
from ..errors.internal import NetworkError
from ..logs.logger import logger
from .heartbeat import IRCHeartbeat
from .models import EventKind, InboundEvent
from .parser import IRCMessage, build_event, parse_irc_message

MessageCallback = Callable[[IRCMessage], Any]
EventCallback = Callable[[InboundEvent], Any]


class Subscription:
    """Handle for one callback registered on one IRC command.

    Cancelling is idempotent. Used as a context manager the subscription is
    released on every exit path of the ``with`` block.
    """

    def __init__(
        self,
        registry: dict[str, list[Subscription]],
        command: str,
        callback: MessageCallback,
    ) -> None:
        self._registry = registry
        self.command = command
        self.callback = callback
        self.active = True
        registry[command].append(self)

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        subscribers = self._registry.get(self.command, [])
        if self in subscribers:
            subscribers.remove(self)
        if not subscribers:
            self._registry.pop(self.command, None)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class IRCConnection:  # pylint: disable=too-many-instance-attributes
    def __init__(
        self,
        host: str,
        port: int,
        nick: str,
        *,
        use_tls: bool = False,
        realname: str | None = None,
        connect_timeout: float = IRC_CONNECT_TIMEOUT,
        registration_timeout: float = IRC_REGISTRATION_TIMEOUT,
        ping_interval: float = IRC_PING_INTERVAL,
        activity_timeout: float = IRC_ACTIVITY_TIMEOUT,
    ) -> None:
        self.host = host
        self.port = port
        self.nick = nick
        self.realname = realname or nick
        self.use_tls = use_tls
        self.connect_timeout = connect_timeout
        self.registration_timeout = registration_timeout
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.connected = False
        self.last_server_activity = 0.0
        self._write_lock = asyncio.Lock()
        self._subscribers: dict[str, list[Subscription]] = defaultdict(list)
        self._listener_task: asyncio.Task[None] | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._closed = asyncio.Event()
        self.heartbeat = IRCHeartbeat(self, ping_interval, activity_timeout)

    # ------------------------------------------------------------ lifecycle
    async def connect(self) -> None:
        """Open the socket, register the nick and start the read loop.

        Raises:
            NetworkError: If the server cannot be reached or registration does
                not complete in time.
        """
        logger.log_event(
            "irc",
            "connect_start",
            user=self.nick,
            server=self.host,
            port=self.port,
            tls=self.use_tls,
        )
        ssl_context = ssl.create_default_context() if self.use_tls else None
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port, ssl=ssl_context),
                timeout=self.connect_timeout,
            )
        except TimeoutError as e:
            raise NetworkError(
                f"Timed out connecting to {self.host}:{self.port}",
                data={"timeout": self.connect_timeout},
            ) from e
        except OSError as e:
            raise NetworkError(f"Cannot connect to {self.host}:{self.port}: {e}") from e

        self._enable_keepalive()
        self._closed.clear()
        self.connected = True
        self.last_server_activity = time.monotonic()
        self._listener_task = asyncio.create_task(self._listen(), name="irc-listener")
        try:
            await self._register()
        except NetworkError:
            await self.close(send_quit=False)
            raise
        self._heartbeat_task = self.heartbeat.start()
        logger.log_event("irc", "connect_success", user=self.nick, server=self.host)

    async def _register(self) -> None:
        welcome = asyncio.Event()

        async def on_nick_in_use(_message: IRCMessage) -> None:
            self.nick = f"{self.nick}_"
            logger.log_event("irc", "nick_in_use", level=logging.WARNING, user=self.nick)
            await self.send_line(f"NICK {self.nick}")

        with (
            self.subscribe("001", lambda _m: welcome.set()),
            self.subscribe("433", on_nick_in_use),
        ):
            await self.send_line(f"NICK {self.nick}")
            await self.send_line(f"USER {self.nick} 0 * :{self.realname}")
            waiter = asyncio.create_task(welcome.wait())
            closed = asyncio.create_task(self._closed.wait())
            try:
                done, _ = await asyncio.wait(
                    {waiter, closed},
                    timeout=self.registration_timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                waiter.cancel()
                closed.cancel()
        if not welcome.is_set():
            reason = "connection closed" if self._closed.is_set() else "timeout"
            raise NetworkError(
                f"Registration with {self.host} failed ({reason})",
                data={"nick": self.nick, "done": len(done)},
            )
        logger.log_event("irc", "registered", user=self.nick)

    def _enable_keepalive(self) -> None:
        sock = self.writer.get_extra_info("socket") if self.writer else None
        if sock is None:
            return
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        except OSError as e:  # pragma: no cover - platform dependent
            logger.log_event(
                "irc", "keepalive_unavailable", level=logging.DEBUG, error=str(e)
            )

    async def close(self, send_quit: bool = True) -> None:
        if send_quit and self.connected:
            try:
                await self.send_line(f"QUIT :{IRC_QUIT_MESSAGE}")
            except NetworkError:
                pass
        self.connected = False
        current = asyncio.current_task()
        for task in (self._heartbeat_task, self._listener_task):
            if task and not task.done() and task is not current:
                task.cancel()
        if self.writer:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (OSError, ssl.SSLError) as e:
                logger.log_event("irc", "close_error", level=logging.DEBUG, error=str(e))
            self.writer = None
        self._closed.set()
        logger.log_event("irc", "disconnected", user=self.nick)

    async def wait_closed(self) -> None:
        await self._closed.wait()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    # ------------------------------------------------------------ writing
    async def send_line(self, line: str) -> None:
        """Write one protocol line. Writers are serialized by a lock.

        Raises:
            NetworkError: If the connection is not open or the write fails.
        """
        if not self.writer or not self.connected:
            raise NetworkError("IRC connection is not open")
        # A body must never smuggle a second protocol line.
        safe = line.replace("\r", " ").replace("\n", " ")
        async with self._write_lock:
            try:
                self.writer.write(f"{safe}\r\n".encode())
                await self.writer.drain()
            except (OSError, ssl.SSLError) as e:
                raise NetworkError(f"IRC write failed: {e}") from e
        if not safe.startswith(("PONG", "PING")):
            logger.log_event("irc", "send", level=logging.DEBUG, user=self.nick, line=_redact(safe))

    async def privmsg(self, target: str, text: str) -> None:
        await self.send_line(f"PRIVMSG {target} :{text}")

    async def join(self, channel: str, key: str = "") -> None:
        # The key travels as the second token of the same JOIN command.
        await self.send_line(f"JOIN {channel} {key}" if key else f"JOIN {channel}")
        logger.log_event("irc", "join", user=self.nick, channel=channel, keyed=bool(key))

    # ------------------------------------------------------------ reading
    def subscribe(self, command: str, callback: MessageCallback) -> Subscription:
        return Subscription(self._subscribers, command.upper(), callback)

    def on_event(self, kind: EventKind, callback: EventCallback) -> Subscription:
        """Subscribe to PRIVMSG or NOTICE events as InboundEvent objects."""

        def adapter(message: IRCMessage) -> Any:
            event = build_event(message)
            if event is None:
                return None
            return callback(event)

        return self.subscribe(kind.value, adapter)

    async def _listen(self) -> None:
        assert self.reader is not None
        try:
            while True:
                data = await self.reader.readline()
                if not data:
                    logger.log_event("irc", "connection_lost", level=logging.ERROR, user=self.nick)
                    break
                await self.handle_line(data.decode("utf-8", errors="replace"))
        except (OSError, ssl.SSLError, ValueError) as e:
            logger.log_event(
                "irc",
                "read_error",
                level=logging.ERROR,
                user=self.nick,
                error=str(e),
                error_type=type(e).__name__,
            )
        except NetworkError as e:
            logger.log_event(
                "irc", "write_error", level=logging.ERROR, user=self.nick, error=str(e)
            )
        finally:
            self.connected = False
            self._closed.set()

    async def handle_line(self, raw_line: str) -> None:
        line = raw_line.strip("\r\n")
        if not line:
            return
        self.last_server_activity = time.monotonic()
        parsed = parse_irc_message(line)
        if parsed.command == "PING":
            await self.send_line(f"PONG :{parsed.trailing}")
            return
        logger.log_event("irc", "raw", level=logging.DEBUG, user=self.nick, raw=line)
        if parsed.command:
            await self._dispatch(parsed)

    async def _dispatch(self, message: IRCMessage) -> None:
        # Copy: callbacks may cancel their own subscription while running.
        for subscription in list(self._subscribers.get(message.command or "", [])):
            if not subscription.active:
                continue
            try:
                result = subscription.callback(message)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "irc",
                    "callback_error",
                    level=logging.ERROR,
                    user=self.nick,
                    command=message.command,
                    error=str(e),
                    error_type=type(e).__name__,
                )


def _redact(line: str) -> str:
    if " :IDENTIFY " in line:
        return line.split(" :IDENTIFY ", 1)[0] + " :IDENTIFY ********"
    return line
