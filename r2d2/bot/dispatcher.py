"""Recognize messages addressed to the bot and answer them."""

from __future__ import annotations

import asyncio
import functools
import logging
import re
from typing import Any

from ..config.model import is_channel
from ..constants import HANDLER_TIMEOUT_SECONDS
from ..errors.handling import log_error
from ..errors.internal import NetworkError
from ..irc.models import InboundEvent, Request, Session
from ..irc.transmitter import ResponseTransmitter
from ..logs.logger import logger
from .commands import (
    FLIP_PREFIX,
    FLY_TEXT,
    GITHUB_USAGE,
    HANDLER_FAILURE,
    HELP_SUMMARY,
    IP_USAGE,
    UNKNOWN_COMMAND,
    UNTAPPD_USAGE,
    CommandHandlers,
    help_for,
)


@functools.lru_cache(maxsize=8)
def address_pattern(nick: str) -> re.Pattern[str]:
    """``<nick>: <body>``, anchored and case-sensitive. Cached per nick."""
    return re.compile(rf"^{re.escape(nick)}: (.+)$")


def tokenize(body: str) -> list[str]:
    return body.strip().split(" ")


class CommandDispatcher:
    """Turn addressed PRIVMSG events into exactly one answer each."""

    def __init__(
        self,
        session: Session,
        handlers: CommandHandlers,
        transmitter: ResponseTransmitter,
        handler_timeout: float = HANDLER_TIMEOUT_SECONDS,
    ) -> None:
        self.session = session
        self.handlers = handlers
        self.transmitter = transmitter
        self.handler_timeout = handler_timeout
        self._tasks: set[asyncio.Task[Any]] = set()

    def build_request(self, event: InboundEvent) -> Request | None:
        match = address_pattern(self.session.nick).match(event.text)
        if match is None:
            logger.log_event(
                "dispatch",
                "ignored",
                level=logging.DEBUG,
                user=event.sender,
                channel=event.target,
            )
            return None
        tokens = tokenize(match.group(1))
        destination = event.target if is_channel(event.target) else self.session.channel
        return Request(
            sender=event.sender,
            destination=destination,
            command=tokens[0],
            args=tuple(tokens[1:]),
        )

    def schedule(self, event: InboundEvent) -> asyncio.Task[str | None] | None:
        """Answer ``event`` in its own task so the read loop keeps going."""
        if address_pattern(self.session.nick).match(event.text) is None:
            return None
        task = asyncio.create_task(self.on_inbound(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def on_inbound(self, event: InboundEvent) -> str | None:
        request = self.build_request(event)
        if request is None:
            return None
        logger.log_event(
            "dispatch",
            "request",
            user=request.sender,
            channel=request.destination,
            command=request.command,
        )
        response = await self.answer(request)
        try:
            await self.transmitter.send(request.destination, request.sender, response)
        except NetworkError as e:
            log_error("Failed to deliver answer", e, context={"command": request.command})
        return response

    async def handle(self, text: str) -> str:
        """Answer a request body such as ``"help time"``."""
        tokens = tokenize(text)
        return await self.answer(
            Request(
                sender="",
                destination=self.session.channel,
                command=tokens[0],
                args=tuple(tokens[1:]),
            )
        )

    async def answer(self, request: Request) -> str:
        try:
            return await asyncio.wait_for(self._route(request), timeout=self.handler_timeout)
        except TimeoutError as e:
            log_error(
                "Command timed out",
                e,
                context={"command": request.command, "timeout": self.handler_timeout},
            )
        except Exception as e:  # noqa: BLE001
            log_error("Command failed", e, context={"command": request.command})
        return HANDLER_FAILURE

    async def _route(self, request: Request) -> str:
        args = request.args
        first = args[0] if args else None
        match request.command:
            case "fly":
                return FLY_TEXT
            case "flip":
                return FLIP_PREFIX + " ".join(args)
            case "github":
                if first == "repos":
                    return self.handlers.repository_list()
                return GITHUB_USAGE
            case "untappd":
                if first == "users":
                    return self.handlers.user_list()
                return UNTAPPD_USAGE
            case "help":
                if first is not None:
                    return help_for(first)
                return HELP_SUMMARY
            case "ip":
                if first is not None:
                    return await self.handlers.geolocate(first)
                return IP_USAGE
            case "time":
                return self.handlers.time_in(first or "")
            case "stardate":
                return self.handlers.stardate()
            case "weather":
                if not args:
                    return help_for("weather")
                return await self.handlers.forecast(" ".join(args))
            case _:
                return UNKNOWN_COMMAND

    @property
    def tasks(self) -> frozenset[asyncio.Task[Any]]:
        """Answers still in flight."""
        return frozenset(self._tasks)
