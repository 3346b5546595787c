"""Periodic publishers: poll a provider, announce what is new."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from ..errors.handling import log_error
from ..irc.transmitter import ResponseTransmitter
from ..logs.logger import logger


@dataclass(frozen=True, slots=True)
class Notification:
    entity: str
    ident: int
    label: str
    text: str


class WatcherCursor:
    """Last announced identifier per entity. Values only ever grow."""

    def __init__(self) -> None:
        self._seen: dict[str, int] = {}

    def get(self, entity: str) -> int | None:
        return self._seen.get(entity)

    def knows(self, entity: str) -> bool:
        return entity in self._seen

    def is_new(self, entity: str, ident: int) -> bool:
        last = self._seen.get(entity)
        return last is None or ident > last

    def advance(self, entity: str, ident: int) -> bool:
        if not self.is_new(entity, ident):
            return False
        self._seen[entity] = ident
        return True


class Provider(Protocol):
    name: str
    # When true the first successful fetch of an entity only moves the cursor
    prime_on_first_poll: bool

    def entities(self) -> Sequence[str]: ...

    async def fetch(self, entity: str) -> list[Notification]: ...


class Publisher:
    """Run ``provider`` every ``interval`` seconds until ``stop_event`` is set."""

    def __init__(
        self,
        provider: Provider,
        transmitter: ResponseTransmitter,
        destination: str,
        interval: float,
        stop_event: asyncio.Event,
    ) -> None:
        self.provider = provider
        self.transmitter = transmitter
        self.destination = destination
        self.interval = interval
        self.stop_event = stop_event
        self.cursor = WatcherCursor()
        self._primed: set[str] = set()

    @property
    def name(self) -> str:
        return self.provider.name

    async def run(self) -> None:
        logger.log_event(
            "publisher",
            "start",
            channel=self.destination,
            publisher=self.name,
            interval=self.interval,
        )
        while not self.stop_event.is_set():
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception as e:  # noqa: BLE001
                log_error(f"{self.name} publisher cycle failed", e)
            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=self.interval)
            except TimeoutError:
                continue
        logger.log_event("publisher", "stop", publisher=self.name)

    async def run_cycle(self) -> int:
        """Poll every entity once; return the number of notifications sent."""
        sent = 0
        for entity in self.provider.entities():
            if self.stop_event.is_set():
                break
            try:
                notifications = await self.provider.fetch(entity)
            except asyncio.CancelledError:
                raise
            except Exception as e:  # noqa: BLE001
                log_error(
                    f"{self.name} fetch failed",
                    e,
                    context={"entity": entity},
                )
                continue
            sent += await self._publish(entity, notifications)
        return sent

    async def _publish(self, entity: str, notifications: list[Notification]) -> int:
        fresh = sorted(
            (n for n in notifications if self.cursor.is_new(n.entity, n.ident)),
            key=lambda n: n.ident,
        )
        if self.provider.prime_on_first_poll and entity not in self._primed:
            self._primed.add(entity)
            if fresh:
                self.cursor.advance(entity, fresh[-1].ident)
                logger.log_event(
                    "publisher",
                    "primed",
                    level=logging.DEBUG,
                    publisher=self.name,
                    entity=entity,
                    ident=fresh[-1].ident,
                    skipped=len(fresh),
                )
            return 0
        self._primed.add(entity)
        for position, notification in enumerate(fresh):
            try:
                await self.transmitter.send(
                    self.destination, notification.label, notification.text
                )
            except Exception:
                logger.log_event(
                    "publisher",
                    "unsent",
                    level=logging.WARNING,
                    channel=self.destination,
                    publisher=self.name,
                    entity=entity,
                    unsent=len(fresh) - position,
                )
                raise
            self.cursor.advance(notification.entity, notification.ident)
            logger.log_event(
                "publisher",
                "announced",
                level=logging.DEBUG,
                channel=self.destination,
                publisher=self.name,
                entity=notification.entity,
                ident=notification.ident,
            )
        return len(fresh)
