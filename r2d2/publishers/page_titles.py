"""Post the title of web pages linked in the default channel."""

from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Sequence

from ..api.page_title import PageTitleFetcher, extract_urls
from ..constants import PAGE_TITLE_QUEUE_SIZE
from ..errors.handling import log_error
from ..errors.internal import InternalError
from ..irc.models import InboundEvent
from ..logs.logger import logger
from .base import Notification

LINKS_ENTITY = "links"


class PageTitleProvider:
    """Queue links seen in ``channel`` and resolve their titles on each poll.

    The queue is bounded; when it is full the oldest link is dropped.
    Messages addressed to the bot (``<nick>: ...``) are commands, not chatter,
    and are not scanned.
    """

    name = "pagetitles"
    prime_on_first_poll = False

    def __init__(
        self,
        fetcher: PageTitleFetcher,
        channel: str,
        nick: str = "",
        max_queued: int = PAGE_TITLE_QUEUE_SIZE,
    ) -> None:
        self.fetcher = fetcher
        self.channel = channel
        self.nick = nick
        self._queue: deque[tuple[int, str, str]] = deque(maxlen=max_queued)
        self._sequence = itertools.count(1)

    def __len__(self) -> int:
        return len(self._queue)

    def offer(self, event: InboundEvent) -> int:
        """Queue every link in ``event``; return how many were queued."""
        if event.target != self.channel:
            return 0
        if self.nick and event.text.startswith(f"{self.nick}: "):
            return 0
        urls = extract_urls(event.text)
        for url in urls:
            self._queue.append((next(self._sequence), event.sender, url))
            logger.log_event(
                "pagetitle",
                "queued",
                level=logging.DEBUG,
                user=event.sender,
                channel=event.target,
                url=url,
            )
        return len(urls)

    def entities(self) -> Sequence[str]:
        return (LINKS_ENTITY,)

    async def fetch(self, entity: str) -> list[Notification]:
        notifications = []
        while self._queue:
            ident, poster, url = self._queue.popleft()
            try:
                title = await self.fetcher.fetch_title(url)
            except InternalError as e:
                log_error("Page title lookup failed", e, context={"url": url})
                continue
            if title is None:
                continue
            notifications.append(
                Notification(entity=entity, ident=ident, label=poster, text=title)
            )
        return notifications
