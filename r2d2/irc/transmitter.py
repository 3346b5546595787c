"""Split answers into PRIVMSG sized frames and send them in order."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from ..constants import FRAME_MAX_CHARS
from ..logs.logger import logger
from .models import Frame


class LineSender(Protocol):
    async def privmsg(self, target: str, text: str) -> None: ...


def split_frames(
    destination: str, label: str, text: str, size: int = FRAME_MAX_CHARS
) -> list[Frame]:
    """Cut ``text`` into frames of at most ``size`` characters.

    The empty text gives a single empty frame. A length that is an exact
    multiple of ``size`` gives exactly ``len(text) // size`` frames, never a
    trailing empty one. Joining the bodies always gives back ``text``.
    """
    if size <= 0:
        raise ValueError("frame size must be positive")
    if not text:
        return [Frame(destination, label, "")]
    return [
        Frame(destination, label, text[i : i + size]) for i in range(0, len(text), size)
    ]


class ResponseTransmitter:
    """Send one response as an ordered run of frames.

    Every caller (dispatcher replies and publisher notifications) goes
    through the same instance; the lock keeps the frames of one response
    contiguous on the wire.
    """

    def __init__(self, sender: LineSender, frame_size: int = FRAME_MAX_CHARS) -> None:
        self.sender = sender
        self.frame_size = frame_size
        self._lock = asyncio.Lock()

    async def send(self, destination: str, nick: str, text: str) -> list[Frame]:
        frames = split_frames(destination, nick, text, self.frame_size)
        async with self._lock:
            for frame in frames:
                await self.sender.privmsg(frame.destination, frame.render())
        logger.log_event(
            "transmit",
            "sent",
            level=logging.DEBUG,
            user=nick,
            channel=destination,
            frames=len(frames),
            length=len(text),
        )
        return frames
