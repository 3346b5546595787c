"""Announce new Untappd check-ins of followed users."""

from __future__ import annotations

from collections.abc import Sequence

from ..api.untappd import UntappdAPI, format_checkin
from .base import Notification


class UntappdCheckinsProvider:
    name = "untappd"
    prime_on_first_poll = True

    def __init__(self, api: UntappdAPI, users: Sequence[str]) -> None:
        self.api = api
        self.users = tuple(users)

    def entities(self) -> Sequence[str]:
        return self.users

    async def fetch(self, entity: str) -> list[Notification]:
        checkins = await self.api.user_checkins(entity)
        return [
            Notification(
                entity=entity,
                ident=int(c["checkin_id"]),
                label=entity,
                text=format_checkin(entity, c),
            )
            for c in checkins
            if isinstance(c.get("checkin_id"), int)
        ]
