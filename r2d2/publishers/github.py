"""Announce new activity of watched GitHub repositories."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..api.github import GitHubAPI, format_event
from .base import Notification


def _event_id(event: dict[str, Any]) -> int | None:
    try:
        return int(event["id"])
    except (KeyError, TypeError, ValueError):
        return None


class GithubEventsProvider:
    name = "github"
    prime_on_first_poll = True

    def __init__(self, api: GitHubAPI, repos: Sequence[str]) -> None:
        self.api = api
        self.repos = tuple(repos)

    def entities(self) -> Sequence[str]:
        return self.repos

    async def fetch(self, entity: str) -> list[Notification]:
        notifications = []
        for event in await self.api.repo_events(entity):
            ident = _event_id(event)
            if ident is None:
                continue
            notifications.append(
                Notification(
                    entity=entity,
                    ident=ident,
                    label=entity,
                    text=format_event(entity, event),
                )
            )
        return notifications
