"""Thin asynchronous Untappd v4 client used by the check-in publisher."""

from __future__ import annotations

from typing import Any

import aiohttp

from ..errors.internal import ParsingError
from .http import fetch_json


class UntappdAPI:
    BASE_URL = "https://api.untappd.com/v4"

    def __init__(self, session: aiohttp.ClientSession, client_id: str, client_secret: str):
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session
        self._client_id = client_id
        self._client_secret = client_secret

    async def user_checkins(self, user: str, limit: int = 10) -> list[dict[str, Any]]:
        """Return the latest check-ins of ``user`` (newest first)."""
        data = await fetch_json(
            self._session,
            f"{self.BASE_URL}/user/checkins/{user}",
            f"Untappd checkins {user}",
            params={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "limit": limit,
            },
        )
        try:
            items = data["response"]["checkins"]["items"]
        except (KeyError, TypeError) as e:
            raise ParsingError(f"Unexpected Untappd payload for {user}") from e
        if not isinstance(items, list):
            raise ParsingError(f"Untappd check-ins for {user} is not a list")
        return [i for i in items if isinstance(i, dict)]


def format_checkin(user: str, checkin: dict[str, Any]) -> str:
    beer = checkin.get("beer") or {}
    brewery = checkin.get("brewery") or {}
    # Untappd sends an empty list instead of an object when there is no venue
    venue = checkin.get("venue") if isinstance(checkin.get("venue"), dict) else {}
    line = f"{user} is drinking {beer.get('beer_name', 'something')}"
    if beer.get("beer_style"):
        line += f" ({beer['beer_style']})"
    if brewery.get("brewery_name"):
        line += f" by {brewery['brewery_name']}"
    if venue.get("venue_name"):
        line += f" at {venue['venue_name']}"
    if checkin.get("rating_score"):
        line += f", rated {checkin['rating_score']}/5"
    return line
