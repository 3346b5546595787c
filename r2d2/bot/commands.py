"""Static answers, help texts and the collaborators behind each command."""

from __future__ import annotations

from typing import Protocol

import aiohttp

from ..api.geolocation import GEOLOCATION_HELP, GeolocationAPI
from ..api.weather import WEATHER_HELP, WeatherAPI
from ..config.model import BotConfig
from ..services import clock

FLY_TEXT = "PPPPPPFFFFFfffffffffiiiiiiiiiuuuuuuuuuuuuuuuu....................."
FLIP_PREFIX = "(ﾉಥ益ಥ）ﾉ ┻━┻ "
UNKNOWN_COMMAND = "I do not know how to answer this..."
HANDLER_FAILURE = "sorry, I could not get an answer for that right now"
HELP_SUMMARY = (
    "try 'help <command>', supported commands are: "
    "time, github, fly, flip, ip, stardate, untappd and weather"
)
GITHUB_USAGE = "try 'help github'"
UNTAPPD_USAGE = "try 'help untappd'"
IP_USAGE = "try 'help ip'"

GITHUB_HELP = (
    "'github repos' lists the repositories whose activity is announced in the channel"
)
UNTAPPD_HELP = "'untappd users' lists the Untappd users whose check-ins are announced"

HELP_TEXTS: dict[str, str] = {
    "github": GITHUB_HELP,
    "time": clock.TIME_HELP,
    "ip": GEOLOCATION_HELP,
    "weather": WEATHER_HELP,
    "untappd": UNTAPPD_HELP,
}


def help_for(command: str) -> str:
    return HELP_TEXTS.get(command, f"there is no help for {command}")


class CommandHandlers(Protocol):
    """Capabilities the dispatcher delegates to."""

    def repository_list(self) -> str: ...

    def user_list(self) -> str: ...

    async def geolocate(self, address: str) -> str: ...

    def time_in(self, zone: str) -> str: ...

    def stardate(self) -> str: ...

    async def forecast(self, query: str) -> str: ...


class BotCommandHandlers:
    """Production collaborators: configuration lists, HTTP lookups, clocks."""

    def __init__(self, config: BotConfig, session: aiohttp.ClientSession):
        self.config = config
        self.geolocation = GeolocationAPI(session, config.geolocation.url)
        self.weather = WeatherAPI(session)

    def repository_list(self) -> str:
        if not self.config.github.enabled or not self.config.github.repos:
            return "I am not watching any github repository"
        return "I am watching these github repositories: " + ", ".join(self.config.github.repos)

    def user_list(self) -> str:
        if not self.config.untappd.enabled or not self.config.untappd.users:
            return "I am not following anyone on untappd"
        return "I am following these untappd users: " + ", ".join(self.config.untappd.users)

    async def geolocate(self, address: str) -> str:
        return await self.geolocation.locate(address)

    def time_in(self, zone: str) -> str:
        return clock.time_in(zone)

    def stardate(self) -> str:
        return clock.stardate()

    async def forecast(self, query: str) -> str:
        return await self.weather.forecast(query)
