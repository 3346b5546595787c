"""Weather forecasts from Open-Meteo (geocoding + forecast, no API key)."""

from __future__ import annotations

from typing import Any

import aiohttp

from ..errors.internal import ParsingError
from .http import fetch_json

WEATHER_HELP = (
    "'weather <location>' returns the current conditions and a 3 day forecast, "
    "for example 'weather paris, france' or 'weather 94043'"
)

# WMO weather interpretation codes
WEATHER_CODES: dict[int, str] = {
    0: "clear sky",
    1: "mainly clear",
    2: "partly cloudy",
    3: "overcast",
    45: "fog",
    48: "rime fog",
    51: "light drizzle",
    53: "drizzle",
    55: "dense drizzle",
    56: "freezing drizzle",
    57: "freezing drizzle",
    61: "light rain",
    63: "rain",
    65: "heavy rain",
    66: "freezing rain",
    67: "freezing rain",
    71: "light snow",
    73: "snow",
    75: "heavy snow",
    77: "snow grains",
    80: "rain showers",
    81: "rain showers",
    82: "violent rain showers",
    85: "snow showers",
    86: "heavy snow showers",
    95: "thunderstorm",
    96: "thunderstorm with hail",
    99: "thunderstorm with heavy hail",
}


def describe(code: Any) -> str:
    try:
        return WEATHER_CODES.get(int(code), "unknown conditions")
    except (TypeError, ValueError):
        return "unknown conditions"


class WeatherAPI:
    GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
    FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

    def __init__(self, session: aiohttp.ClientSession):
        self._session = session

    async def forecast(self, query: str) -> str:
        place = await self._geocode(query)
        if place is None:
            return f"I could not find a place called '{query}'"
        data = await fetch_json(
            self._session,
            self.FORECAST_URL,
            f"forecast {query}",
            params={
                "latitude": place["latitude"],
                "longitude": place["longitude"],
                "current": "temperature_2m,weather_code,wind_speed_10m",
                "daily": "weather_code,temperature_2m_max,temperature_2m_min",
                "forecast_days": 3,
                "timezone": "auto",
            },
        )
        return format_forecast(place, data)

    async def _geocode(self, query: str) -> dict[str, Any] | None:
        data = await fetch_json(
            self._session,
            self.GEOCODING_URL,
            f"geocoding {query}",
            params={"name": query, "count": 1, "format": "json"},
        )
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            return None
        return results[0]


def format_forecast(place: dict[str, Any], data: Any) -> str:
    if not isinstance(data, dict):
        raise ParsingError("forecast payload is not an object")
    name = ", ".join(
        str(part) for part in (place.get("name"), place.get("admin1"), place.get("country")) if part
    )
    current = data.get("current") or {}
    parts = [
        f"{name}: now {current.get('temperature_2m', '?')}°C, "
        f"{describe(current.get('weather_code'))}, wind {current.get('wind_speed_10m', '?')} km/h"
    ]
    daily = data.get("daily") or {}
    days = zip(
        daily.get("time", []),
        daily.get("weather_code", []),
        daily.get("temperature_2m_min", []),
        daily.get("temperature_2m_max", []),
        strict=False,
    )
    for day, code, low, high in days:
        parts.append(f"{day}: {describe(code)} {low}/{high}°C")
    return ". ".join(parts)
