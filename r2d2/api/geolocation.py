"""IP address geolocation through a JSON lookup service."""

from __future__ import annotations

import ipaddress

import aiohttp

from .http import fetch_json

GEOLOCATION_HELP = (
    "'ip <address>' returns the geolocation of an IPv4 or IPv6 address, "
    "for example 'ip 8.8.8.8'"
)


class GeolocationAPI:
    """Resolve an address with an ip-api.com compatible endpoint.

    ``url_template`` must contain an ``{ip}`` placeholder.
    """

    def __init__(self, session: aiohttp.ClientSession, url_template: str):
        self._session = session
        self._url_template = url_template

    async def locate(self, address: str) -> str:
        try:
            ip = ipaddress.ip_address(address.strip())
        except ValueError:
            return f"'{address}' is not a valid ip address"
        if ip.is_private or ip.is_loopback or ip.is_link_local:
            return f"{ip} is a private address, it is not on the map"

        data = await fetch_json(
            self._session,
            self._url_template.format(ip=ip),
            f"geolocation {ip}",
        )
        if not isinstance(data, dict) or data.get("status") == "fail":
            reason = data.get("message", "unknown") if isinstance(data, dict) else "bad reply"
            return f"I could not locate {ip} ({reason})"

        place = ", ".join(
            part for part in (data.get("city"), data.get("regionName"), data.get("country")) if part
        )
        line = f"{ip} is in {place or 'an unknown place'}"
        if data.get("isp"):
            line += f" ({data['isp']})"
        return line
