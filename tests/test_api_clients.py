from __future__ import annotations

import socket

import pytest

import aiohttp

from r2d2.api.geolocation import GeolocationAPI
from r2d2.api.github import GitHubAPI, format_event
from r2d2.api.http import fetch_json
from r2d2.api.page_title import (
    MAX_REDIRECTS,
    PageTitleFetcher,
    extract_title,
    extract_urls,
    is_public_address,
)
from r2d2.api.untappd import UntappdAPI, format_checkin
from r2d2.api.weather import WeatherAPI, describe
from r2d2.errors.internal import NetworkError, ParsingError, RateLimitError
from tests.fixtures.fake_http import FakeResponse, FakeSession


@pytest.mark.asyncio
async def test_fetch_json_returns_payload_and_sends_user_agent():
    session = FakeSession(FakeResponse({"ok": True}))
    assert await fetch_json(session, "https://x.test/a", "test", params={"q": 1}) == {"ok": True}
    call = session.calls[0]
    assert call["params"] == {"q": 1}
    assert "User-Agent" in call["headers"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("response", "error"),
    [
        (FakeResponse(status=429), RateLimitError),
        (FakeResponse(status=403, headers={"X-RateLimit-Remaining": "0"}), RateLimitError),
        (FakeResponse(status=404), ParsingError),
        (FakeResponse(status=502), NetworkError),
        (FakeResponse(json_error=ValueError("not json")), ParsingError),
        (aiohttp.ClientConnectionError("refused"), NetworkError),
        (TimeoutError(), NetworkError),
    ],
)
async def test_fetch_json_maps_failures(response, error):
    with pytest.raises(error):
        await fetch_json(FakeSession(response), "https://x.test/a", "test")


@pytest.mark.asyncio
async def test_github_repo_events_uses_token():
    session = FakeSession(FakeResponse([{"id": "1"}, "junk"]))
    events = await GitHubAPI(session, "tok").repo_events("octo/hello")
    assert events == [{"id": "1"}]
    call = session.calls[0]
    assert call["url"] == "https://api.github.com/repos/octo/hello/events"
    assert call["headers"]["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_github_repo_events_rejects_non_list():
    with pytest.raises(ParsingError):
        await GitHubAPI(FakeSession(FakeResponse({"message": "x"}))).repo_events("a/b")


def test_format_push_event():
    event = {
        "type": "PushEvent",
        "actor": {"login": "octocat"},
        "payload": {
            "ref": "refs/heads/main",
            "commits": [{"message": "first"}, {"message": "Fix bug\n\nlong body"}],
        },
    }
    assert format_event("octo/hello", event) == "octocat pushed 2 commits to main: Fix bug"


def test_format_merged_pull_request():
    event = {
        "type": "PullRequestEvent",
        "actor": {"login": "octocat"},
        "payload": {
            "action": "closed",
            "number": 7,
            "pull_request": {"merged": True, "title": "Add x", "html_url": "https://gh/pr/7"},
        },
    }
    assert format_event("octo/hello", event) == (
        "octocat merged pull request #7: Add x https://gh/pr/7"
    )


def test_format_unknown_event_falls_back():
    event = {"type": "WatchEvent", "actor": {"login": "fan"}}
    assert format_event("octo/hello", event) == "fan triggered WatchEvent on octo/hello"


@pytest.mark.asyncio
async def test_untappd_checkins():
    payload = {"response": {"checkins": {"items": [{"checkin_id": 5}]}}}
    session = FakeSession(FakeResponse(payload))
    items = await UntappdAPI(session, "id", "secret").user_checkins("alice")
    assert items == [{"checkin_id": 5}]
    assert session.calls[0]["url"] == "https://api.untappd.com/v4/user/checkins/alice"
    assert session.calls[0]["params"]["client_id"] == "id"


@pytest.mark.asyncio
async def test_untappd_unexpected_payload():
    session = FakeSession(FakeResponse({"meta": {}}))
    with pytest.raises(ParsingError):
        await UntappdAPI(session, "id", "secret").user_checkins("alice")


def test_format_checkin():
    checkin = {
        "beer": {"beer_name": "Hoppy", "beer_style": "IPA"},
        "brewery": {"brewery_name": "Brew Co"},
        "venue": {"venue_name": "The Pub"},
        "rating_score": 4.5,
    }
    assert format_checkin("alice", checkin) == (
        "alice is drinking Hoppy (IPA) by Brew Co at The Pub, rated 4.5/5"
    )
    assert format_checkin("bob", {"beer": {"beer_name": "Lager"}, "venue": []}) == (
        "bob is drinking Lager"
    )


@pytest.mark.asyncio
async def test_geolocation_formats_location():
    payload = {
        "status": "success",
        "city": "Mountain View",
        "regionName": "California",
        "country": "United States",
        "isp": "Google LLC",
    }
    session = FakeSession(FakeResponse(payload))
    api = GeolocationAPI(session, "http://geo.test/{ip}")
    assert await api.locate("8.8.8.8") == (
        "8.8.8.8 is in Mountain View, California, United States (Google LLC)"
    )
    assert session.calls[0]["url"] == "http://geo.test/8.8.8.8"


@pytest.mark.asyncio
async def test_geolocation_input_checks_skip_http():
    session = FakeSession()
    api = GeolocationAPI(session, "http://geo.test/{ip}")
    assert "not a valid ip address" in await api.locate("nope")
    assert "private address" in await api.locate("192.168.1.1")
    assert session.calls == []


@pytest.mark.asyncio
async def test_geolocation_failure_status():
    session = FakeSession(FakeResponse({"status": "fail", "message": "reserved range"}))
    api = GeolocationAPI(session, "http://geo.test/{ip}")
    assert await api.locate("1.1.1.1") == "I could not locate 1.1.1.1 (reserved range)"


@pytest.mark.asyncio
async def test_weather_forecast():
    geo = {"results": [{"name": "Paris", "country": "France", "latitude": 48.8, "longitude": 2.3}]}
    forecast = {
        "current": {"temperature_2m": 12.5, "weather_code": 3, "wind_speed_10m": 9},
        "daily": {
            "time": ["2024-05-01"],
            "weather_code": [61],
            "temperature_2m_min": [8],
            "temperature_2m_max": [15],
        },
    }
    session = FakeSession(FakeResponse(geo), FakeResponse(forecast))
    answer = await WeatherAPI(session).forecast("paris")
    assert answer == (
        "Paris, France: now 12.5°C, overcast, wind 9 km/h. 2024-05-01: light rain 8/15°C"
    )


@pytest.mark.asyncio
async def test_weather_unknown_place():
    session = FakeSession(FakeResponse({"results": []}))
    assert await WeatherAPI(session).forecast("atlantis") == (
        "I could not find a place called 'atlantis'"
    )


def test_describe_weather_codes():
    assert describe(0) == "clear sky"
    assert describe("95") == "thunderstorm"
    assert describe(None) == "unknown conditions"


def test_extract_urls_strips_trailing_punctuation():
    assert extract_urls("see https://example.com/a, and (http://x.test/b).") == [
        "https://example.com/a",
        "http://x.test/b",
    ]


def test_extract_title():
    assert extract_title("<html><TITLE>\n Hello &amp; bye \n</TITLE>") == "Hello & bye"
    assert extract_title("<html><body>none</body>") is None
    assert extract_title("<title>   </title>") is None
    assert len(extract_title("<title>" + "x" * 500 + "</title>")) == 200


def test_extract_title_from_truncated_document():
    assert extract_title("<head><title>Partial\n  page</title><meta name=") == "Partial page"


async def _public_resolver(host: str, port: int) -> list[str]:
    return ["93.184.215.14"]


@pytest.mark.asyncio
async def test_page_title_fetcher():
    html = FakeResponse(
        headers={"content-type": "text/html; charset=utf-8"},
        body=b"<title>Example Domain</title>",
        charset="utf-8",
    )
    image = FakeResponse(headers={"content-type": "image/png"}, body=b"\x89PNG")
    session = FakeSession(html, image)
    fetcher = PageTitleFetcher(session, resolver=_public_resolver)
    assert await fetcher.fetch_title("https://example.com") == "Example Domain"
    assert await fetcher.fetch_title("https://example.com/img.png") is None
    assert session.calls[0]["allow_redirects"] is False


@pytest.mark.parametrize(
    "address, public",
    [
        ("93.184.215.14", True),
        ("2606:2800:21f:cb07:6820:80da:af6b:8b2c", True),
        ("127.0.0.1", False),
        ("10.1.2.3", False),
        ("192.168.0.10", False),
        ("169.254.169.254", False),
        ("::1", False),
        ("fe80::1%eth0", False),
        ("::ffff:127.0.0.1", False),
        ("0.0.0.0", False),
        ("not-an-ip", False),
    ],
)
def test_is_public_address(address, public):
    assert is_public_address(address) is public


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url",
    [
        "http://127.0.0.1:8080/admin",
        "http://169.254.169.254/latest/",
        "http://[::1]/",
        "http://localhost/status",
        "http://user:pw@example.com/",
        "http://example.com:99999/",
    ],
)
async def test_page_title_fetcher_refuses_internal_targets(url):
    session = FakeSession()
    fetcher = PageTitleFetcher(session, resolver=_public_resolver)
    assert await fetcher.fetch_title(url) is None
    assert session.calls == []


@pytest.mark.asyncio
async def test_page_title_fetcher_refuses_hosts_resolving_to_private_addresses():
    async def split_horizon(host: str, port: int) -> list[str]:
        return ["93.184.215.14", "10.0.0.7"]

    async def unresolvable(host: str, port: int) -> list[str]:
        raise socket.gaierror("Name or service not known")

    session = FakeSession()
    assert await PageTitleFetcher(session, resolver=split_horizon).fetch_title(
        "https://intranet.example.com"
    ) is None
    assert await PageTitleFetcher(session, resolver=unresolvable).fetch_title(
        "https://nowhere.example"
    ) is None
    assert session.calls == []


@pytest.mark.asyncio
async def test_page_title_fetcher_checks_every_redirect_hop():
    to_public = FakeResponse(status=301, headers={"location": "/moved"})
    landing = FakeResponse(
        headers={"content-type": "text/html"}, body=b"<title>Moved here</title>"
    )
    to_metadata = FakeResponse(
        status=302, headers={"location": "http://169.254.169.254/latest/meta-data"}
    )
    session = FakeSession(to_public, landing, to_metadata)
    fetcher = PageTitleFetcher(session, resolver=_public_resolver)

    assert await fetcher.fetch_title("https://example.com/old") == "Moved here"
    assert session.calls[1]["url"] == "https://example.com/moved"
    assert await fetcher.fetch_title("https://example.com/jump") is None
    assert [c["url"] for c in session.calls] == [
        "https://example.com/old",
        "https://example.com/moved",
        "https://example.com/jump",
    ]


@pytest.mark.asyncio
async def test_page_title_fetcher_gives_up_on_redirect_loops():
    loop = [FakeResponse(status=302, headers={"location": "/again"}) for _ in range(10)]
    session = FakeSession(*loop)
    fetcher = PageTitleFetcher(session, resolver=_public_resolver)
    assert await fetcher.fetch_title("https://example.com/") is None
    assert len(session.calls) == MAX_REDIRECTS + 1
