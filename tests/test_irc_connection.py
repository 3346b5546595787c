from __future__ import annotations

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from r2d2.errors.internal import NetworkError
from r2d2.irc.connection import IRCConnection
from r2d2.irc.heartbeat import IRCHeartbeat
from r2d2.irc.models import EventKind


def _open_connection() -> tuple[IRCConnection, MagicMock]:
    conn = IRCConnection("irc.test", 6667, "r2d2", ping_interval=0)
    writer = MagicMock()
    writer.drain = AsyncMock()
    conn.writer = writer
    conn.connected = True
    return conn, writer


def _written(writer: MagicMock) -> list[bytes]:
    return [call.args[0] for call in writer.write.call_args_list]


@pytest.mark.asyncio
async def test_ping_is_answered_with_pong():
    conn, writer = _open_connection()
    await conn.handle_line("PING :irc.test\r\n")
    assert _written(writer) == [b"PONG :irc.test\r\n"]


@pytest.mark.asyncio
async def test_send_line_replaces_cr_lf():
    conn, writer = _open_connection()
    await conn.privmsg("#chan", "one\r\nQUIT :pwned")
    assert _written(writer) == [b"PRIVMSG #chan :one  QUIT :pwned\r\n"]


@pytest.mark.asyncio
async def test_send_line_requires_open_connection():
    conn = IRCConnection("irc.test", 6667, "r2d2")
    with pytest.raises(NetworkError):
        await conn.send_line("PING :x")


@pytest.mark.asyncio
async def test_send_line_wraps_write_errors():
    conn, writer = _open_connection()
    writer.drain = AsyncMock(side_effect=ConnectionResetError("reset"))
    with pytest.raises(NetworkError):
        await conn.send_line("PRIVMSG #chan :hi")


@pytest.mark.asyncio
async def test_join_with_and_without_key():
    conn, writer = _open_connection()
    await conn.join("#chan")
    await conn.join("#secret", "hunter2")
    assert _written(writer) == [b"JOIN #chan\r\n", b"JOIN #secret hunter2\r\n"]


@pytest.mark.asyncio
async def test_writes_are_serialized():
    conn, writer = _open_connection()
    in_flight = 0
    max_in_flight = 0

    async def slow_drain() -> None:
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(0)
        in_flight -= 1

    writer.drain = slow_drain
    await asyncio.gather(*(conn.send_line(f"PRIVMSG #c :{i}") for i in range(5)))
    assert max_in_flight == 1
    assert len(_written(writer)) == 5


@pytest.mark.asyncio
async def test_subscriptions_are_independent_and_cancellable():
    conn, _ = _open_connection()
    first: list[str] = []
    second: list[str] = []
    sub1 = conn.on_event(EventKind.PRIVMSG, lambda e: first.append(e.text))
    conn.on_event(EventKind.PRIVMSG, lambda e: second.append(e.text))

    await conn.handle_line(":a!b@c PRIVMSG #chan :one")
    sub1.cancel()
    sub1.cancel()  # idempotent
    await conn.handle_line(":a!b@c PRIVMSG #chan :two")

    assert first == ["one"]
    assert second == ["one", "two"]


@pytest.mark.asyncio
async def test_subscription_context_manager_releases_on_error():
    conn, _ = _open_connection()
    seen: list[str] = []
    with pytest.raises(RuntimeError):
        with conn.on_event(EventKind.NOTICE, lambda e: seen.append(e.text)):
            raise RuntimeError("boom")
    await conn.handle_line(":NickServ!s@x NOTICE r2d2 :hello")
    assert seen == []


@pytest.mark.asyncio
async def test_failing_callback_does_not_stop_dispatch():
    conn, _ = _open_connection()
    seen: list[str] = []

    def broken(_event) -> None:
        raise ValueError("nope")

    conn.on_event(EventKind.PRIVMSG, broken)
    conn.on_event(EventKind.PRIVMSG, lambda e: seen.append(e.text))
    await conn.handle_line(":a!b@c PRIVMSG #chan :still delivered")
    assert seen == ["still delivered"]


@pytest.mark.asyncio
async def test_async_callbacks_are_awaited():
    conn, _ = _open_connection()
    seen: list[str] = []

    async def handler(event) -> None:
        await asyncio.sleep(0)
        seen.append(event.sender)

    conn.on_event(EventKind.PRIVMSG, handler)
    await conn.handle_line(":alice!b@c PRIVMSG #chan :hi")
    assert seen == ["alice"]


@pytest.mark.asyncio
async def test_listener_stops_cleanly_when_pong_write_fails():
    conn, writer = _open_connection()
    writer.drain = AsyncMock(side_effect=ConnectionResetError("reset"))
    reader = asyncio.StreamReader()
    reader.feed_data(b"PING :irc.test\r\n:srv NOTICE * :never read\r\n")
    conn.reader = reader
    with patch("r2d2.irc.connection.logger") as mock_logger:
        await asyncio.wait_for(conn._listen(), timeout=1)
    assert conn.closed
    assert not conn.connected
    actions = [call.args[:2] for call in mock_logger.log_event.call_args_list]
    assert ("irc", "write_error") in actions
    assert ("irc", "raw") not in actions


@pytest.mark.asyncio
async def test_handle_line_tracks_server_activity():
    conn, _ = _open_connection()
    conn.last_server_activity = 0.0
    await conn.handle_line(":srv NOTICE * :hello")
    assert conn.last_server_activity > 0.0


@pytest.mark.asyncio
async def test_close_sends_quit_and_marks_closed():
    conn, writer = _open_connection()
    writer.wait_closed = AsyncMock()
    await conn.close()
    assert _written(writer)[0].startswith(b"QUIT :")
    assert conn.closed
    assert not conn.connected
    await asyncio.wait_for(conn.wait_closed(), timeout=1)


@pytest.mark.asyncio
async def test_connect_failure_raises_network_error(monkeypatch):
    async def refuse(*_args, **_kwargs):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(asyncio, "open_connection", refuse)
    conn = IRCConnection("irc.test", 6667, "r2d2")
    with pytest.raises(NetworkError):
        await conn.connect()


@pytest.mark.asyncio
async def test_registration_appends_underscore_on_nick_in_use():
    conn, writer = _open_connection()

    async def server() -> None:
        await asyncio.sleep(0)
        await conn.handle_line(":srv 433 * r2d2 :Nickname is already in use")
        await conn.handle_line(":srv 001 r2d2_ :Welcome")

    task = asyncio.create_task(server())
    await conn._register()
    await task
    assert conn.nick == "r2d2_"
    assert b"NICK r2d2_\r\n" in _written(writer)


def test_heartbeat_disabled_with_non_positive_interval():
    conn = IRCConnection("irc.test", 6667, "r2d2")
    assert IRCHeartbeat(conn, ping_interval=0, activity_timeout=10).start() is None


def test_heartbeat_detects_stale_connection():
    conn = IRCConnection("irc.test", 6667, "r2d2")
    conn.last_server_activity = time.monotonic() - 100
    heartbeat = IRCHeartbeat(conn, ping_interval=1, activity_timeout=50)
    assert heartbeat.is_connection_stale()
    conn.last_server_activity = time.monotonic()
    assert not heartbeat.is_connection_stale()
