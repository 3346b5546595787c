from __future__ import annotations

import asyncio
import signal
from unittest.mock import patch

import pytest

from r2d2.bot.signal_handler import SignalHandler


def _registered(mock_signal) -> dict[int, object]:
    return {call.args[0]: call.args[1] for call in mock_signal.call_args_list}


@pytest.mark.asyncio
@pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
async def test_signal_sets_stop_event(signum):
    stop = asyncio.Event()
    handler = SignalHandler(stop)
    with patch("signal.signal") as mock_signal:
        handler.setup_signal_handlers()
    callbacks = _registered(mock_signal)
    assert set(callbacks) == {signal.SIGINT, signal.SIGTERM}

    callbacks[signum](signum, None)
    assert handler.shutdown_initiated
    await asyncio.wait_for(stop.wait(), timeout=1)


@pytest.mark.asyncio
async def test_repeated_signals_are_idempotent():
    stop = asyncio.Event()
    handler = SignalHandler(stop)
    with patch("signal.signal") as mock_signal:
        handler.setup_signal_handlers()
    callback = _registered(mock_signal)[signal.SIGINT]
    with patch("logging.warning") as mock_warning:
        callback(signal.SIGINT, None)
        callback(signal.SIGINT, None)
    assert mock_warning.call_count == 1


def test_stop_sets_event():
    stop = asyncio.Event()
    handler = SignalHandler(stop)
    handler.stop()
    assert stop.is_set()
    assert handler.shutdown_initiated
