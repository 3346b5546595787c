"""SignalHandler - turns SIGINT/SIGTERM into a graceful shutdown request."""

import asyncio
import logging
import signal


class SignalHandler:
    """Set ``stop_event`` once when the process is asked to terminate."""

    def __init__(self, stop_event: asyncio.Event) -> None:
        self.stop_event = stop_event
        self.shutdown_initiated = False
        self._loop: asyncio.AbstractEventLoop | None = None

    def stop(self) -> None:
        """Request shutdown from inside the event loop."""
        self.shutdown_initiated = True
        self.stop_event.set()

    def setup_signal_handlers(self) -> None:  # pragma: no cover
        """Install handlers for SIGINT/SIGTERM; must run inside the loop."""
        self._loop = asyncio.get_running_loop()

        def handler(signum: int, _frame: object | None) -> None:  # noqa: D401
            # Idempotent signal handler: only trigger once
            if self.shutdown_initiated:
                return
            logging.warning(f"🛑 Signal received - initiating shutdown (signal={signum})")
            self.shutdown_initiated = True
            if self._loop is not None:
                self._loop.call_soon_threadsafe(self.stop_event.set)

        signal.signal(signal.SIGINT, handler)
        signal.signal(signal.SIGTERM, handler)
