#!/usr/bin/env python3
"""
Main entry point for the r2d2 IRC bot
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .bot.core import R2D2Bot
from .bot.signal_handler import SignalHandler
from .config import get_configuration, print_config_summary
from .config.model import BotConfig
from .constants import DEFAULT_CONFIG_FILE
from .errors.handling import log_error
from .errors.internal import ConfigurationError, SessionError
from .logging_config import LoggerConfigurator, debug_from_env

EXIT_OK = 0
EXIT_FAILURE = 1

configurator = LoggerConfigurator(debug=debug_from_env())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="r2d2", description="IRC bot answering commands and announcing activity"
    )
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"path to the JSON configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="validate the configuration and exit",
    )
    return parser


async def main(config: BotConfig, stop_event: asyncio.Event | None = None) -> int:
    """Run the bot until it is stopped or its connection fails.

    Returns:
        The process exit status: 0 after a requested shutdown, 1 when the
        session could not be established or was lost.
    """
    stop_event = stop_event or asyncio.Event()
    signals = SignalHandler(stop_event)
    signals.setup_signal_handlers()
    bot = R2D2Bot(config, stop_event=stop_event)
    try:
        await bot.run()
    except SessionError as e:
        log_error("IRC session failed", e)
        return EXIT_FAILURE
    logging.info("✅ Application shutdown complete")
    return EXIT_OK


def run(argv: list[str] | None = None) -> None:
    """Synchronous entry point for the application.

    Raises:
        SystemExit: Always, carrying the exit status.
    """
    args = build_parser().parse_args(argv)
    configurator.configure()
    try:
        config = get_configuration(args.config)
    except ConfigurationError as e:
        log_error("Configuration error", e)
        sys.exit(EXIT_FAILURE)

    if config.irc.debug:
        configurator.set_debug(True)
    print_config_summary(config)

    if args.health_check:
        logging.info("🏥 Health check passed")
        sys.exit(EXIT_OK)

    logging.info("🚀 Starting r2d2")
    try:
        status = asyncio.run(main(config))
    except (KeyboardInterrupt, asyncio.CancelledError):
        status = EXIT_OK
    except Exception as e:  # noqa: BLE001
        log_error("Top-level error", e)
        status = EXIT_FAILURE
    sys.exit(status)


if __name__ == "__main__":
    run()
