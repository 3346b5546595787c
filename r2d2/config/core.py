"""Configuration loading entry points."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from ..errors.internal import ConfigurationError
from .model import BotConfig
from .repository import ConfigRepository


def get_configuration(config_file: str) -> BotConfig:
    """Load and validate the bot configuration.

    Args:
        config_file: Path to the JSON configuration file.

    Returns:
        The immutable BotConfig shared by every component.

    Raises:
        ConfigurationError: If the file cannot be read or fails validation.
    """
    raw = ConfigRepository(config_file).load_raw()
    try:
        config = BotConfig.from_dict(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(
            f"Invalid configuration in {config_file}: {problems}",
            data={"path": config_file, "errors": e.error_count()},
        ) from e
    logging.info(
        f"✅ Configuration valid nick={config.irc.nick} server={config.irc.host}:{config.irc.port} "
        f"channel={config.irc.channel}"
    )
    return config


def print_config_summary(config: BotConfig) -> None:
    """Log which optional features are active."""
    logging.debug(f"📊 Configuration summary (tls={config.irc.tls} debug={config.irc.debug})")
    if config.github.enabled:
        logging.debug(f"🐙 GitHub watcher repos={', '.join(config.github.repos)}")
    if config.untappd.enabled:
        logging.debug(f"🍺 Untappd watcher users={', '.join(config.untappd.users)}")
    if config.pagetitles.enabled:
        logging.debug("🔗 Page title fetcher enabled")
