"""Configuration package: pydantic models and JSON file loading."""

from .core import get_configuration, print_config_summary
from .model import (
    BotConfig,
    GeolocationConfig,
    GithubConfig,
    IrcConfig,
    PageTitleConfig,
    UntappdConfig,
    is_channel,
    normalize_channel,
)
from .repository import ConfigRepository

__all__ = [
    "BotConfig",
    "ConfigRepository",
    "GeolocationConfig",
    "GithubConfig",
    "IrcConfig",
    "PageTitleConfig",
    "UntappdConfig",
    "get_configuration",
    "is_channel",
    "normalize_channel",
    "print_config_summary",
]
