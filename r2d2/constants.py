"""
Configuration constants for the r2d2 IRC bot

This module contains the tunables used throughout the application.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Attempts to parse the environment variable as a float. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# IRC connection
IRC_DEFAULT_PORT = _get_env_int("IRC_DEFAULT_PORT", 6667)
IRC_DEFAULT_TLS_PORT = _get_env_int("IRC_DEFAULT_TLS_PORT", 6697)
IRC_CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 30.0
)  # Seconds allowed for the TCP/TLS handshake
IRC_REGISTRATION_TIMEOUT = _get_env_float(
    "IRC_REGISTRATION_TIMEOUT", 60.0
)  # Seconds to wait for RPL_WELCOME after NICK/USER
IRC_PING_INTERVAL = _get_env_float(
    "IRC_PING_INTERVAL", 10.0
)  # Client initiated PING frequency
IRC_ACTIVITY_TIMEOUT = _get_env_float(
    "IRC_ACTIVITY_TIMEOUT", 300.0
)  # No server traffic for this long = dead connection
IRC_QUIT_MESSAGE = os.getenv("IRC_QUIT_MESSAGE", "bleep bloop, going offline")

# Authentication handshake
IDENTIFY_RETRY_SECONDS = _get_env_float(
    "IDENTIFY_RETRY_SECONDS", 5.0
)  # Resend IDENTIFY when no confirmation arrived within this delay
AUTH_SERVICE_NICK = os.getenv("AUTH_SERVICE_NICK", "NickServ")

# Response framing
FRAME_MAX_CHARS = _get_env_int(
    "FRAME_MAX_CHARS", 300
)  # Maximum characters of answer text per PRIVMSG

# Command handling
HANDLER_TIMEOUT_SECONDS = _get_env_float(
    "HANDLER_TIMEOUT_SECONDS", 20.0
)  # Upper bound for a single command collaborator

# Background publishers
GITHUB_POLL_INTERVAL = _get_env_float("GITHUB_POLL_INTERVAL", 60.0)
UNTAPPD_POLL_INTERVAL = _get_env_float("UNTAPPD_POLL_INTERVAL", 300.0)
PAGE_TITLE_POLL_INTERVAL = _get_env_float("PAGE_TITLE_POLL_INTERVAL", 2.0)
PAGE_TITLE_MAX_BYTES = _get_env_int(
    "PAGE_TITLE_MAX_BYTES", 65536
)  # Only the head of a page is read when looking for <title>
PAGE_TITLE_QUEUE_SIZE = _get_env_int(
    "PAGE_TITLE_QUEUE_SIZE", 50
)  # Pending links kept before the oldest ones are dropped

# Network/HTTP constants
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30
)  # Default HTTP request timeout
HTTP_USER_AGENT = os.getenv("HTTP_USER_AGENT", "r2d2-ircbot")

# Application lifecycle
DEFAULT_CONFIG_FILE = os.getenv("R2D2_CONF_FILE", "r2d2.conf")
