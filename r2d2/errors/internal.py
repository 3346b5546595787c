"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the bot's error handling.
Only raise these inside application/network boundaries – never directly
surface raw aiohttp / JSON errors to the publishers or the dispatcher; wrap
them instead.

Classes:
  InternalError        – Base for all internal errors.
  NetworkError         – Transient network/IO issues (next poll may succeed).
  ParsingError         – Response parsing / schema validation issues.
  RateLimitError       – Explicit rate limiting signalled by remote service.
  ConfigurationError   – Configuration missing or invalid (fatal).
  SessionError         – IRC session could not be established or was lost (fatal).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


class InternalError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors.

    This includes connection timeouts, resets, DNS failures and unexpected
    HTTP statuses from upstream services.
    """


class ParsingError(InternalError):
    """Exception raised for response parsing or schema validation errors."""


@dataclass
class RateLimitContext:
    """Context information for rate limiting errors.

    Attributes:
        remaining: The number of remaining requests allowed, or None if unknown.
        reset_at: Epoch seconds at which the quota resets, or None if unknown.
    """

    remaining: int | None = None
    reset_at: float | None = None


class RateLimitError(InternalError):
    """Exception raised when a remote API reports its quota is exhausted."""

    def __init__(
        self, message: str = "Rate limited", *, context: RateLimitContext | None = None
    ):
        super().__init__(message, data={"rate_limit": context})


class ConfigurationError(InternalError):
    """Exception raised when the configuration file is missing or invalid."""


class SessionError(InternalError):
    """Exception raised when the IRC session cannot be brought up or is lost."""


__all__ = [
    "InternalError",
    "NetworkError",
    "ParsingError",
    "RateLimitError",
    "RateLimitContext",
    "ConfigurationError",
    "SessionError",
]
