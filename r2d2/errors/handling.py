from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp

from ..logging_config import log_structured_error
from .internal import (
    ConfigurationError,
    InternalError,
    NetworkError,
    ParsingError,
    RateLimitContext,
    RateLimitError,
    SessionError,
)

T = TypeVar("T")


def log_error(message: str, error: Exception, context: dict | None = None) -> None:
    """Logs an error message with the associated exception details.

    The exception is mapped to a coarse error category so the structured log
    and the error aggregator can group occurrences.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
    """
    error_type = "unknown"
    if isinstance(error, NetworkError | OSError | ConnectionError | TimeoutError):
        error_type = "network"
    elif isinstance(error, RateLimitError):
        error_type = "ratelimit"
    elif isinstance(error, ParsingError):
        error_type = "parsing"
    elif isinstance(error, ConfigurationError):
        error_type = "config"
    elif isinstance(error, SessionError):
        error_type = "session"
    elif isinstance(error, InternalError):
        error_type = "internal"

    log_structured_error(
        error_type=error_type,
        message=f"{message}: {str(error)}",
        exception=error,
        context=context,
    )


async def handle_api_error(operation: Callable[[], Awaitable[T]], context: str) -> T:
    """Run an HTTP operation and translate its failures into internal errors.

    Args:
        operation: The async API operation to execute.
        context: Descriptive context for the operation (e.g., "GitHub events").

    Returns:
        The result of the operation if successful.

    Raises:
        NetworkError: Connectivity problems, timeouts and 5xx responses.
        RateLimitError: HTTP 429, or 403 with an exhausted quota header.
        ParsingError: Other 4xx responses and undecodable payloads.
        InternalError: Anything else raised by the operation.
    """
    try:
        return await operation()
    except InternalError:
        raise
    except (aiohttp.ContentTypeError, ValueError) as e:
        # ContentTypeError subclasses ClientResponseError, keep it first.
        raise ParsingError(
            f"Unexpected payload in {context}: {str(e)}",
            data={"operation": context, "timestamp": time.time()},
        ) from e
    except aiohttp.ClientResponseError as e:
        error_context = {"operation": context, "http_status": e.status}
        headers = e.headers or {}
        if e.status == 429 or (
            e.status == 403 and headers.get("X-RateLimit-Remaining") == "0"
        ):
            reset = headers.get("X-RateLimit-Reset")
            raise RateLimitError(
                f"API rate limit exceeded in {context}",
                context=RateLimitContext(
                    remaining=0,
                    reset_at=float(reset) if reset and reset.isdigit() else None,
                ),
            ) from e
        if 400 <= e.status < 500:
            raise ParsingError(
                f"Client error in {context} (HTTP {e.status}). Check request parameters and credentials.",
                data=error_context,
            ) from e
        raise NetworkError(
            f"Upstream error in {context} (HTTP {e.status})", data=error_context
        ) from e
    except (aiohttp.ClientError, OSError, TimeoutError) as e:
        raise NetworkError(
            f"Network connectivity issue in {context}. Error: {str(e) or type(e).__name__}",
            data={"operation": context, "timestamp": time.time()},
        ) from e
