from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import DEFAULT_MAX_RETRY_ATTEMPTS, RETRY_MAX_BACKOFF_SECONDS
from ..logging_config import ErrorStats, log_structured_error
from .internal import (
    AuthenticationError,
    InternalError,
    MetadataLookupError,
    ProtocolViolation,
    RemoteRejection,
    StateError,
    TransportError,
)

T = TypeVar("T")

# Failures worth another attempt: the request never produced a usable answer.
_TRANSIENT_ERRORS = (aiohttp.ClientError, OSError, TimeoutError)


def log_error(
    message: str,
    error: Exception,
    context: dict | None = None,
    stats: ErrorStats | None = None,
) -> None:
    """Logs an error message with the associated exception details.

    The exception is mapped onto a coarse category, which is also the key
    it is counted under in ``stats``.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        stats: Counters of the client the error belongs to.
    """
    error_type = "unknown"
    if isinstance(error, TransportError | OSError | ConnectionError):
        error_type = "transport"
    elif isinstance(error, AuthenticationError):
        error_type = "auth"
    elif isinstance(error, ProtocolViolation):
        error_type = "protocol"
    elif isinstance(error, StateError):
        error_type = "state"
    elif isinstance(error, RemoteRejection):
        error_type = "rejected"
    elif isinstance(error, MetadataLookupError):
        error_type = "lookup"
    elif isinstance(error, InternalError):
        error_type = "internal"

    log_structured_error(
        error_type=error_type,
        message=f"{message}: {str(error)}",
        exception=error,
        context=context,
        stats=stats,
    )


async def handle_api_error(
    operation: Callable[[], Awaitable[T]],
    context: str,
    max_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS,
    stats: ErrorStats | None = None,
) -> T:
    """Run an HTTP operation, retrying transient failures with Tenacity.

    Network and timeout errors are retried with exponential backoff. Anything
    else (including a ``MetadataLookupError`` raised by the operation itself)
    fails immediately. Final failures are logged with structured context and
    surfaced as ``MetadataLookupError``.

    Args:
        operation: The async API operation to execute.
        context: Descriptive context for the operation (e.g., "osu! API get_user").
        max_attempts: Maximum number of attempts.
        stats: Counters the final failure is recorded in, under ``lookup``.

    Returns:
        The result of the operation if successful.

    Raises:
        MetadataLookupError: If the operation failed for good.
    """
    attempt_count = 0

    def before_retry(retry_state):
        nonlocal attempt_count
        attempt_count = retry_state.attempt_number
        if attempt_count > 1:
            logging.info(f"Retrying {context} (retry {attempt_count})")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, max=RETRY_MAX_BACKOFF_SECONDS),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        before=before_retry,
        reraise=True,
    )

    try:
        return await retrying(operation)
    except MetadataLookupError as e:
        log_error("API operation failed", e, context={"operation": context}, stats=stats)
        raise
    except (RetryError, *_TRANSIENT_ERRORS, ValueError, RuntimeError) as e:
        error_context: dict[str, object] = {
            "operation": context,
            "attempts": attempt_count,
            "timestamp": time.time(),
        }
        if hasattr(e, "status"):
            error_context["http_status"] = e.status
        failure = MetadataLookupError(f"Lookup failed in {context}: {e}", data=error_context)
        log_error("API operation failed", failure, context=error_context, stats=stats)
        raise failure from e
