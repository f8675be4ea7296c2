import logging
import time
from collections.abc import Callable
from typing import TypeVar

from gemini_relay.infrastructure.data_models import (
    EmptyCandidatesError,
    RetryExhaustedError,
    UpstreamError,
)

T = TypeVar("T")

# Rate limit, internal error, service unavailable
RETRYABLE_STATUS_CODES = frozenset({429, 500, 503})

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0


def is_retryable(error: Exception) -> bool:
    """Return True for upstream failures worth another attempt."""
    if isinstance(error, EmptyCandidatesError):
        return True
    if isinstance(error, UpstreamError):
        return error.status_code in RETRYABLE_STATUS_CODES
    return False


def backoff_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """
    Delay to wait after the given (1-based) failed attempt.

    Doubles every attempt starting at `base_delay`: 1, 2, 4, ...
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    return base_delay * (2 ** (attempt - 1))


def call_with_retries(
    call: Callable[[int], T],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    logger: logging.Logger | None = None,
    context: str = "",
) -> T:
    """
    Run `call(attempt)` until it succeeds or the failure is terminal.

    Args:
        call: Receives the 1-based attempt number and performs one upstream call.
        max_attempts: Total attempts, including the first one.
        base_delay: Delay after the first failed attempt; doubles each retry.
        sleep: Blocking sleep used between attempts.
        logger: Optional logger for attempt diagnostics.
        context: Extra text appended to log lines (model, credential source).

    Returns:
        Whatever `call` returns on success.

    Raises:
        RetryExhaustedError: On a non-retryable failure or when attempts run out.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        if logger:
            logger.info(f"Attempt {attempt}/{max_attempts}{context}")
        try:
            return call(attempt)
        except UpstreamError as e:
            retryable = is_retryable(e)
            if logger:
                logger.error(
                    f"Upstream error on attempt {attempt} (retryable={retryable}){context}: {e}"
                )
            if not retryable or attempt == max_attempts:
                raise RetryExhaustedError(attempt, e) from e

            delay = backoff_delay(attempt, base_delay)
            if logger:
                logger.warning(f"Retryable error detected. Waiting {delay}s...")
            sleep(delay)

    # range() above always returns or raises
    raise AssertionError("unreachable")
