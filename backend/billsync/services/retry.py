"""Bounded retry for provider calls that mutate state."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryOutcome(Generic[T]):
    """Result of a retried call. ``value`` is set only when ``succeeded``."""

    succeeded: bool
    attempts: int
    value: T | None = None
    error: Exception | None = None


def linear_backoff(base_seconds: float) -> Callable[[int], float]:
    """Backoff of ``attempt * base_seconds`` after the given failed attempt."""

    def delay(attempt: int) -> float:
        return attempt * base_seconds

    return delay


def retry_call(
    fn: Callable[[], T],
    max_attempts: int,
    backoff: Callable[[int], float],
    sleep: Callable[[float], None] = time.sleep,
    log: logging.Logger | None = None,
) -> RetryOutcome[T]:
    """Call ``fn`` until it succeeds or ``max_attempts`` calls have failed.

    Sleeps ``backoff(attempt)`` between attempts, never after the last one.
    The last exception is returned in the outcome instead of being raised.
    """
    log = log or logger
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return RetryOutcome(succeeded=True, attempts=attempt, value=fn())
        except Exception as e:
            last_error = e
            log.warning("Attempt %d/%d failed: %s", attempt, max_attempts, e)
            if attempt < max_attempts:
                sleep(backoff(attempt))

    return RetryOutcome(succeeded=False, attempts=max_attempts, error=last_error)
