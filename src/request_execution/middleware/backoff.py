"""
Backoff strategies compute how long the retry middleware waits before the
next attempt. A strategy is any callable with the signature

    (attempt, min_wait, max_wait, last_response) -> seconds

so custom policies can be passed to RetryHandler without touching the
retry loop.
"""
import random
from enum import Enum
from typing import Callable

from request_execution.models import TransportResponse


BackoffStrategy = Callable[[int, float, float, TransportResponse | None], float]

RETRY_AFTER_STATUSES = frozenset({429, 503})


class BackoffType(str, Enum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


def parse_retry_after(response: TransportResponse | None) -> float | None:
    """
    Seconds requested by the server through Retry-After on a 429/503.
    Only the integer-seconds form is honoured; HTTP dates are ignored.
    """
    if response is None or response.status not in RETRY_AFTER_STATUSES:
        return None

    value = response.headers.get("Retry-After")
    if value is None:
        return None

    try:
        return float(int(value.strip()))
    except ValueError:
        return None


def exponential_backoff(
    attempt: int,
    min_wait: float,
    max_wait: float,
    response: TransportResponse | None = None,
) -> float:
    """
    min_wait * 2^attempt, clamped to max_wait. A Retry-After header on a
    429/503 response overrides the computed value.
    """
    retry_after = parse_retry_after(response)
    if retry_after is not None:
        return retry_after

    return min(max_wait, min_wait * (2 ** attempt))


def linear_jitter_backoff(
    attempt: int,
    min_wait: float,
    max_wait: float,
    response: TransportResponse | None = None,
) -> float:
    """
    Linear backoff with jitter. min_wait and max_wait are not absolute
    bounds: they bound the per-attempt step, which is then multiplied by
    the attempt number.

    No jitter: min = max = 1s
    Small jitter: min = 0.7s, max = 1.3s
    Big jitter: min = 0.1s, max = 10s
    """
    if attempt == 0:
        attempt = 1

    if max_wait <= min_wait:
        return min_wait * attempt

    jitter = random.random() * (max_wait - min_wait)
    return (min_wait + jitter) * attempt


BACKOFF_STRATEGIES: dict[BackoffType, BackoffStrategy] = {
    BackoffType.EXPONENTIAL: exponential_backoff,
    BackoffType.LINEAR: linear_jitter_backoff,
}
