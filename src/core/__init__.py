from core.cache import CacheEntry, CacheMode, TTLCache
from core.exceptions import (
    DecodeError,
    DeadlineExceededError,
    InvalidURLError,
    RequestCancelledError,
    RequestError,
    ResponseStatusError,
    RetryExhaustedError,
    TransportError,
    TransportTimeoutError,
    UnexpectedStatusError,
)
from core.logging import configure_logging

__all__ = [
    "CacheEntry",
    "CacheMode",
    "TTLCache",
    "DecodeError",
    "DeadlineExceededError",
    "InvalidURLError",
    "RequestCancelledError",
    "RequestError",
    "ResponseStatusError",
    "RetryExhaustedError",
    "TransportError",
    "TransportTimeoutError",
    "UnexpectedStatusError",
    "configure_logging",
]
