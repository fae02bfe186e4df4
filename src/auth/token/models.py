from dataclasses import dataclass
from typing import Awaitable, Callable, Union


AuthorizeResult = tuple[str, float]

# Returns (token, lifespan in seconds) and raises on failure. May be a plain
# function or a coroutine function.
AuthorizeFunc = Callable[[], Union[AuthorizeResult, Awaitable[AuthorizeResult]]]


@dataclass(frozen=True)
class TokenInfo:
    """
    One refresh cycle's credential: either a token or the error raised by
    the authorize function. expires_at is on the monotonic clock.
    """
    token: str | None
    error: BaseException | None = None
    expires_at: float | None = None
