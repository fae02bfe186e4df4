from __future__ import annotations
from typing import Any


class RequestError(Exception):
    """
    Structured error returned to callers of the request pipeline.
    • message: human readable description
    • cause: the original exception, if any
    • status_code: HTTP status observed, if any
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status_code = status_code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [f"message: {self.message}"]
        if self.cause is not None:
            parts.append(f"cause: {self.cause}")
        if self.status_code is not None:
            parts.append(f"statusCode: {self.status_code}")
        return "\n ".join(parts)

    def __reduce__(self):
        # subclasses take different constructor arguments; rebuild from state
        return _restore_error, (self.__class__, self.args), self.__dict__


def _restore_error(cls: type[RequestError], args: tuple) -> RequestError:
    return cls.__new__(cls, *args)


class TransportError(RequestError):
    """Raised by the transport when the network exchange itself failed."""

    pass


class TransportTimeoutError(TransportError):
    """Raised when the underlying client gives up waiting for a response."""

    pass


class UnexpectedStatusError(RequestError):
    """A retryable server status (5xx other than 501)."""

    pass


class ResponseStatusError(RequestError):
    """A terminal status >= 400 surfaced with the response body."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: bytes | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.body = body


class RetryExhaustedError(RequestError):
    """The retry budget was spent; wraps the last cause and response."""

    def __init__(
        self,
        message: str,
        attempts: int,
        cause: BaseException | None = None,
        response: Any | None = None,
    ) -> None:
        status_code = getattr(response, "status", None)
        super().__init__(message, cause=cause, status_code=status_code)
        self.attempts = attempts
        self.response = response


class RequestCancelledError(RequestError):
    """The caller's context was cancelled."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class DeadlineExceededError(RequestCancelledError):
    """The caller's context deadline passed."""

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


class InvalidURLError(RequestError):
    pass


class DecodeError(RequestError):
    """The response status was fine but the body could not be decoded."""

    pass
