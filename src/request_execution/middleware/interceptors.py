# Wrap the downstream call and inspect the request and response:
# retry with backoff, caching of GET responses
import asyncio
import copy
import logging
import ssl
from dataclasses import dataclass

import aiohttp

from core.cache import CacheMode, TTLCache
from core.exceptions import (
    InvalidURLError,
    RequestCancelledError,
    RequestError,
    RetryExhaustedError,
    TransportError,
    UnexpectedStatusError,
)
from request_execution.context import CallContext
from request_execution.models import TransportRequest, TransportResponse
from request_execution.middleware.backoff import BackoffStrategy, exponential_backoff
from request_execution.middleware.pipeline import NEXT_CALL, Middleware


# Failures that describe a request which can never succeed as written.
NON_RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    aiohttp.TooManyRedirects,
    aiohttp.InvalidURL,
    aiohttp.ClientConnectorCertificateError,
    ssl.SSLCertVerificationError,
)

# Exceptions the retry loop treats as a failed exchange rather than a bug.
TRANSPORT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    RequestError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    OSError,
)


@dataclass(frozen=True)
class RetryHandler:
    """
    Retry policy attached to a pipeline.
    • min_wait / max_wait: bounds handed to the backoff strategy (seconds)
    • retry_count: retries after the first attempt
    • backoff: strategy computing the wait before the next attempt
    """
    min_wait: float = 0.5
    max_wait: float = 10.0
    retry_count: int = 3
    backoff: BackoffStrategy = exponential_backoff

    def should_retry(
        self,
        context: CallContext,
        response: TransportResponse | None,
        error: BaseException | None,
    ) -> tuple[bool, BaseException | None]:
        """
        Decide what to do with the outcome of one attempt. Returns whether to
        retry and the error that describes the outcome, if any.
        """
        ctx_err = context.error()
        if ctx_err is not None:
            return False, ctx_err

        if error is not None:
            if isinstance(error, (RequestCancelledError, InvalidURLError)):
                return False, error

            cause = error.cause if isinstance(error, TransportError) else error
            if isinstance(cause, NON_RETRYABLE_EXCEPTIONS):
                return False, error

            return True, error

        if response is None:
            return True, None

        if response.status == 429:
            return True, None

        if response.status == 0 or (response.status >= 500 and response.status != 501):
            status = f"{response.status} {response.reason or ''}".strip()
            return True, UnexpectedStatusError(
                f"unexpected HTTP status {status}",
                status_code=response.status,
            )

        return False, None


class RetryMiddleware(Middleware):
    """
    Retry failed exchanges according to a RetryHandler.

    At most retry_count + 1 attempts are made. Waits between attempts are
    cancellable through the request's CallContext; a cancelled context ends
    the loop immediately with the cancellation error. Non-retryable failures
    are raised as they are after the attempt that produced them. Once the
    budget is spent a RetryExhaustedError wraps the last cause.
    """

    def __init__(self, retry_handler: RetryHandler, logger: logging.Logger | None = None) -> None:
        self.retry_handler = retry_handler
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def __call__(self, request: TransportRequest, next_call: NEXT_CALL) -> TransportResponse:
        rh = self.retry_handler
        attempt = 0

        while True:
            response: TransportResponse | None = None
            error: BaseException | None = None

            try:
                response = await next_call(request)
            except TRANSPORT_EXCEPTIONS as exc:
                error = exc

            retry, error = rh.should_retry(request.context, response, error)

            if not retry:
                if error is None:
                    return response
                raise error

            if attempt >= rh.retry_count:
                break

            wait = rh.backoff(attempt, rh.min_wait, rh.max_wait, response)
            reason = error if error is not None else f"HTTP {response.status}"
            self._logger.debug(
                f"{request.method} {request.url} attempt {attempt + 1} failed "
                f"({reason}); retrying in {wait:.2f}s"
            )

            await request.context.sleep(wait)
            attempt += 1

        attempts = attempt + 1
        raise RetryExhaustedError(
            f"{request.method} {request.url} giving up after {attempts} attempt(s)",
            attempts=attempts,
            cause=error,
            response=response,
        )


class CachingMiddleware(Middleware):
    """
    Short-circuit GET requests whose outcome is already in the TTL store.
    The key is the lower-cased full URL, query string included. Cancellation
    errors are never stored. A stored failure is kept without a traceback
    and every hit raises its own copy of it.
    """

    def __init__(self, cache: TTLCache, mode: CacheMode = CacheMode.ERRORS) -> None:
        self.cache = cache
        self.mode = mode

    @staticmethod
    def detach(failure: RequestError) -> RequestError:
        """A traceback-free copy of failure that keeps its cause."""
        replica = copy.copy(failure)
        replica.__cause__ = failure.__cause__
        replica.__traceback__ = None
        return replica

    @staticmethod
    def cache_key(request: TransportRequest) -> str:
        return request.url.lower()

    async def __call__(self, request: TransportRequest, next_call: NEXT_CALL) -> TransportResponse:
        if request.method.upper() != "GET":
            return await next_call(request)

        key = self.cache_key(request)

        cached, hit = self.cache.get(key)
        if hit:
            if isinstance(cached, RequestError):
                raise self.detach(cached)
            return cached

        try:
            response = await next_call(request)
        except RequestCancelledError:
            raise
        except RequestError as exc:
            if self.mode is CacheMode.ERRORS:
                self.cache.set(key, self.detach(exc))
            raise

        if response.ok == (self.mode is CacheMode.SUCCESS):
            self.cache.set(key, response)

        return response
