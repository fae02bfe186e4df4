import asyncio
import inspect
import time
from typing import Awaitable, TypeVar

from core.exceptions import DeadlineExceededError, RequestCancelledError


T = TypeVar("T")


class CallContext:
    """
    Cancellation and deadline carrier attached to every TransportRequest.

    A deadline is fixed when the context is created (timeout seconds from
    now, measured on the monotonic clock). cancel() ends the context early.
    The context is request-scoped: cancelling it aborts pending retry waits
    and in-flight transport calls of the requests that carry it, but never
    touches executor-scoped resources such as the token refresher.

    cancel() must be called from the event loop thread that awaits on the
    context.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._deadline: float | None = (
            time.monotonic() + timeout if timeout is not None else None
        )
        self._cancelled = asyncio.Event()

    @classmethod
    def background(cls) -> "CallContext":
        """A context that is never cancelled and has no deadline."""
        return cls()

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> RequestCancelledError | None:
        """Return the reason the context is done, or None while it is live."""
        if self._cancelled.is_set():
            return RequestCancelledError()
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DeadlineExceededError()
        return None

    def done(self) -> bool:
        return self.error() is not None

    def raise_if_done(self) -> None:
        err = self.error()
        if err is not None:
            raise err

    async def sleep(self, delay: float) -> None:
        """
        Wait for delay seconds unless the context ends first, in which case
        the cancellation error is raised immediately.
        """
        self.raise_if_done()

        remaining = self.remaining()
        timeout = delay if remaining is None else min(delay, remaining)

        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=max(0.0, timeout))
        except asyncio.TimeoutError:
            if remaining is not None and remaining <= delay:
                raise DeadlineExceededError() from None
            return

        raise RequestCancelledError()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` unless the context ends first. The losing side is
        cancelled and the cancellation error raised.
        """
        err = self.error()
        if err is not None:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise err

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._cancelled.wait())

        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except BaseException:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        waiter.cancel()
        await asyncio.gather(task, return_exceptions=True)

        if waiter in done:
            raise RequestCancelledError()
        raise DeadlineExceededError()
