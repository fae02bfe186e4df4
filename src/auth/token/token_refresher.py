import asyncio
import inspect
import logging
import math
import time
from typing import Any, Coroutine

from auth.token.models import AuthorizeFunc, TokenInfo


LIFESPAN_SAFETY_MARGIN = 1.0
MIN_REFRESH_INTERVAL = 1.0


class TokenRefresher:
    """
    Holds a single shared bearer credential and renews it in the background
    before it expires.

    Exactly one background task owns the writable copy of the credential:
      • It calls the injected authorize function to obtain
        (token, lifespan). A raised exception is recorded in place of the
        token and logged; it never stops the task.
      • It publishes the result as one TokenInfo by reference assignment and
        then offers it to every reader until the refresh timer fires at
        lifespan - safety_margin.
      • When the timer fires it withdraws the offer *before* calling the
        authorize function again, so from that instant on no reader can be
        handed the old credential. Readers arriving during the refresh wait
        for the new value.

    When lifespan - safety_margin is not positive (including failed
    authorization) the next attempt waits min_refresh_interval instead, so a
    failing or short-lived authorize function cannot spin the task.

    The task is scoped to the refresher, not to any request: it is started
    by start() or lazily by the first get(), and runs until stop(). It is
    bound to the event loop that started it.
    """

    def __init__(
        self,
        schema: str,
        authorize: AuthorizeFunc,
        logger: logging.Logger | None = None,
        safety_margin: float = LIFESPAN_SAFETY_MARGIN,
        min_refresh_interval: float = MIN_REFRESH_INTERVAL,
    ) -> None:
        self.schema = schema
        self._authorize = authorize
        self._logger = logger or logging.getLogger(self.__class__.__name__)
        self._safety_margin = safety_margin
        self._min_refresh_interval = min_refresh_interval

        self._current: TokenInfo | None = None
        self._offering = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.refresh_count = 0

    @property
    def current(self) -> TokenInfo | None:
        """The last published credential, regardless of whether it is offered."""
        return self._current

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _authorize_once(self) -> tuple[TokenInfo, float]:
        try:
            result = self._authorize()
            if inspect.isawaitable(result):
                result = await result
            token, lifespan = result
            lifespan = float(lifespan)
            if math.isnan(lifespan):
                raise ValueError("token lifespan is not a number")
        except Exception as e:
            self._logger.error(f"Could not retrieve access token: {e}")
            return TokenInfo(token=None, error=e), 0.0

        return TokenInfo(token=token, expires_at=time.monotonic() + lifespan), lifespan

    def _next_refresh_delay(self, lifespan: float) -> float:
        delay = lifespan - self._safety_margin
        if delay <= 0:
            return self._min_refresh_interval
        return delay

    def background_coroutine(self) -> Coroutine[Any, Any, None]:
        """The refresh loop: the only writer of the shared credential."""

        async def _refresh_token_loop() -> None:
            try:
                while True:
                    self._offering.clear()

                    info, lifespan = await self._authorize_once()
                    self._current = info
                    self.refresh_count += 1
                    self._offering.set()

                    await asyncio.sleep(self._next_refresh_delay(lifespan))

            except asyncio.CancelledError:
                self._logger.info("Background token refresh loop cancelled")
                raise
            finally:
                # nothing is offered without a live writer
                self._offering.clear()

        return _refresh_token_loop()

    def start(self) -> None:
        """Schedule the refresh loop on the running event loop (idempotent)."""
        if self.is_running:
            return

        loop = asyncio.get_running_loop()
        # the event may be bound to a loop that has since closed
        self._offering = asyncio.Event()
        self._task = loop.create_task(
            self.background_coroutine(),
            name=f"{self.__class__.__name__}[{self.schema}]",
        )
        self._logger.info(f"Background token refresh loop started (margin={self._safety_margin}s)")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        self._offering.clear()

    async def get(self) -> tuple[str | None, BaseException | None]:
        """
        Wait until a credential is offered and return (token, error).
        All callers served within one refresh cycle receive the same pair.
        """
        self.start()

        while not self._offering.is_set():
            await self._offering.wait()

        info = self._current
        return info.token, info.error
