from typing import Awaitable, Callable, Protocol

from request_execution.models import TransportRequest, TransportResponse


NEXT_CALL = Callable[[TransportRequest], Awaitable[TransportResponse]]
MIDDLEWARE_FUNC = Callable[[TransportRequest, NEXT_CALL], Awaitable[TransportResponse]]


class Middleware(Protocol):
    """
    Middleware adds one cross-cutting behaviour around a handler. It uses a
    chain pattern: each middleware receives the request and the "next"
    handler in the chain. It can transform the request, then call next, or
    short-circuit and answer on its own.
    """

    async def __call__(
        self,
        request: TransportRequest,
        next_call: NEXT_CALL,
    ) -> TransportResponse:
        """
        Args:
            request: The request as seen by this stage.
            next_call: Handler wrapping every later stage and the transport.

        Returns:
            The response propagated back up the chain.
        """
        ...


def wrap(middleware: MIDDLEWARE_FUNC, next_call: NEXT_CALL) -> NEXT_CALL:
    """Bind a middleware to its downstream handler: Handler -> Handler."""

    async def handler(request: TransportRequest) -> TransportResponse:
        return await middleware(request, next_call)

    return handler


class MiddlewarePipeline:
    """
    Ordered list of middleware folded around a terminal handler.

    The first middleware added is the outermost: it runs first on the way in
    and last on the way out. build() composes the whole list into a single
    handler; calling it again after add() yields a new handler without
    changing how the earlier middleware behave.
    """

    def __init__(self, middleware: list[MIDDLEWARE_FUNC] | None = None) -> None:
        self._middleware_list: list[MIDDLEWARE_FUNC] = list(middleware or [])

    def add(self, middleware: MIDDLEWARE_FUNC) -> None:
        self._middleware_list.append(middleware)

    def extend(self, middleware: list[MIDDLEWARE_FUNC]) -> None:
        self._middleware_list.extend(middleware)

    def __len__(self) -> int:
        return len(self._middleware_list)

    def build(self, terminal_handler: NEXT_CALL) -> NEXT_CALL:
        handler = terminal_handler
        for mw in reversed(self._middleware_list):
            handler = wrap(mw, handler)
        return handler

