from __future__ import annotations
from abc import ABC, abstractmethod
from types import TracebackType

from request_execution.models import TransportRequest, TransportResponse


class TransportEngine(ABC):
    """
    A structural interface that defines a pluggable HTTP engine abstraction.
    The HTTP Transport engine performs a single HTTP request and returns a
    low-level TransportResponse, raising TransportError when the exchange
    itself fails. Implementations may wrap aiohttp, httpx, requests,
    urllib3, etc. Transport is also the lifecycle manager for an HTTP
    session. Connection pooling and TLS belong to the wrapped client.
    """

    # Total time allowed for one exchange, in seconds. None disables it.
    timeout: float | None = None

    @abstractmethod
    async def __aenter__(self) -> "TransportEngine":
        ...

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        ...

    @abstractmethod
    async def send(self, request: TransportRequest) -> TransportResponse:
        ...

    async def close(self) -> None:
        await self.__aexit__(None, None, None)
