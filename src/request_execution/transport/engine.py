import asyncio
from types import TracebackType
from typing_extensions import Self

import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector

from config.models.transport import TcpConnectionConfig
from core.exceptions import TransportError, TransportTimeoutError
from request_execution.models import TransportRequest, TransportResponse
from request_execution.transport.base import TransportEngine


DEFAULT_TIMEOUT = 30.0


class AiohttpEngine(TransportEngine):
    """
    TransportEngine adapter that uses aiohttp.ClientSession to make HTTP
    requests.

    The session is opened lazily on first use (or by entering the engine as
    an async context manager) and is bound to the event loop that opened it.
    The total timeout is applied per request, so changing `timeout` takes
    effect for the next request without reopening the session.
    """

    def __init__(
        self,
        timeout: float | None = DEFAULT_TIMEOUT,
        connector_config: TcpConnectionConfig | None = None,
        max_redirects: int = 10,
        session: ClientSession | None = None,
    ) -> None:
        self._timeout = timeout
        self._connector_config = connector_config
        self._max_redirects = max_redirects
        self._session: ClientSession | None = session
        self._owns_session = session is None

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @timeout.setter
    def timeout(self, value: float | None) -> None:
        self._timeout = value

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise ValueError(f"{self.__class__.__name__} aiohttp ClientSession not assigned")
        return self._session

    def _build_tcp_connector(self, cfg: TcpConnectionConfig) -> TCPConnector:
        return TCPConnector(**cfg.model_dump())

    def _ensure_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            connector = (
                self._build_tcp_connector(self._connector_config)
                if self._connector_config is not None
                else None
            )
            self._session = ClientSession(connector=connector)
            self._owns_session = True
        return self._session

    async def __aenter__(self) -> Self:
        self._ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    async def send(self, request: TransportRequest) -> TransportResponse:
        session = self._ensure_session()

        try:
            async with session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.body,
                timeout=ClientTimeout(total=self._timeout),
                max_redirects=self._max_redirects,
            ) as response:
                body = await response.read()
                return TransportResponse(
                    status=response.status,
                    headers=response.headers,
                    body=body,
                    reason=response.reason,
                )
        except asyncio.TimeoutError as e:
            raise TransportTimeoutError(
                f"{request.method} {request.url}: deadline exceeded "
                f"(client timeout {self._timeout}s)",
                cause=e,
            ) from e
        except (aiohttp.ClientError, OSError) as e:
            raise TransportError(
                f"{request.method} {request.url}: {type(e).__name__}: {e}",
                cause=e,
            ) from e
