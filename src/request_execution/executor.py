import asyncio
import logging
import threading
from types import TracebackType
from typing import Callable
from typing_extensions import Self

from auth.token.models import AuthorizeFunc
from auth.token.token_provider import (
    ClientGrantTokenProvider,
    PasswordGrantTokenProvider,
    StaticTokenProvider,
    TokenProvider,
)
from auth.token.token_refresher import LIFESPAN_SAFETY_MARGIN, TokenRefresher
from config.models.auth import AuthConfigModel, AuthType
from config.models.executor import ExecutorConfig
from config.models.transport import TransportEngineType
from core.cache import CacheMode, TTLCache
from request_execution.middleware.backoff import (
    BACKOFF_STRATEGIES,
    BackoffType,
    exponential_backoff,
    linear_jitter_backoff,
)
from request_execution.middleware.common import AuthorizeMiddleware
from request_execution.middleware.interceptors import (
    CachingMiddleware,
    RetryHandler,
    RetryMiddleware,
)
from request_execution.middleware.listeners import LoggingMiddleware, PerformanceMiddleware
from request_execution.middleware.pipeline import MIDDLEWARE_FUNC, NEXT_CALL, MiddlewarePipeline
from request_execution.models import TransportRequest, TransportResponse
from request_execution.transport.base import TransportEngine
from request_execution.transport.engine import DEFAULT_TIMEOUT, AiohttpEngine


DEFAULT_MIN_WAIT_RETRY = 0.5
DEFAULT_MAX_WAIT_RETRY = 10.0

TOKEN_PROVIDERS: dict[AuthType, Callable[..., TokenProvider]] = {
    AuthType.STATIC: StaticTokenProvider,
    AuthType.OAUTH2_CLIENT_CREDENTIALS: ClientGrantTokenProvider,
    AuthType.OAUTH2_PASSWORD: PasswordGrantTokenProvider,
}

TRANSPORT_ENGINES: dict[TransportEngineType, Callable[..., TransportEngine]] = {
    TransportEngineType.AIOHTTP: AiohttpEngine,
}


class RequestExecutor:
    """
    Composition root of the request pipeline. The RequestExecutor owns the
    TransportEngine, the ordered middleware list and the handler composed
    from them, and is the gateway every request passes through:
    • Configuration methods append middleware and rebuild the composed
      handler. Each returns the executor so calls can be chained.
    • Caching, retry and authorization can be enabled once; later calls to
      enable them again are ignored.
    • send() runs a request through the composed handler. The innermost
      handler performs the network call on the TransportEngine.

    Configuration is serialized by a lock and publishes the new handler by
    a single reference assignment. A request reads that reference once, so
    it keeps the chain it started with even if configuration changes while
    it is in flight. Configure before sending traffic where possible.
    """

    def __init__(
        self,
        transport: TransportEngine | None = None,
        *,
        timeout: float | None = DEFAULT_TIMEOUT,
        min_wait_retry: float = DEFAULT_MIN_WAIT_RETRY,
        max_wait_retry: float = DEFAULT_MAX_WAIT_RETRY,
        logger: logging.Logger | None = None,
    ) -> None:
        self.transport = transport if transport is not None else AiohttpEngine(timeout=timeout)
        self.min_wait_retry = min_wait_retry
        self.max_wait_retry = max_wait_retry

        self._middleware_logger = logger
        self._logger = logger or logging.getLogger(self.__class__.__name__)

        self._pipeline = MiddlewarePipeline()
        self._config_lock = threading.Lock()

        self.cache_enabled = False
        self.retry_enabled = False
        self.auth_enabled = False

        self._cache: TTLCache | None = None
        self._refresher: TokenRefresher | None = None

        self._handler: NEXT_CALL = self._pipeline.build(self._terminal)

    async def _terminal(self, request: TransportRequest) -> TransportResponse:
        return await request.context.run(self.transport.send(request))

    def _rebuild(self) -> None:
        self._handler = self._pipeline.build(self._terminal)

    @property
    def handler(self) -> NEXT_CALL:
        """The composed pipeline as a single request -> response callable."""
        return self._handler

    @property
    def middleware_count(self) -> int:
        return len(self._pipeline)

    @property
    def cache(self) -> TTLCache | None:
        return self._cache

    @property
    def token_refresher(self) -> TokenRefresher | None:
        return self._refresher

    # configuration

    def with_timeout(self, timeout: float | None) -> Self:
        self.transport.timeout = timeout
        return self

    def with_middleware(self, middleware: MIDDLEWARE_FUNC) -> Self:
        with self._config_lock:
            self._pipeline.add(middleware)
            self._rebuild()
        return self

    def with_middlewares(self, *middleware: MIDDLEWARE_FUNC) -> Self:
        with self._config_lock:
            self._pipeline.extend(list(middleware))
            self._rebuild()
        return self

    def add_logging(self) -> Self:
        return self.with_middleware(LoggingMiddleware(self._middleware_logger))

    def add_performance_monitor(self, threshold: float) -> Self:
        return self.with_middleware(PerformanceMiddleware(threshold, self._middleware_logger))

    def add_caching(self, ttl: float, mode: CacheMode = CacheMode.ERRORS) -> Self:
        with self._config_lock:
            if self.cache_enabled:
                self._logger.debug("Caching already enabled; ignoring add_caching()")
                return self

            self._cache = TTLCache(ttl)
            self._pipeline.add(CachingMiddleware(self._cache, mode))
            self._rebuild()
            self.cache_enabled = True

        return self

    def with_retry(self, retry_handler: RetryHandler) -> Self:
        with self._config_lock:
            if self.retry_enabled:
                self._logger.debug("Retry already enabled; ignoring retry policy")
                return self

            self._pipeline.add(RetryMiddleware(retry_handler, self._middleware_logger))
            self._rebuild()
            self.retry_enabled = True

        return self

    def with_exponential_retry(self, retry_count: int) -> Self:
        return self.with_retry(
            RetryHandler(
                min_wait=self.min_wait_retry,
                max_wait=self.max_wait_retry,
                retry_count=retry_count,
                backoff=exponential_backoff,
            )
        )

    def with_linear_retry(self, retry_count: int) -> Self:
        return self.with_retry(
            RetryHandler(
                min_wait=self.min_wait_retry,
                max_wait=self.max_wait_retry,
                retry_count=retry_count,
                backoff=linear_jitter_backoff,
            )
        )

    def with_authorization(
        self,
        schema: str,
        authorize: AuthorizeFunc,
        safety_margin: float = LIFESPAN_SAFETY_MARGIN,
    ) -> Self:
        with self._config_lock:
            if self.auth_enabled:
                self._logger.debug("Authorization already enabled; ignoring with_authorization()")
                return self

            self._refresher = TokenRefresher(
                schema,
                authorize,
                logger=self._middleware_logger,
                safety_margin=safety_margin,
            )
            self._pipeline.add(AuthorizeMiddleware(self._refresher, self._middleware_logger))
            self._rebuild()
            self.auth_enabled = True

        # Start refreshing right away when configured from inside a loop;
        # otherwise the first request starts it.
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            self._refresher.start()

        return self

    # execution

    async def send(self, request: TransportRequest) -> TransportResponse:
        """
        Execute a single request through the composed middleware pipeline
        and the underlying TransportEngine.
        """
        handler = self._handler
        return await handler(request)

    async def close(self) -> None:
        if self._refresher is not None:
            await self._refresher.stop()
        await self.transport.close()

    async def __aenter__(self) -> Self:
        await self.transport.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @classmethod
    def from_config(
        cls,
        cfg: ExecutorConfig,
        transport: TransportEngine | None = None,
        logger: logging.Logger | None = None,
    ) -> "RequestExecutor":
        """
        Build an executor from a validated ExecutorConfig. Middleware is
        attached in a fixed order: logging, performance, caching, retry,
        authorization.
        """
        if transport is None:
            transport = build_transport(cfg)

        executor = cls(
            transport,
            timeout=cfg.timeout,
            min_wait_retry=cfg.min_wait_retry,
            max_wait_retry=cfg.max_wait_retry,
            logger=logger,
        )

        if cfg.logging:
            executor.add_logging()

        if cfg.performance is not None:
            executor.add_performance_monitor(**cfg.performance.to_runtime_args())

        if cfg.cache is not None:
            executor.add_caching(**cfg.cache.to_runtime_args())

        if cfg.retry is not None:
            executor.with_retry(
                RetryHandler(
                    min_wait=cfg.min_wait_retry,
                    max_wait=cfg.max_wait_retry,
                    retry_count=cfg.retry.retry_count,
                    backoff=BACKOFF_STRATEGIES[BackoffType(cfg.retry.strategy)],
                )
            )

        if cfg.auth is not None:
            executor.with_authorization(
                cfg.auth.schema_,
                build_token_provider(cfg.auth),
                safety_margin=cfg.auth.safety_margin,
            )

        return executor


def build_token_provider(cfg: AuthConfigModel) -> TokenProvider:
    try:
        provider_cls = TOKEN_PROVIDERS[cfg.type]
    except KeyError:
        raise ValueError(f"Unsupported auth type: {cfg.type}") from None
    return provider_cls(**cfg.to_runtime_args())


def build_transport(cfg: ExecutorConfig) -> TransportEngine:
    try:
        engine_cls = TRANSPORT_ENGINES[cfg.transport.type]
    except KeyError:
        raise ValueError(f"Unsupported transport type: {cfg.transport.type}") from None
    return engine_cls(timeout=cfg.timeout, **cfg.transport.to_runtime_args())


# Process-wide default executor. Shared by every ApiRequest that is not
# given an executor explicitly; never closed implicitly.
_default_lock = threading.Lock()
_default_executor: RequestExecutor | None = None


def default_executor() -> RequestExecutor:
    """Return the process-wide executor, creating a plain one on first use."""
    global _default_executor
    with _default_lock:
        if _default_executor is None:
            _default_executor = RequestExecutor()
        return _default_executor


def set_default_executor(executor: RequestExecutor | None) -> RequestExecutor | None:
    """Swap the process-wide executor and return the previous one."""
    global _default_executor
    with _default_lock:
        previous = _default_executor
        _default_executor = executor
        return previous
