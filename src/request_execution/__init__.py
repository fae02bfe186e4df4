from request_execution.context import CallContext
from request_execution.executor import (
    RequestExecutor,
    default_executor,
    set_default_executor,
)
from request_execution.models import (
    RequestType,
    TransportRequest,
    TransportResponse,
)
from request_execution.request import ApiRequest
from request_execution.middleware.pipeline import (
    MIDDLEWARE_FUNC,
    NEXT_CALL,
    Middleware,
    MiddlewarePipeline,
)
from request_execution.middleware.backoff import (
    BACKOFF_STRATEGIES,
    BackoffStrategy,
    BackoffType,
    exponential_backoff,
    linear_jitter_backoff,
)
from request_execution.middleware.interceptors import (
    CachingMiddleware,
    RetryHandler,
    RetryMiddleware,
)
from request_execution.middleware.listeners import (
    LoggingMiddleware,
    PerformanceMiddleware,
)
from request_execution.middleware.common import AuthorizeMiddleware
from request_execution.transport.base import TransportEngine
from request_execution.transport.engine import AiohttpEngine

__all__ = [
    "CallContext",
    "RequestExecutor",
    "default_executor",
    "set_default_executor",
    "RequestType",
    "TransportRequest",
    "TransportResponse",
    "ApiRequest",
    "MIDDLEWARE_FUNC",
    "NEXT_CALL",
    "Middleware",
    "MiddlewarePipeline",
    "BACKOFF_STRATEGIES",
    "BackoffStrategy",
    "BackoffType",
    "exponential_backoff",
    "linear_jitter_backoff",
    "CachingMiddleware",
    "RetryHandler",
    "RetryMiddleware",
    "LoggingMiddleware",
    "PerformanceMiddleware",
    "AuthorizeMiddleware",
    "TransportEngine",
    "AiohttpEngine",
]
