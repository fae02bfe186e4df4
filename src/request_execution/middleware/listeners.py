# Middleware components that observe but do not change the request or response
import logging
import time

from request_execution.models import TransportRequest, TransportResponse
from request_execution.middleware.pipeline import NEXT_CALL, Middleware


class LoggingMiddleware(Middleware):
    """
    Log every request on the way in and its outcome on the way out.
    Failures are logged and re-raised unchanged.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def __call__(self, request: TransportRequest, next_call: NEXT_CALL) -> TransportResponse:
        self._logger.info(f"-> {request.method} {request.url}")

        try:
            response = await next_call(request)
        except Exception as exc:
            self._logger.error(f"<- FAILED {request.method} {request.url}: {exc}")
            raise

        self._logger.info(f"<- {response.status} {request.method} {request.url}")
        return response


class PerformanceMiddleware(Middleware):
    """
    Measure the elapsed time of the downstream pipeline and log a warning
    when it exceeds threshold seconds.
    """

    def __init__(self, threshold: float, logger: logging.Logger | None = None) -> None:
        self.threshold = threshold
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def __call__(self, request: TransportRequest, next_call: NEXT_CALL) -> TransportResponse:
        start = time.monotonic()
        try:
            return await next_call(request)
        finally:
            elapsed = time.monotonic() - start
            if elapsed > self.threshold:
                self._logger.warning(
                    f"{request.method} {request.url} lasted {elapsed:.3f}s "
                    f"(threshold {self.threshold:.3f}s)"
                )
