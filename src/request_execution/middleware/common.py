import logging

from auth.token.token_refresher import TokenRefresher
from request_execution.models import TransportRequest, TransportResponse
from request_execution.middleware.pipeline import NEXT_CALL, Middleware


# Standard middleware - these middleware objects derive a modified request

class AuthorizeMiddleware(Middleware):
    """
    Add "Authorization: <schema> <token>" using the credential currently
    offered by a TokenRefresher. When the refresher offers an error instead
    of a token the request proceeds without a credential and a warning is
    logged.
    """

    def __init__(self, refresher: TokenRefresher, logger: logging.Logger | None = None) -> None:
        self.refresher = refresher
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def __call__(self, request: TransportRequest, next_call: NEXT_CALL) -> TransportResponse:
        token, err = await self.refresher.get()

        if err is not None:
            self._logger.warning(
                f"No token will be added to the request {request.method} {request.url}: {err}"
            )
            return await next_call(request)

        request = request.with_headers({"Authorization": f"{self.refresher.schema} {token}"})
        return await next_call(request)
