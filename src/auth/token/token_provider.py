import asyncio
import logging
import random
import time
from abc import ABC, abstractmethod

import requests
from requests import RequestException

from auth.token.models import AuthorizeResult


class TokenProvider(ABC):
    """
    An authorize function with state. Calling a provider returns
    (token, lifespan_seconds), so any provider can be handed to
    TokenRefresher or RequestExecutor.with_authorization directly.
    """

    @abstractmethod
    async def get_token(self) -> AuthorizeResult: ...

    async def __call__(self) -> AuthorizeResult:
        return await self.get_token()


class StaticTokenProvider(TokenProvider):
    """A fixed token with a nominal lifespan, re-issued on every refresh."""

    def __init__(self, token: str, lifespan: float = 3600.0) -> None:
        self._token = token
        self._lifespan = lifespan

    async def get_token(self) -> AuthorizeResult:
        return self._token, self._lifespan


class OAuth2TokenProvider(TokenProvider):
    """
    Token endpoint client for the OAuth2 grants. client_id and client_secret
    travel as HTTP basic credentials and the grant parameters as a form body.

    The exchange is blocking (requests) and runs in a worker thread. A
    failed exchange, including a payload without access_token, is retried
    with exponential backoff up to MAX_ATTEMPTS; the last failure is raised
    so the TokenRefresher records it as the offered error.
    """

    MAX_ATTEMPTS = 3
    RETRY_BASE_DELAY = 1.0
    RETRY_MAX_DELAY = 10.0
    RETRYABLE_ERRORS: tuple[type[Exception], ...] = (RequestException, ValueError, KeyError)

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        default_expiration: int = 300,
        timeout: float = 10.0,
    ) -> None:
        self.token_url = token_url
        self.default_expiration = default_expiration
        self.timeout = timeout
        self._credentials = (client_id, client_secret)
        self._logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def grant_parameters(self) -> dict[str, str]: ...

    def _retry_delay(self, attempt: int) -> float:
        delay = min(self.RETRY_BASE_DELAY * 2 ** (attempt - 1), self.RETRY_MAX_DELAY)
        return delay + random.uniform(0, 0.5)

    def _exchange(self) -> AuthorizeResult:
        response = requests.post(
            self.token_url,
            data=self.grant_parameters(),
            auth=self._credentials,
            timeout=self.timeout,
        )
        response.raise_for_status()

        payload = response.json()
        return payload["access_token"], float(payload.get("expires_in", self.default_expiration))

    def fetch_token(self) -> AuthorizeResult:
        """Blocking token request with retries."""
        attempt = 1
        while True:
            try:
                result = self._exchange()
            except self.RETRYABLE_ERRORS as exc:
                if attempt >= self.MAX_ATTEMPTS:
                    self._logger.error(
                        f"Giving up on {self.token_url} after {attempt} attempt(s): {exc}"
                    )
                    raise

                delay = self._retry_delay(attempt)
                self._logger.warning(
                    f"Token request to {self.token_url} failed "
                    f"({attempt}/{self.MAX_ATTEMPTS}), next attempt in {delay:.2f}s: {exc}"
                )
                time.sleep(delay)
                attempt += 1
            else:
                self._logger.info(f"Retrieved access token from {self.token_url}")
                return result

    async def get_token(self) -> AuthorizeResult:
        return await asyncio.to_thread(self.fetch_token)


class PasswordGrantTokenProvider(OAuth2TokenProvider):
    """Resource owner password grant: the user credentials go in the form body."""

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        default_expiration: int = 300,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(token_url, client_id, client_secret, default_expiration, timeout)
        self._user = (username, password)

    def grant_parameters(self) -> dict[str, str]:
        username, password = self._user
        return {"grant_type": "password", "username": username, "password": password}


class ClientGrantTokenProvider(OAuth2TokenProvider):
    def grant_parameters(self) -> dict[str, str]:
        return {"grant_type": "client_credentials"}
