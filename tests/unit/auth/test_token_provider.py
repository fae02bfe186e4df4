"""Unit tests for authorize functions backed by token endpoints"""
import pytest
from unittest.mock import MagicMock, patch

from requests import ConnectionError as RequestsConnectionError

from auth.token.token_provider import (
    ClientGrantTokenProvider,
    PasswordGrantTokenProvider,
    StaticTokenProvider,
)


TOKEN_URL = "https://auth.example.com/oauth/token"


def token_endpoint_response(payload: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


@pytest.mark.unit
@pytest.mark.auth
@pytest.mark.asyncio
class TestStaticTokenProvider:

    async def test_returns_token_and_lifespan(self):
        provider = StaticTokenProvider("fixed", lifespan=120)
        assert await provider() == ("fixed", 120)


@pytest.mark.unit
@pytest.mark.auth
@pytest.mark.asyncio
class TestOAuth2TokenProvider:

    async def test_client_credentials_grant(self):
        """
        GIVEN a client credentials provider
        WHEN a token is requested
        THEN the endpoint is called with basic auth and the grant type
        AND (token, expires_in) is returned
        """
        provider = ClientGrantTokenProvider(TOKEN_URL, "client", "secret")

        with patch(
            "auth.token.token_provider.requests.post",
            return_value=token_endpoint_response({"access_token": "abc", "expires_in": 120}),
        ) as post:
            result = await provider()

        assert result == ("abc", 120.0)
        _, kwargs = post.call_args
        assert post.call_args.args[0] == TOKEN_URL
        assert kwargs["data"] == {"grant_type": "client_credentials"}
        assert kwargs["auth"] == ("client", "secret")

    async def test_password_grant_sends_user_credentials(self):
        provider = PasswordGrantTokenProvider(TOKEN_URL, "client", "secret", "alice", "pw")

        with patch(
            "auth.token.token_provider.requests.post",
            return_value=token_endpoint_response({"access_token": "abc", "expires_in": 60}),
        ) as post:
            await provider.get_token()

        assert post.call_args.kwargs["data"] == {
            "grant_type": "password",
            "username": "alice",
            "password": "pw",
        }

    async def test_missing_expires_in_uses_default_expiration(self):
        provider = ClientGrantTokenProvider(TOKEN_URL, "client", "secret", default_expiration=900)

        with patch(
            "auth.token.token_provider.requests.post",
            return_value=token_endpoint_response({"access_token": "abc"}),
        ):
            assert await provider() == ("abc", 900.0)

    async def test_transient_failure_is_retried(self):
        provider = ClientGrantTokenProvider(TOKEN_URL, "client", "secret")
        ok = token_endpoint_response({"access_token": "abc", "expires_in": 30})

        with patch(
            "auth.token.token_provider.requests.post",
            side_effect=[RequestsConnectionError("refused"), ok],
        ) as post, patch("auth.token.token_provider.time.sleep") as sleep:
            assert await provider() == ("abc", 30.0)

        assert post.call_count == 2
        assert sleep.call_count == 1

    async def test_raises_after_max_attempts(self):
        provider = ClientGrantTokenProvider(TOKEN_URL, "client", "secret")

        with patch(
            "auth.token.token_provider.requests.post",
            side_effect=RequestsConnectionError("refused"),
        ) as post, patch("auth.token.token_provider.time.sleep"):
            with pytest.raises(RequestsConnectionError):
                await provider()

        assert post.call_count == ClientGrantTokenProvider.MAX_ATTEMPTS

    async def test_malformed_payload_is_an_error(self):
        provider = ClientGrantTokenProvider(TOKEN_URL, "client", "secret")

        with patch(
            "auth.token.token_provider.requests.post",
            return_value=token_endpoint_response({"token_type": "bearer"}),
        ), patch("auth.token.token_provider.time.sleep"):
            with pytest.raises(KeyError):
                await provider()
