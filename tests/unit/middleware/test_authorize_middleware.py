"""Unit tests for the authorization header middleware"""
import asyncio
import logging
import pytest

from auth.token.token_refresher import TokenRefresher
from request_execution.middleware.common import AuthorizeMiddleware
from tests.fixtures.auth import CountingAuthorize, FailingAuthorize
from tests.fixtures.request_execution import ScriptedHandler, make_request


@pytest.mark.unit
@pytest.mark.middleware
@pytest.mark.auth
@pytest.mark.asyncio
class TestAuthorizeMiddleware:

    async def test_adds_authorization_header(self):
        """
        GIVEN a refresher offering token-1 for schema Bearer
        WHEN a request passes through the middleware
        THEN the downstream request carries "Authorization: Bearer token-1"
        """
        refresher = TokenRefresher("Bearer", CountingAuthorize())
        handler = ScriptedHandler()
        try:
            await AuthorizeMiddleware(refresher)(make_request(), handler)
        finally:
            await refresher.stop()

        assert handler.requests[0].headers["Authorization"] == "Bearer token-1"

    async def test_keeps_existing_headers_and_original_request(self, dummy_headers):
        refresher = TokenRefresher("Token", CountingAuthorize(prefix="abc"))
        handler = ScriptedHandler()
        headers = {k: v for k, v in dummy_headers.items() if k != "Authorization"}
        original = make_request(headers=headers)
        try:
            await AuthorizeMiddleware(refresher)(original, handler)
        finally:
            await refresher.stop()

        sent = handler.requests[0]
        assert sent.headers["Content-Type"] == "application/json"
        assert sent.headers["Authorization"] == "Token abc-1"
        assert "Authorization" not in original.headers

    async def test_proceeds_without_credential_when_authorization_failed(self, caplog):
        """
        GIVEN a refresher whose authorize function fails
        WHEN a request passes through the middleware
        THEN the request is still sent, without a credential, and a warning is logged
        """
        caplog.set_level(logging.WARNING)
        refresher = TokenRefresher("Bearer", FailingAuthorize())
        handler = ScriptedHandler()
        try:
            response = await AuthorizeMiddleware(refresher)(make_request(), handler)
        finally:
            await refresher.stop()

        assert response.status == 200
        assert "Authorization" not in handler.requests[0].headers
        assert "No token will be added to the request" in caplog.text

    async def test_concurrent_requests_share_one_refresh(self):
        authorize = CountingAuthorize()
        refresher = TokenRefresher("Bearer", authorize)
        handler = ScriptedHandler()
        mw = AuthorizeMiddleware(refresher)
        try:
            await asyncio.gather(*(mw(make_request(), handler) for _ in range(10)))
        finally:
            await refresher.stop()

        assert authorize.calls == 1
        assert {r.headers["Authorization"] for r in handler.requests} == {"Bearer token-1"}
