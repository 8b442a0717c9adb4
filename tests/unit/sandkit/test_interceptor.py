"""Unit tests for sandkit._interceptor module."""

from __future__ import annotations

import logging
from unittest.mock import patch

import httpx
import pytest

from sandkit._auth import AuthHeaders
from sandkit._interceptor import (
    AuthHeaderInterceptor,
    LoggingInterceptor,
    RequestInterceptor,
    create_auth_interceptors,
)


def _request() -> httpx.Request:
    return httpx.Request("GET", "http://api.test/sandbox/v1/sb-1")


class TestAuthHeaderInterceptor:
    """Tests for AuthHeaderInterceptor class."""

    def test_stores_headers(self) -> None:
        """Test interceptor stores headers dict."""
        headers = {"Authorization": "Bearer token"}
        interceptor = AuthHeaderInterceptor(headers)
        assert interceptor._headers == headers

    @pytest.mark.asyncio
    async def test_on_start_adds_headers(self) -> None:
        """Test on_start adds every header to the request."""
        interceptor = AuthHeaderInterceptor({"Authorization": "Bearer token", "x-extra": "1"})
        request = _request()

        await interceptor.on_start(request)

        assert request.headers["Authorization"] == "Bearer token"
        assert request.headers["x-extra"] == "1"

    @pytest.mark.asyncio
    async def test_empty_headers_leave_request_untouched(self) -> None:
        interceptor = AuthHeaderInterceptor({})
        request = _request()

        await interceptor.on_start(request)

        assert "Authorization" not in request.headers

    def test_satisfies_protocol(self) -> None:
        assert isinstance(AuthHeaderInterceptor({}), RequestInterceptor)


class TestLoggingInterceptor:
    """Tests for LoggingInterceptor class."""

    @pytest.mark.asyncio
    async def test_logs_status(self, caplog: pytest.LogCaptureFixture) -> None:
        log = logging.getLogger("sandkit.test.interceptor")
        interceptor = LoggingInterceptor(log)
        request = _request()

        with caplog.at_level(logging.DEBUG, logger=log.name):
            token = await interceptor.on_start(request)
            await interceptor.on_end(token, request, httpx.Response(204))

        assert "-> 204" in caplog.text

    @pytest.mark.asyncio
    async def test_logs_failed_request(self, caplog: pytest.LogCaptureFixture) -> None:
        log = logging.getLogger("sandkit.test.interceptor")
        interceptor = LoggingInterceptor(log)
        request = _request()

        with caplog.at_level(logging.DEBUG, logger=log.name):
            token = await interceptor.on_start(request)
            await interceptor.on_end(token, request, None)

        assert "-> error" in caplog.text


class TestCreateAuthInterceptors:
    """Tests for create_auth_interceptors function."""

    def test_returns_single_interceptor(self) -> None:
        """Test an interceptor is returned even with no credentials."""
        interceptors = create_auth_interceptors()
        assert len(interceptors) == 1
        assert isinstance(interceptors[0], AuthHeaderInterceptor)

    def test_uses_resolved_headers(self) -> None:
        with patch(
            "sandkit._auth.resolve_auth",
            return_value=AuthHeaders(headers={"Authorization": "Bearer k"}, strategy="env"),
        ):
            interceptors = create_auth_interceptors()

        assert interceptors[0]._headers == {"Authorization": "Bearer k"}  # type: ignore[attr-defined]
