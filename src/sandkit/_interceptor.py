"""Request interceptors for the sandkit HTTP transport.

An interceptor sees every request the transport sends, JSON and streaming
alike. ``on_start`` runs before the request is sent and may modify it; the
value it returns is handed back to ``on_end`` once the response arrives (or
the request fails, in which case ``response`` is None).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)


@runtime_checkable
class RequestInterceptor(Protocol):
    """Hooks invoked around every transport request."""

    async def on_start(self, request: httpx.Request) -> Any:
        """Called before the request is sent. The return value is the token."""
        ...

    async def on_end(
        self,
        token: Any,
        request: httpx.Request,
        response: httpx.Response | None,
    ) -> None:
        """Called after the response headers arrive or the request fails."""
        ...


class AuthHeaderInterceptor:
    """Interceptor that adds auth headers to every request.

    Example:
        ```python
        tenant = AuthHeaderInterceptor({"X-Tenant": "research"})
        transport = HttpTransport(interceptors=[tenant])
        ```
    """

    def __init__(self, headers: dict[str, str]) -> None:
        self._headers = headers

    async def on_start(self, request: httpx.Request) -> None:
        for key, value in self._headers.items():
            request.headers[key] = value

    async def on_end(
        self,
        token: None,
        request: httpx.Request,
        response: httpx.Response | None,
    ) -> None:
        """No-op for auth headers."""
        pass


class LoggingInterceptor:
    """Interceptor that logs each request with its status and latency."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    async def on_start(self, request: httpx.Request) -> float:
        self._logger.debug("%s %s", request.method, request.url)
        return time.monotonic()

    async def on_end(
        self,
        token: float,
        request: httpx.Request,
        response: httpx.Response | None,
    ) -> None:
        elapsed_ms = (time.monotonic() - token) * 1000
        status = response.status_code if response is not None else "error"
        self._logger.debug(
            "%s %s -> %s (%.1fms)",
            request.method,
            request.url,
            status,
            elapsed_ms,
        )


def create_auth_interceptors(api_key: str | None = None) -> list[RequestInterceptor]:
    """Create interceptors for auth headers based on resolved credentials.

    Returns a list containing a single AuthHeaderInterceptor, even if no
    credentials were found (empty headers dict).
    """
    from sandkit._auth import resolve_auth

    auth = resolve_auth(api_key)
    return [AuthHeaderInterceptor(auth.headers)]
