"""HTTP transport used by the lifecycle operations and stream relays.

The lifecycle operations depend only on the ``Transport`` protocol. The
concrete ``HttpTransport`` wraps an ``httpx.AsyncClient``, parses the
platform's ``{success, data?, message?}`` envelope, and runs the configured
interceptors around every request. It never retries.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterable, AsyncIterator, Mapping, Sequence
from typing import Any, Protocol

import httpx

from sandkit._defaults import SandboxDefaults
from sandkit._interceptor import LoggingInterceptor, RequestInterceptor, create_auth_interceptors
from sandkit._types import APIResponse

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, str]


class Transport(Protocol):
    """The capability the lifecycle operations and relays need."""

    async def get(self, path: str, *, params: QueryParams | None = None) -> APIResponse: ...

    async def post(
        self,
        path: str,
        json: Any = None,
        *,
        params: QueryParams | None = None,
    ) -> APIResponse: ...

    async def delete(self, path: str, *, params: QueryParams | None = None) -> APIResponse: ...

    def stream(
        self,
        method: str,
        url: str,
        *,
        content: AsyncIterable[bytes] | bytes | None = None,
        json: Any = None,
    ) -> contextlib.AbstractAsyncContextManager[httpx.Response]: ...

    async def aclose(self) -> None: ...


def parse_envelope(response: httpx.Response) -> APIResponse:
    """Turn an HTTP response into an APIResponse.

    A non-2xx status is always a failure, even if the body claims success.
    A 2xx body that is not an envelope is treated as bare data.
    """
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict) and "success" in payload:
        envelope = APIResponse.model_validate(payload)
        update: dict[str, Any] = {"status_code": response.status_code}
        if not response.is_success:
            update["success"] = False
            if not envelope.message:
                update["message"] = f"{response.status_code} {response.reason_phrase}"
        return envelope.model_copy(update=update)

    if response.is_success:
        return APIResponse(success=True, data=payload, status_code=response.status_code)

    text = response.text.strip()
    message = f"{response.status_code} {response.reason_phrase}"
    if text:
        message = f"{message}: {text[:500]}"
    return APIResponse(success=False, message=message, status_code=response.status_code)


class HttpTransport:
    """httpx-backed Transport.

    Example:
        ```python
        async with HttpTransport(api_key="sk-...") as transport:
            info = await sandbox_get(transport, "sb-123")
        ```

    Args:
        base_url: API URL (default: SANDKIT_BASE_URL env or the defaults' base_url)
        api_key: Bearer token; resolved from env/netrc when omitted
        defaults: Client configuration
        interceptors: Extra interceptors, run after the auth interceptor
        client: Pre-built httpx client (tests inject one with a MockTransport)
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        defaults: SandboxDefaults | None = None,
        interceptors: Sequence[RequestInterceptor] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._defaults = defaults or SandboxDefaults.from_env()
        self._base_url = (base_url or self._defaults.base_url).rstrip("/")
        self._interceptors: list[RequestInterceptor] = [
            *create_auth_interceptors(api_key),
            *(interceptors or ()),
            LoggingInterceptor(logger),
        ]
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._defaults.request_timeout_seconds),
        )
        # Stream bodies may be idle for as long as the command runs
        self._stream_timeout = httpx.Timeout(
            self._defaults.request_timeout_seconds,
            read=None,
            write=None,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def defaults(self) -> SandboxDefaults:
        return self._defaults

    def __repr__(self) -> str:
        return f"<HttpTransport base_url={self._base_url}>"

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
            logger.debug("Closed transport for %s", self._base_url)

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def _send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        tokens = [await interceptor.on_start(request) for interceptor in self._interceptors]
        response: httpx.Response | None = None
        try:
            response = await self._client.send(request, stream=stream)
            return response
        finally:
            for interceptor, token in zip(self._interceptors, tokens, strict=True):
                await interceptor.on_end(token, request, response)

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: QueryParams | None = None,
    ) -> APIResponse:
        request = self._client.build_request(
            method,
            self._url(path),
            json=json,
            params=dict(params) if params else None,
        )
        response = await self._send(request)
        return parse_envelope(response)

    async def get(self, path: str, *, params: QueryParams | None = None) -> APIResponse:
        return await self._request_json("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Any = None,
        *,
        params: QueryParams | None = None,
    ) -> APIResponse:
        return await self._request_json("POST", path, json=json, params=params)

    async def delete(self, path: str, *, params: QueryParams | None = None) -> APIResponse:
        return await self._request_json("DELETE", path, params=params)

    @contextlib.asynccontextmanager
    async def stream(
        self,
        method: str,
        url: str,
        *,
        content: AsyncIterable[bytes] | bytes | None = None,
        json: Any = None,
    ) -> AsyncIterator[httpx.Response]:
        """Send a raw request and yield the response with its body unread.

        Used for stream upload (``content`` as an async iterable is sent
        chunked as it is produced) and stream download (iterate
        ``response.aiter_bytes()``). The response is closed on exit.
        """
        request = self._client.build_request(
            method,
            self._url(url),
            content=content,
            json=json,
            timeout=self._stream_timeout,
        )
        response = await self._send(request, stream=True)
        try:
            yield response
        finally:
            await response.aclose()
