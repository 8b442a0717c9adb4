"""Shared fixtures for sandkit unit tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from sandkit._defaults import SandboxDefaults
from sandkit._transport import HttpTransport

# Environment variables that affect configuration and authentication.
# These are cleared before each test to ensure isolation.
SANDKIT_ENV_VARS = (
    "SANDKIT_API_KEY",
    "SANDKIT_BASE_URL",
    "SANDKIT_STREAM_URL",
    "SANDKIT_REGION",
    "SANDKIT_ORG_ID",
)

TEST_BASE_URL = "http://api.test"

Handler = Callable[[httpx.Request], Any]


@pytest.fixture(autouse=True)
def clean_sandkit_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Clear sandkit env vars and point HOME at an empty directory.

    Keeps tests deterministic regardless of the developer's local env or
    ~/.netrc.
    """
    for var in SANDKIT_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def fast_defaults() -> SandboxDefaults:
    """Defaults with no poll, retry, flush or grace delays."""
    return SandboxDefaults(
        base_url=TEST_BASE_URL,
        run_poll_interval_seconds=0.0,
        execution_poll_interval_seconds=0.0,
        stream_flush_seconds=0.0,
        stream_retry_seconds=0.0,
        relay_grace_seconds=0.0,
    )


def envelope(data: Any = None, *, success: bool = True, message: str | None = None) -> dict[str, Any]:
    """Build a platform response envelope."""
    body: dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def json_response(status_code: int, body: Any) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode())


def make_transport(
    handler: Handler,
    defaults: SandboxDefaults | None = None,
    **kwargs: Any,
) -> HttpTransport:
    """Build an HttpTransport whose requests are answered by ``handler``."""
    defaults = defaults or SandboxDefaults(base_url=TEST_BASE_URL)
    client = httpx.AsyncClient(base_url=defaults.base_url, transport=httpx.MockTransport(handler))
    return HttpTransport(defaults=defaults, client=client, **kwargs)
