from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any

DEFAULT_BASE_URL: str = "https://api.sandkit.dev"
DEFAULT_API_VERSION: str = "v1"
DEFAULT_STREAM_URL_TEMPLATE: str = "https://streams-{region}.sandkit.dev"
NETRC_HOST: str = "api.sandkit.dev"

# Default timeout for HTTP requests (seconds). Stream relays are exempt
# from the read timeout since output may be idle for long stretches.
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 60.0

# Sandbox-level run polling: 500ms x 7200 attempts, roughly one hour
DEFAULT_RUN_POLL_INTERVAL_SECONDS: float = 0.5
DEFAULT_RUN_MAX_POLL_ATTEMPTS: int = 7200

# Execution-level wait
DEFAULT_EXECUTION_POLL_INTERVAL_SECONDS: float = 0.1
DEFAULT_EXECUTION_TIMEOUT_SECONDS: float = 300.0

# Time given to in-flight relay writes before relays are told to stop
DEFAULT_STREAM_FLUSH_SECONDS: float = 0.1
DEFAULT_STREAM_CHUNK_SIZE: int = 64 * 1024

# A freshly created output stream may answer with an empty body until the
# command writes to it
DEFAULT_STREAM_ATTEMPTS: int = 10
DEFAULT_STREAM_RETRY_SECONDS: float = 0.2

# How long relays get to stop on the cancel signal before being cancelled
DEFAULT_RELAY_GRACE_SECONDS: float = 1.0

ENV_API_KEY = "SANDKIT_API_KEY"
ENV_BASE_URL = "SANDKIT_BASE_URL"
ENV_STREAM_URL = "SANDKIT_STREAM_URL"
ENV_REGION = "SANDKIT_REGION"
ENV_ORG_ID = "SANDKIT_ORG_ID"


@dataclass(frozen=True)
class SandboxDefaults:
    """Immutable client configuration.

    All fields have sensible defaults. Override only what you need.

    There are two separate polling budgets:
    - run_*: how a one-shot run polls the sandbox (interval x attempts)
    - execution_*: how wait_for_execution polls a single execution

    Example:
        ```python
        defaults = SandboxDefaults(
            base_url="https://api.example.com",
            run_poll_interval_seconds=1.0,
            execution_timeout_seconds=60,
        )
        ```
    """

    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    run_poll_interval_seconds: float = DEFAULT_RUN_POLL_INTERVAL_SECONDS
    run_max_poll_attempts: int = DEFAULT_RUN_MAX_POLL_ATTEMPTS
    execution_poll_interval_seconds: float = DEFAULT_EXECUTION_POLL_INTERVAL_SECONDS
    execution_timeout_seconds: float = DEFAULT_EXECUTION_TIMEOUT_SECONDS
    stream_flush_seconds: float = DEFAULT_STREAM_FLUSH_SECONDS
    stream_chunk_size: int = DEFAULT_STREAM_CHUNK_SIZE
    stream_attempts: int = DEFAULT_STREAM_ATTEMPTS
    stream_retry_seconds: float = DEFAULT_STREAM_RETRY_SECONDS
    relay_grace_seconds: float = DEFAULT_RELAY_GRACE_SECONDS

    def __post_init__(self) -> None:
        if self.run_max_poll_attempts < 1:
            raise ValueError("run_max_poll_attempts must be at least 1")
        if self.run_poll_interval_seconds < 0 or self.execution_poll_interval_seconds < 0:
            raise ValueError("Poll intervals cannot be negative")
        if self.stream_chunk_size < 1:
            raise ValueError("stream_chunk_size must be positive")
        if self.stream_attempts < 1:
            raise ValueError("stream_attempts must be at least 1")

    @classmethod
    def from_env(cls, **overrides: Any) -> SandboxDefaults:
        """Build defaults, taking base_url from SANDKIT_BASE_URL when set."""
        base_url = os.environ.get(ENV_BASE_URL)
        if base_url and "base_url" not in overrides:
            overrides["base_url"] = base_url
        return cls(**overrides)

    def with_overrides(self, **kwargs: Any) -> SandboxDefaults:
        """Create new defaults with some values overridden."""
        return replace(self, **kwargs)


def resolve_stream_base_url(
    stream_base_url: str | None = None,
    region: str | None = None,
) -> str | None:
    """Resolve the base URL of the stream service.

    Resolution order: explicit argument, SANDKIT_STREAM_URL, then the
    regional template using ``region`` or SANDKIT_REGION. Returns None when
    none of them is configured.
    """
    if stream_base_url:
        return stream_base_url.rstrip("/")
    env_url = os.environ.get(ENV_STREAM_URL)
    if env_url:
        return env_url.rstrip("/")
    effective_region = region or os.environ.get(ENV_REGION)
    if not effective_region:
        return None
    return DEFAULT_STREAM_URL_TEMPLATE.format(region=effective_region)
