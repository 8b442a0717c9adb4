"""Authentication resolution for the sandkit client.

Supports one credential, a bearer API key, from two sources:
1. SANDKIT_API_KEY env var
2. ~/.netrc entry for the API host (password field)

Resolution order: the env var takes priority if present.
"""

from __future__ import annotations

import logging
import netrc
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from sandkit._defaults import ENV_API_KEY, NETRC_HOST
from sandkit.exceptions import SandkitAuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthHeaders:
    """Resolved authentication headers and strategy used."""

    headers: dict[str, str]
    strategy: Literal["env", "netrc", "none"]

    def __bool__(self) -> bool:
        """Return True if any auth headers are present."""
        return bool(self.headers)


def bearer_headers(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"}


def resolve_auth(api_key: str | None = None) -> AuthHeaders:
    """Resolve authentication headers from available credentials.

    An explicit ``api_key`` wins over every other source. Otherwise the
    auth modes are tried in priority order and the first one that
    succeeds is returned; with no credentials the headers are empty.
    """
    if api_key:
        return AuthHeaders(headers=bearer_headers(api_key), strategy="env")

    for try_auth in _AUTH_MODES:
        auth = try_auth()
        if auth is not None:
            logger.debug("Using %s authentication", auth.strategy)
            return auth

    logger.debug("No authentication credentials found")
    return AuthHeaders(headers={}, strategy="none")


def _try_env_auth() -> AuthHeaders | None:
    api_key = os.environ.get(ENV_API_KEY)
    if not api_key:
        return None
    return AuthHeaders(headers=bearer_headers(api_key), strategy="env")


def _try_netrc_auth() -> AuthHeaders | None:
    """Try to resolve the API key from ~/.netrc.

    Raises:
        SandkitAuthenticationError: If the host entry exists but has no password
    """
    netrc_path = Path.home() / ".netrc"

    try:
        nrc = netrc.netrc(str(netrc_path))
    except FileNotFoundError:
        logger.debug("No .netrc file found at %s", netrc_path)
        return None
    except netrc.NetrcParseError as e:
        logger.warning("Failed to parse .netrc: %s", e)
        return None

    auth = nrc.authenticators(NETRC_HOST)
    if auth is None:
        logger.debug("No entry for %s in .netrc", NETRC_HOST)
        return None

    # auth is (login, account, password)
    _login, _account, password = auth
    if not password:
        raise SandkitAuthenticationError(
            f".netrc entry for {NETRC_HOST} has no password. "
            f"Set the API key as the password or use {ENV_API_KEY}."
        )
    return AuthHeaders(headers=bearer_headers(password), strategy="netrc")


# Auth modes in priority order - first successful returns
_AUTH_MODES: list[Callable[[], AuthHeaders | None]] = [
    _try_env_auth,
    _try_netrc_auth,
]
