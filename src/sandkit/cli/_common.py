# SPDX-FileCopyrightText: 2025 CoreWeave, Inc.
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: sandkit-client

"""Helpers shared by the CLI commands."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Coroutine
from typing import Any, TypeVar

import click

from sandkit._defaults import ENV_ORG_ID, ENV_REGION
from sandkit._transport import HttpTransport
from sandkit.exceptions import SandboxCancelledError, SandboxTimeoutError, SandkitError

T = TypeVar("T")

# Conventional exit status of timeout(1)
EXIT_TIMEOUT = 124
EXIT_INTERRUPTED = 130

org_id_option = click.option(
    "--org-id",
    envvar=ENV_ORG_ID,
    default=None,
    help="Organization to act on (default: SANDKIT_ORG_ID).",
)

region_option = click.option(
    "--region",
    envvar=ENV_REGION,
    default=None,
    help="Region of the stream service (default: SANDKIT_REGION).",
)


def open_transport() -> HttpTransport:
    """Build a transport from the environment (SANDKIT_API_KEY, SANDKIT_BASE_URL, netrc)."""
    return HttpTransport()


def run_async(main: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, mapping sandkit errors to CLI exit codes.

    Cancellation exits 130, a poll timeout exits 124, any other sandkit
    error exits 1 with its message.
    """
    try:
        return asyncio.run(main)
    except (KeyboardInterrupt, SandboxCancelledError):
        sys.exit(EXIT_INTERRUPTED)
    except SandboxTimeoutError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_TIMEOUT)
    except SandkitError as e:
        raise click.ClickException(str(e)) from None
