# SPDX-FileCopyrightText: 2025 CoreWeave, Inc.
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: sandkit-client

"""sandkit exec: execute a command in a running sandbox."""

from __future__ import annotations

import asyncio
import sys

import click

from sandkit._run import sandbox_exec
from sandkit._signals import cancel_on_signals
from sandkit._types import ExecuteOptions, ExecutionInfo, ExecutionStatus
from sandkit.cli._common import open_transport, org_id_option, run_async


async def _exec(sandbox_id: str, options: ExecuteOptions, org_id: str | None) -> ExecutionInfo:
    cancel = asyncio.Event()
    async with open_transport() as transport:
        with cancel_on_signals(cancel):
            return await sandbox_exec(transport, sandbox_id, options, org_id=org_id, cancel=cancel)


def exit_code_for(execution: ExecutionInfo) -> int:
    """Exit code to report for a finished execution."""
    if execution.exit_code is not None:
        return execution.exit_code
    return 0 if execution.status == ExecutionStatus.COMPLETED else 1


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("sandbox_id")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--timeout", default=None, help='Execution timeout (e.g. "5m", "1h").')
@org_id_option
def exec_command(
    sandbox_id: str,
    command: tuple[str, ...],
    timeout: str | None,
    org_id: str | None,
) -> None:
    """Execute a command in a running sandbox.

    SANDBOX_ID is the ID of the sandbox to run the command in.

    Examples:

        sandkit exec <sandbox-id> -- echo hello

        sandkit exec <sandbox-id> --timeout 5m -- make build
    """
    options = ExecuteOptions(command=list(command), timeout=timeout)
    try:
        execution = run_async(_exec(sandbox_id, options, org_id))
    except BrokenPipeError:
        sys.exit(0)  # Piped to head/etc - exit cleanly

    if execution.error:
        click.echo(f"Error: {execution.error}", err=True)
    sys.exit(exit_code_for(execution))
