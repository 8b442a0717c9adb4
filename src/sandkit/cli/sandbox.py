# SPDX-FileCopyrightText: 2025 CoreWeave, Inc.
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: sandkit-client

"""sandkit get / list / delete: inspect and remove sandboxes."""

from __future__ import annotations

import click

from sandkit._sandbox import sandbox_destroy, sandbox_get, sandbox_list
from sandkit._types import SandboxInfo, SandboxList, SandboxStatus
from sandkit.cli._common import open_transport, org_id_option, run_async
from sandkit.cli.formatters import format_sandbox_detail, format_sandbox_json, format_sandbox_table

_STATUS_CHOICES = [s.value for s in SandboxStatus]


async def _get(sandbox_id: str, org_id: str | None) -> SandboxInfo:
    async with open_transport() as transport:
        return await sandbox_get(transport, sandbox_id, org_id)


async def _list(org_id: str | None, status: str | None, limit: int | None) -> SandboxList:
    async with open_transport() as transport:
        return await sandbox_list(transport, org_id=org_id, status=status, limit=limit)


async def _delete(sandbox_id: str, org_id: str | None) -> None:
    async with open_transport() as transport:
        await sandbox_destroy(transport, sandbox_id, org_id)


@click.command("get")
@click.argument("sandbox_id")
@org_id_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the sandbox as JSON.")
def get_sandbox(sandbox_id: str, org_id: str | None, as_json: bool) -> None:
    """Show details of a sandbox."""
    info = run_async(_get(sandbox_id, org_id))
    if as_json:
        click.echo(format_sandbox_json([info], single=True))
    else:
        click.echo(format_sandbox_detail(info))


@click.command("list")
@click.option(
    "--status",
    "-s",
    default=None,
    type=click.Choice(_STATUS_CHOICES, case_sensitive=False),
    help="Filter by status.",
)
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Maximum number of sandboxes.")
@org_id_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Print sandboxes as JSON.")
def list_sandboxes(status: str | None, limit: int | None, org_id: str | None, as_json: bool) -> None:
    """List sandboxes.

    Examples:

        # List all sandboxes
        sandkit list

        # Only running sandboxes, as JSON
        sandkit list --status running --json
    """
    result = run_async(_list(org_id, status, limit))
    if as_json:
        click.echo(format_sandbox_json(result.sandboxes))
    else:
        click.echo(format_sandbox_table(result.sandboxes))


@click.command("delete")
@click.argument("sandbox_id")
@org_id_option
def delete_sandbox(sandbox_id: str, org_id: str | None) -> None:
    """Destroy a sandbox."""
    run_async(_delete(sandbox_id, org_id))
    click.echo(f"Deleted sandbox {sandbox_id}")
