# SPDX-FileCopyrightText: 2025 CoreWeave, Inc.
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: sandkit-client

"""sandkit cp: copy files to or from a sandbox."""

from __future__ import annotations

import json

import click

from sandkit._copy import CopyResult, copy_from_sandbox, copy_to_sandbox, parse_copy_path
from sandkit.cli._common import open_transport, org_id_option, run_async


async def _copy(
    source_id: str | None,
    source_path: str,
    dest_id: str,
    dest_path: str,
    *,
    recursive: bool,
    timeout: str | None,
    org_id: str | None,
) -> CopyResult:
    async with open_transport() as transport:
        if source_id is not None:
            return await copy_from_sandbox(
                transport,
                source_id,
                source_path,
                dest_path,
                recursive=recursive,
                timeout=timeout,
                org_id=org_id,
            )
        return await copy_to_sandbox(
            transport,
            dest_id,
            source_path,
            dest_path,
            recursive=recursive,
            timeout=timeout,
            org_id=org_id,
        )


@click.command()
@click.argument("source")
@click.argument("destination")
@click.option("--recursive", "-r", is_flag=True, help="Copy directories recursively.")
@click.option("--timeout", default=None, help='Operation timeout (e.g. "5m", "1h").')
@org_id_option
@click.option("--json", "as_json", is_flag=True, help="Output the result as JSON.")
def cp_command(
    source: str,
    destination: str,
    recursive: bool,
    timeout: str | None,
    org_id: str | None,
    as_json: bool,
) -> None:
    """Copy files or directories to or from a sandbox.

    Exactly one of SOURCE and DESTINATION must be a sandbox path of the
    form SANDBOX_ID:PATH.

    Examples:

        sandkit cp ./data.csv <sandbox-id>:/workspace/data.csv

        sandkit cp <sandbox-id>:/workspace/out.txt ./

        sandkit cp -r ./src <sandbox-id>:/workspace/src
    """
    source_id, source_path = parse_copy_path(source)
    dest_id, dest_path = parse_copy_path(destination)
    if source_id is not None and dest_id is not None:
        raise click.UsageError("Cannot copy between two sandboxes; use a local path on one side.")
    if source_id is None and dest_id is None:
        raise click.UsageError("One path must name a sandbox, e.g. <sandbox-id>:/path/to/file.")
    if source_id is not None:
        # Downloads take the local destination as given
        dest_id, dest_path = "", destination

    try:
        result = run_async(
            _copy(
                source_id,
                source_path,
                dest_id or "",
                dest_path,
                recursive=recursive,
                timeout=timeout,
                org_id=org_id,
            )
        )
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e)) from None

    if as_json:
        payload = {
            "source": result.source,
            "destination": result.destination,
            "bytesTransferred": result.bytes_transferred,
            "filesTransferred": result.files_transferred,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    files = "1 file" if result.files_transferred == 1 else f"{result.files_transferred} files"
    click.echo(
        f"Copied {result.source} -> {result.destination} ({files}, {result.bytes_transferred} bytes)"
    )
