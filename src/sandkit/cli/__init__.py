# SPDX-FileCopyrightText: 2025 CoreWeave, Inc.
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: sandkit-client

"""sandkit CLI: terminal interface for remote sandboxes.

The functions in this package are intended to be called via the CLI,
not from Python code. No backwards compatibility guarantees are made
for Python calling patterns.
"""

from __future__ import annotations

import logging

try:
    import click
except ImportError as e:
    raise ImportError(
        "sandkit CLI requires the 'cli' extra. Install it with:  pip install sandkit-client[cli]",
        name="click",
    ) from e

from sandkit.cli.cp import cp_command
from sandkit.cli.exec import exec_command
from sandkit.cli.run import run_command
from sandkit.cli.sandbox import delete_sandbox, get_sandbox, list_sandboxes


@click.group()
@click.version_option(package_name="sandkit-client")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """sandkit sandbox CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


cli.add_command(run_command, "run")
cli.add_command(exec_command, "exec")
cli.add_command(cp_command, "cp")
cli.add_command(get_sandbox)
cli.add_command(list_sandboxes)
cli.add_command(delete_sandbox)
