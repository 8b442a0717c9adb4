# SPDX-FileCopyrightText: 2025 CoreWeave, Inc.
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: sandkit-client

"""sandkit run: run a one-shot command in a fresh sandbox."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import BinaryIO

import click

from sandkit._env import load_dotenv, parse_env_pairs
from sandkit._run import sandbox_run
from sandkit._signals import cancel_on_signals
from sandkit._types import (
    CreateOptions,
    FileToWrite,
    RunResult,
    SandboxCommand,
    SandboxResources,
    StreamConfig,
    TimeoutConfig,
)
from sandkit.cli._common import open_transport, org_id_option, region_option, run_async


def parse_file_args(values: tuple[str, ...]) -> list[FileToWrite]:
    """Parse ``SANDBOX_PATH:LOCAL_PATH`` arguments into files to upload."""
    files: list[FileToWrite] = []
    for value in values:
        sandbox_path, sep, local_path = value.partition(":")
        if not sep or not sandbox_path or not local_path:
            raise click.BadParameter(
                f"{value!r} is not of the form SANDBOX_PATH:LOCAL_PATH",
                param_hint="--file",
            )
        try:
            content = Path(local_path).expanduser().read_bytes()
        except OSError as e:
            raise click.BadParameter(f"cannot read {local_path}: {e}", param_hint="--file") from None
        files.append(FileToWrite(path=sandbox_path, content=content))
    return files


def _build_env(env_file: str | None, env_pairs: tuple[str, ...]) -> dict[str, str]:
    env: dict[str, str] = {}
    if env_file:
        try:
            env.update(load_dotenv(env_file))
        except FileNotFoundError:
            raise click.BadParameter(f"{env_file} does not exist", param_hint="--env-file") from None
    try:
        env.update(parse_env_pairs(env_pairs))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--env") from None
    return env


def _piped_stdin() -> BinaryIO | None:
    """Return stdin when it is piped rather than an interactive terminal."""
    stdin = sys.stdin
    if stdin is None or stdin.isatty():
        return None
    return getattr(stdin, "buffer", None)


async def _run(
    options: CreateOptions,
    org_id: str | None,
    region: str | None,
    stdin: BinaryIO | None,
    stdout: BinaryIO | None,
    stderr: BinaryIO | None,
) -> RunResult:
    cancel = asyncio.Event()
    async with open_transport() as transport:
        with cancel_on_signals(cancel):
            return await sandbox_run(
                transport,
                options,
                org_id=org_id,
                region=region,
                cancel=cancel,
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
            )


class _Capture:
    """Binary writable that collects output for --json."""

    def __init__(self) -> None:
        self.chunks: list[bytes] = []

    def write(self, data: bytes) -> int:
        self.chunks.append(data)
        return len(data)

    def text(self) -> str:
        return b"".join(self.chunks).decode("utf-8", errors="replace")


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--memory", default=None, help='Memory limit (e.g. "500Mi", "1Gi").')
@click.option("--cpu", default=None, help='CPU limit in millicores (e.g. "500m").')
@click.option("--disk", default=None, help='Disk limit (e.g. "1Gi").')
@click.option("--network", is_flag=True, default=False, help="Enable outbound network access.")
@click.option("--timeout", default=None, help='Execution timeout (e.g. "5m", "1h").')
@click.option("--env", "-e", "env_pairs", multiple=True, help="Environment variable KEY=VALUE (repeatable).")
@click.option("--env-file", default=None, help="Load environment variables from a .env file.")
@click.option(
    "--file",
    "-f",
    "file_args",
    multiple=True,
    help="File to create in the sandbox, as SANDBOX_PATH:LOCAL_PATH (repeatable).",
)
@click.option("--snapshot", default=None, help="Snapshot ID or tag to restore from.")
@click.option("--dependency", "dependencies", multiple=True, help="Apt package to install (repeatable).")
@click.option("--timestamps", is_flag=True, default=False, help="Prefix output lines with timestamps.")
@org_id_option
@region_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the result as JSON.")
def run_command(
    command: tuple[str, ...],
    memory: str | None,
    cpu: str | None,
    disk: str | None,
    network: bool,
    timeout: str | None,
    env_pairs: tuple[str, ...],
    env_file: str | None,
    file_args: tuple[str, ...],
    snapshot: str | None,
    dependencies: tuple[str, ...],
    timestamps: bool,
    org_id: str | None,
    region: str | None,
    as_json: bool,
) -> None:
    """Run a one-shot command in a sandbox (creates, runs, destroys).

    Piped stdin is forwarded to the command. Exits with the command's
    exit code.

    Examples:

        sandkit run -- echo "hello world"

        sandkit run --memory 1Gi --cpu 1000m -- python main.py

        echo data | sandkit run --region usc -- wc -c
    """
    files = parse_file_args(file_args)
    options = CreateOptions(
        command=SandboxCommand(argv=list(command), files=files or None),
        resources=(
            SandboxResources(memory=memory, cpu=cpu, disk=disk) if memory or cpu or disk else None
        ),
        env=_build_env(env_file, env_pairs),
        network_enabled=True if network else None,
        stream=StreamConfig(timestamps=True) if timestamps else None,
        timeout=TimeoutConfig(execution=timeout) if timeout else None,
        snapshot=snapshot,
        dependencies=list(dependencies) or None,
    )

    capture = _Capture() if as_json else None
    try:
        result = run_async(
            _run(options, org_id, region, _piped_stdin(), capture, capture)  # type: ignore[arg-type]
        )
    except BrokenPipeError:
        sys.exit(0)  # Piped to head/etc - exit cleanly

    if capture is not None:
        click.echo(
            json.dumps(
                {
                    "sandboxId": result.sandbox_id,
                    "exitCode": result.exit_code,
                    "durationMs": result.duration_ms,
                    "output": capture.text(),
                },
                indent=2,
            )
        )
    elif result.exit_code != 0:
        click.echo(
            f"Error: failed with exit code {result.exit_code} in {result.duration_ms}ms",
            err=True,
        )
    sys.exit(result.exit_code)

