"""Copy files between the local machine and a sandbox.

Copies run commands in the sandbox instead of using the filesystem API:
an upload attaches the files to a no-op command, and a download runs
``base64`` on the remote file and decodes the captured stdout.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from sandkit._defaults import SandboxDefaults
from sandkit._run import sandbox_exec
from sandkit._types import ExecuteOptions, ExecutionStatus, FileToWrite
from sandkit.exceptions import SandboxFileError

if TYPE_CHECKING:
    from sandkit._transport import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyResult:
    """Summary of a finished copy."""

    source: str
    destination: str
    bytes_transferred: int
    files_transferred: int


def parse_copy_path(arg: str) -> tuple[str | None, str]:
    """Split ``SANDBOX_ID:PATH`` into its parts.

    An argument without a sandbox prefix is a local path and yields
    ``(None, arg)``. Prefixes containing a path separator, and single
    letters (Windows drives), are not sandbox ids.

    Example:
        >>> parse_copy_path("sb-123:/workspace/out.txt")
        ('sb-123', '/workspace/out.txt')
        >>> parse_copy_path("./notes:v2.txt")
        (None, './notes:v2.txt')
    """
    prefix, sep, path = arg.partition(":")
    if not sep or len(prefix) < 2 or "/" in prefix or "\\" in prefix:
        return None, arg
    return prefix, path


def _discard(data: bytes) -> None:
    pass


async def _run_checked(
    transport: Transport,
    sandbox_id: str,
    command: list[str],
    *,
    files: list[FileToWrite] | None,
    timeout: str | None,
    org_id: str | None,
    defaults: SandboxDefaults | None,
    log: logging.Logger,
    filepath: str,
) -> bytes:
    """Run a helper command in the sandbox and return its stdout."""
    output = bytearray()
    execution = await sandbox_exec(
        transport,
        sandbox_id,
        ExecuteOptions(command=command, files=files, timeout=timeout),
        org_id=org_id,
        stdout=output.extend,
        stderr=_discard,
        defaults=defaults,
        log=log,
    )
    if execution.status != ExecutionStatus.COMPLETED or execution.exit_code not in (None, 0):
        detail = execution.error or f"{execution.status}, exit code {execution.exit_code}"
        raise SandboxFileError(
            f"{command[0]} failed in sandbox {sandbox_id} for {filepath}: {detail}",
            sandbox_id=sandbox_id,
            filepath=filepath,
        )
    return bytes(output)


async def _download(
    transport: Transport,
    sandbox_id: str,
    remote_path: str,
    *,
    timeout: str | None,
    org_id: str | None,
    defaults: SandboxDefaults | None,
    log: logging.Logger,
) -> bytes:
    encoded = await _run_checked(
        transport,
        sandbox_id,
        ["base64", "-w", "0", remote_path],
        files=None,
        timeout=timeout,
        org_id=org_id,
        defaults=defaults,
        log=log,
        filepath=remote_path,
    )
    try:
        return base64.b64decode(encoded.strip(), validate=True)
    except binascii.Error as e:
        raise SandboxFileError(
            f"Could not decode {remote_path} read from sandbox {sandbox_id}: {e}",
            sandbox_id=sandbox_id,
            filepath=remote_path,
        ) from e


def _write_local(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)


async def copy_to_sandbox(
    transport: Transport,
    sandbox_id: str,
    local_path: str,
    remote_path: str,
    *,
    recursive: bool = False,
    timeout: str | None = None,
    org_id: str | None = None,
    defaults: SandboxDefaults | None = None,
    log: logging.Logger | None = None,
) -> CopyResult:
    """Upload a local file, or a directory with ``recursive``, into a sandbox.

    A ``remote_path`` ending in ``/`` receives the file under its own name.
    A directory is copied with its layout preserved below ``remote_path``.

    Raises:
        FileNotFoundError: If ``local_path`` does not exist
        IsADirectoryError: If ``local_path`` is a directory and ``recursive`` is False
        ValueError: If ``local_path`` is an empty directory
        SandboxFileError: If the sandbox could not write the files
    """
    log = log or logger
    source = Path(local_path)
    if not source.exists():
        raise FileNotFoundError(f"Local path not found: {local_path}")

    if source.is_dir():
        if not recursive:
            raise IsADirectoryError(f"{local_path} is a directory, copy it recursively")
        base = remote_path.rstrip("/")
        local_files = sorted(p for p in source.rglob("*") if p.is_file())
        if not local_files:
            raise ValueError(f"Directory is empty: {local_path}")
        files = [
            FileToWrite(path=f"{base}/{p.relative_to(source).as_posix()}", content=p.read_bytes())
            for p in local_files
        ]
        destination = f"{sandbox_id}:{base}"
    else:
        target = remote_path + source.name if remote_path.endswith("/") else remote_path
        files = [FileToWrite(path=target, content=source.read_bytes())]
        destination = f"{sandbox_id}:{target}"

    await _run_checked(
        transport,
        sandbox_id,
        ["true"],
        files=files,
        timeout=timeout,
        org_id=org_id,
        defaults=defaults,
        log=log,
        filepath=remote_path,
    )
    total = sum(len(f.content) for f in files)
    log.info("Copied %s to %s (%d files, %d bytes)", local_path, destination, len(files), total)
    return CopyResult(
        source=local_path,
        destination=destination,
        bytes_transferred=total,
        files_transferred=len(files),
    )


async def copy_from_sandbox(
    transport: Transport,
    sandbox_id: str,
    remote_path: str,
    local_path: str,
    *,
    recursive: bool = False,
    timeout: str | None = None,
    org_id: str | None = None,
    defaults: SandboxDefaults | None = None,
    log: logging.Logger | None = None,
) -> CopyResult:
    """Download a file, or a directory with ``recursive``, from a sandbox.

    A single file lands inside ``local_path`` when that is ``.``, ends in a
    separator, or is an existing directory; otherwise it is written to
    ``local_path`` itself. Parent directories are created as needed.

    Raises:
        SandboxFileError: If a remote file cannot be read, or a directory has no files
    """
    log = log or logger

    if not recursive:
        content = await _download(
            transport, sandbox_id, remote_path, timeout=timeout, org_id=org_id, defaults=defaults, log=log
        )
        target = Path(local_path)
        if local_path == "." or local_path.endswith(("/", os.sep)) or target.is_dir():
            target = target / PurePosixPath(remote_path).name
        _write_local(target, content)
        log.info("Copied %s:%s to %s (%d bytes)", sandbox_id, remote_path, target, len(content))
        return CopyResult(
            source=f"{sandbox_id}:{remote_path}",
            destination=str(target),
            bytes_transferred=len(content),
            files_transferred=1,
        )

    listing = await _run_checked(
        transport,
        sandbox_id,
        ["find", remote_path, "-type", "f"],
        files=None,
        timeout=timeout,
        org_id=org_id,
        defaults=defaults,
        log=log,
        filepath=remote_path,
    )
    remote_files = [line for line in listing.decode(errors="replace").splitlines() if line]
    if not remote_files:
        raise SandboxFileError(
            f"No files found in directory: {remote_path}",
            sandbox_id=sandbox_id,
            filepath=remote_path,
        )

    base = remote_path.rstrip("/")
    root = Path(local_path)
    total = 0
    for remote_file in remote_files:
        if remote_file.startswith(base + "/"):
            relative = remote_file[len(base) + 1 :]
        else:
            relative = PurePosixPath(remote_file).name
        content = await _download(
            transport, sandbox_id, remote_file, timeout=timeout, org_id=org_id, defaults=defaults, log=log
        )
        _write_local(root / relative, content)
        total += len(content)
        log.debug("Downloaded %s (%d bytes)", remote_file, len(content))

    log.info("Copied %s:%s to %s (%d files, %d bytes)", sandbox_id, base, root, len(remote_files), total)
    return CopyResult(
        source=f"{sandbox_id}:{base}",
        destination=str(root),
        bytes_transferred=total,
        files_transferred=len(remote_files),
    )
