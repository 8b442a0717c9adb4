"""Sandbox workspace file operations.

These talk to the platform's filesystem API (``/fs/{version}/...``), which
works on a sandbox's workspace without running a command in it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from sandkit._sandbox import _api_version, _org_params, _raise_for_envelope
from sandkit._types import FileInfo, FileToWrite
from sandkit.exceptions import SandboxNotFoundError, SandboxResponseError

if TYPE_CHECKING:
    from sandkit._transport import Transport

logger = logging.getLogger(__name__)


def _fs_path(transport: Transport, *parts: str) -> str:
    return "/".join(["", "fs", _api_version(transport), *parts])


async def sandbox_write_files(
    transport: Transport,
    sandbox_id: str,
    files: Sequence[FileToWrite],
    org_id: str | None = None,
) -> int:
    """Write files into the sandbox workspace.

    Returns:
        The number of files the platform reports as written.
    """
    payload = {"files": [f.to_payload() for f in files]}
    resp = await transport.post(_fs_path(transport, sandbox_id), payload, params=_org_params(org_id))
    _raise_for_envelope(resp, action="write files", sandbox_id=sandbox_id)
    data = resp.data if isinstance(resp.data, dict) else {}
    written = int(data.get("filesWritten", 0))
    logger.debug("Wrote %d file(s) to sandbox %s", written, sandbox_id)
    return written


async def sandbox_read_file(
    transport: Transport,
    sandbox_id: str,
    path: str,
    org_id: str | None = None,
) -> bytes:
    """Read a file from the sandbox workspace.

    The body is raw file content, not a JSON envelope.

    Raises:
        SandboxNotFoundError: If the sandbox or file does not exist
        SandboxResponseError: If the read was refused
    """
    params = {"path": path, **(_org_params(org_id) or {})}
    url = f"{_fs_path(transport, sandbox_id)}?{httpx.QueryParams(params)}"
    async with transport.stream("GET", url) as response:
        content = await response.aread()
        if not response.is_success:
            error_cls = SandboxNotFoundError if response.status_code == 404 else SandboxResponseError
            text = content.decode(errors="replace").strip()
            raise error_cls(
                f"Failed to read file {path}: {response.status_code} {text}".rstrip(),
                sandbox_id=sandbox_id,
                status_code=response.status_code,
            )
    return content


async def sandbox_list_files(
    transport: Transport,
    sandbox_id: str,
    path: str | None = None,
    org_id: str | None = None,
) -> list[FileInfo]:
    """List a directory of the sandbox workspace (the workspace root by default)."""
    params: dict[str, str] = _org_params(org_id) or {}
    if path:
        params["path"] = path
    resp = await transport.get(_fs_path(transport, "list", sandbox_id), params=params or None)
    _raise_for_envelope(resp, action="list files", sandbox_id=sandbox_id)
    data = resp.data if isinstance(resp.data, dict) else {}
    try:
        return [FileInfo.model_validate(item) for item in data.get("files", [])]
    except ValidationError as e:
        raise SandboxResponseError(
            f"Unexpected response while trying to list files: {e.error_count()} invalid field(s)",
            sandbox_id=sandbox_id,
            status_code=resp.status_code,
        ) from e


async def sandbox_mkdir(
    transport: Transport,
    sandbox_id: str,
    path: str,
    *,
    recursive: bool = False,
    org_id: str | None = None,
) -> None:
    """Create a directory in the sandbox workspace."""
    resp = await transport.post(
        _fs_path(transport, "mkdir", sandbox_id),
        {"path": path, "recursive": recursive},
        params=_org_params(org_id),
    )
    _raise_for_envelope(resp, action="create directory", sandbox_id=sandbox_id)


async def sandbox_rm_file(
    transport: Transport,
    sandbox_id: str,
    path: str,
    org_id: str | None = None,
) -> None:
    """Remove a file from the sandbox workspace."""
    resp = await transport.post(
        _fs_path(transport, "rm", sandbox_id),
        {"path": path},
        params=_org_params(org_id),
    )
    _raise_for_envelope(resp, action="remove file", sandbox_id=sandbox_id)


async def sandbox_rm_dir(
    transport: Transport,
    sandbox_id: str,
    path: str,
    *,
    recursive: bool = False,
    org_id: str | None = None,
) -> None:
    """Remove a directory from the sandbox workspace."""
    resp = await transport.post(
        _fs_path(transport, "rmdir", sandbox_id),
        {"path": path, "recursive": recursive},
        params=_org_params(org_id),
    )
    _raise_for_envelope(resp, action="remove directory", sandbox_id=sandbox_id)
