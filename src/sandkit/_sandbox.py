"""Sandbox lifecycle operations.

Each operation is a single request/response round trip over a Transport.
None of them hold state; the sandbox id is the only handle a caller needs.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError

from sandkit._defaults import (
    DEFAULT_API_VERSION,
    DEFAULT_EXECUTION_POLL_INTERVAL_SECONDS,
    DEFAULT_EXECUTION_TIMEOUT_SECONDS,
)
from sandkit._types import (
    APIResponse,
    CreateOptions,
    ExecuteOptions,
    ExecutionInfo,
    SandboxCreateResult,
    SandboxInfo,
    SandboxList,
    SandboxStatus,
)
from sandkit.exceptions import SandboxNotFoundError, SandboxResponseError, SandboxTimeoutError

if TYPE_CHECKING:
    from sandkit._transport import Transport

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _api_version(transport: Transport) -> str:
    defaults = getattr(transport, "defaults", None)
    return getattr(defaults, "api_version", None) or DEFAULT_API_VERSION


def _org_params(org_id: str | None) -> dict[str, str] | None:
    return {"orgId": org_id} if org_id else None


def _raise_for_envelope(
    resp: APIResponse,
    *,
    action: str,
    sandbox_id: str | None = None,
    execution_id: str | None = None,
) -> None:
    if resp.success:
        return
    message = resp.message or f"Failed to {action}"
    error_cls = SandboxNotFoundError if resp.status_code == 404 else SandboxResponseError
    raise error_cls(
        message,
        sandbox_id=sandbox_id,
        execution_id=execution_id,
        status_code=resp.status_code,
    )


def _parse_data(
    model: type[_ModelT],
    resp: APIResponse,
    *,
    action: str,
    sandbox_id: str | None = None,
    execution_id: str | None = None,
) -> _ModelT:
    try:
        return model.model_validate(resp.data)
    except ValidationError as e:
        raise SandboxResponseError(
            f"Unexpected response while trying to {action}: {e.error_count()} invalid field(s)",
            sandbox_id=sandbox_id,
            execution_id=execution_id,
            status_code=resp.status_code,
        ) from e


async def sandbox_create(
    transport: Transport,
    options: CreateOptions | None = None,
    org_id: str | None = None,
) -> SandboxCreateResult:
    """Create a new sandbox.

    Returns:
        The created sandbox id, its initial status, and the stdout/stderr
        stream URLs when the command was stream-enabled.

    Raises:
        SandboxResponseError: If the platform rejects the request (e.g. quota exceeded)
    """
    options = options or CreateOptions()
    path = f"/sandbox/{_api_version(transport)}"
    resp = await transport.post(path, options.to_payload(), params=_org_params(org_id))
    _raise_for_envelope(resp, action="create sandbox")
    result = _parse_data(SandboxCreateResult, resp, action="create sandbox")
    logger.debug("Sandbox %s created with status %s", result.sandbox_id, result.status)
    return result


async def sandbox_get(
    transport: Transport,
    sandbox_id: str,
    org_id: str | None = None,
) -> SandboxInfo:
    """Fetch the current snapshot of a sandbox."""
    path = f"/sandbox/{_api_version(transport)}/{sandbox_id}"
    resp = await transport.get(path, params=_org_params(org_id))
    _raise_for_envelope(resp, action="get sandbox", sandbox_id=sandbox_id)
    return _parse_data(SandboxInfo, resp, action="get sandbox", sandbox_id=sandbox_id)


async def sandbox_list(
    transport: Transport,
    *,
    org_id: str | None = None,
    status: SandboxStatus | str | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> SandboxList:
    """List sandboxes visible to the caller, optionally filtered by status."""
    params: dict[str, str] = _org_params(org_id) or {}
    if status is not None:
        params["status"] = SandboxStatus(status).value
    if limit is not None:
        params["limit"] = str(limit)
    if offset is not None:
        params["offset"] = str(offset)
    path = f"/sandbox/{_api_version(transport)}"
    resp = await transport.get(path, params=params or None)
    _raise_for_envelope(resp, action="list sandboxes")
    return _parse_data(SandboxList, resp, action="list sandboxes")


async def sandbox_execute(
    transport: Transport,
    sandbox_id: str,
    options: ExecuteOptions,
    org_id: str | None = None,
) -> ExecutionInfo:
    """Submit a command to a running sandbox.

    Returns immediately with the execution in ``queued`` or ``running``
    state; use wait_for_execution() to block until it finishes.
    """
    path = f"/sandbox/{_api_version(transport)}/{sandbox_id}/execute"
    resp = await transport.post(path, options.to_payload(), params=_org_params(org_id))
    _raise_for_envelope(resp, action="execute command", sandbox_id=sandbox_id)
    execution = _parse_data(ExecutionInfo, resp, action="execute command", sandbox_id=sandbox_id)
    logger.debug("Execution %s submitted to sandbox %s", execution.execution_id, sandbox_id)
    return execution


async def sandbox_destroy(
    transport: Transport,
    sandbox_id: str,
    org_id: str | None = None,
) -> None:
    """Destroy a sandbox.

    Raises:
        SandboxNotFoundError: If the sandbox no longer exists
        SandboxResponseError: If the platform refused the request
    """
    path = f"/sandbox/{_api_version(transport)}/{sandbox_id}"
    resp = await transport.delete(path, params=_org_params(org_id))
    _raise_for_envelope(resp, action="destroy sandbox", sandbox_id=sandbox_id)
    logger.info("Sandbox %s destroyed", sandbox_id)


async def execution_get(
    transport: Transport,
    execution_id: str,
    org_id: str | None = None,
) -> ExecutionInfo:
    """Fetch the current state of an execution."""
    path = f"/sandbox/{_api_version(transport)}/executions/{execution_id}"
    resp = await transport.get(path, params=_org_params(org_id))
    _raise_for_envelope(resp, action="get execution", execution_id=execution_id)
    return _parse_data(ExecutionInfo, resp, action="get execution", execution_id=execution_id)


async def execution_list(
    transport: Transport,
    sandbox_id: str,
    *,
    org_id: str | None = None,
    limit: int | None = None,
) -> list[ExecutionInfo]:
    """List the executions of a sandbox, most recent first."""
    params: dict[str, str] = _org_params(org_id) or {}
    if limit is not None:
        params["limit"] = str(limit)
    path = f"/sandbox/{_api_version(transport)}/{sandbox_id}/executions"
    resp = await transport.get(path, params=params or None)
    _raise_for_envelope(resp, action="list executions", sandbox_id=sandbox_id)
    data = resp.data if isinstance(resp.data, dict) else {}
    try:
        return [ExecutionInfo.model_validate(item) for item in data.get("executions", [])]
    except ValidationError as e:
        raise SandboxResponseError(
            f"Unexpected response while trying to list executions: {e.error_count()} invalid field(s)",
            sandbox_id=sandbox_id,
            status_code=resp.status_code,
        ) from e


async def wait_for_execution(
    transport: Transport,
    execution_id: str,
    org_id: str | None = None,
    *,
    poll_interval: float = DEFAULT_EXECUTION_POLL_INTERVAL_SECONDS,
    timeout: float = DEFAULT_EXECUTION_TIMEOUT_SECONDS,
) -> ExecutionInfo:
    """Poll an execution until it reaches a terminal status.

    Terminal statuses are completed, failed, timeout and cancelled. There is
    no backoff: the interval is fixed.

    Raises:
        SandboxTimeoutError: If no terminal status is observed within ``timeout``
        SandboxResponseError: If a status lookup fails
    """
    start_time = time.monotonic()

    while True:
        info = await execution_get(transport, execution_id, org_id)
        logger.debug("Execution %s status: %s", execution_id, info.status)

        if info.status.is_terminal:
            return info

        if time.monotonic() - start_time >= timeout:
            raise SandboxTimeoutError(
                f"Execution {execution_id} did not finish within {timeout}s",
                execution_id=execution_id,
            )

        await asyncio.sleep(poll_interval)
