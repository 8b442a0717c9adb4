"""One-shot run and execute orchestration.

Both orchestrators combine the lifecycle operations with stream relays:
relays run as background tasks in a per-call ``_RelayGroup`` while the
caller polls for a terminal status. Completion is decided by polling only.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Coroutine
from dataclasses import replace
from typing import TYPE_CHECKING, Any, BinaryIO

import httpx

from sandkit._defaults import SandboxDefaults, resolve_stream_base_url
from sandkit._sandbox import (
    execution_get,
    sandbox_create,
    sandbox_destroy,
    sandbox_execute,
    sandbox_get,
)
from sandkit._stream import (
    ByteSource,
    Sink,
    _default_stderr_callback,
    _default_stdout_callback,
    _wait_cancelled,
    as_sink,
    create_input_stream,
    pipe_to_stream,
    relay_from_stream,
)
from sandkit._types import (
    CreateOptions,
    ExecuteOptions,
    ExecutionInfo,
    RunResult,
    SandboxStatus,
    StreamConfig,
)
from sandkit.exceptions import (
    SandboxCancelledError,
    SandboxNotFoundError,
    SandboxResponseError,
    SandboxTimeoutError,
)

if TYPE_CHECKING:
    from sandkit._transport import Transport

logger = logging.getLogger(__name__)

# Status lookups that fail with these are retried on the next poll, except
# SandboxNotFoundError which ends polling
_TRANSIENT_ERRORS: tuple[type[Exception], ...] = (SandboxResponseError, httpx.HTTPError)


class _RelayGroup:
    """Task scope for the relays of a single run.

    Relays share ``cancel``, which is also set when a followed caller event
    fires. The group is settled exactly once by ``aclose()``: relays get a
    grace period to stop on the signal, stragglers are cancelled, and every
    task is awaited without re-raising its error.
    """

    def __init__(self, log: logging.Logger) -> None:
        self.cancel = asyncio.Event()
        self._log = log
        self._tasks: list[asyncio.Task[int]] = []
        self._follower: asyncio.Task[None] | None = None
        self._closed = False

    def start(self, name: str, coro: Coroutine[Any, Any, int]) -> asyncio.Task[int]:
        task = asyncio.create_task(coro, name=f"sandkit-relay-{name}")
        task.add_done_callback(self._observe)
        self._tasks.append(task)
        return task

    def follow(self, parent: asyncio.Event) -> None:
        """Set this group's cancel signal as soon as ``parent`` is set."""

        async def _follow() -> None:
            await parent.wait()
            self.cancel.set()

        self._follower = asyncio.create_task(_follow(), name="sandkit-relay-cancel")

    def _observe(self, task: asyncio.Task[int]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.debug("Relay %s failed: %s", task.get_name(), exc)

    async def aclose(self, flush_seconds: float, grace_seconds: float) -> None:
        if self._closed:
            return
        self._closed = True
        if self._follower is not None:
            self._follower.cancel()
            await asyncio.gather(self._follower, return_exceptions=True)
        if not self._tasks:
            return

        # Let in-flight writes land before the relays are told to stop
        if flush_seconds > 0 and not self.cancel.is_set():
            await asyncio.sleep(flush_seconds)
        self.cancel.set()
        _, pending = await asyncio.wait(self._tasks, timeout=grace_seconds)
        for task in pending:
            self._log.debug("Relay %s did not stop in time, cancelling", task.get_name())
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)


class _CountingSink:
    """Sink wrapper that records how many bytes reached the sink."""

    def __init__(self, sink: Sink) -> None:
        self._sink = sink
        self.count = 0

    def __call__(self, data: bytes) -> None:
        self._sink(data)
        self.count += len(data)


def _start_output_relays(
    relays: _RelayGroup,
    transport: Transport,
    stdout_url: str | None,
    stderr_url: str | None,
    out: Sink,
    err: Sink,
    defaults: SandboxDefaults,
    log: logging.Logger,
) -> None:
    """Start inbound relays, relaying a combined stream only once."""

    def relay(url: str, sink: Sink) -> Coroutine[Any, Any, int]:
        return relay_from_stream(
            transport,
            url,
            sink,
            relays.cancel,
            attempts=defaults.stream_attempts,
            retry_delay=defaults.stream_retry_seconds,
            log=log,
        )

    if stdout_url and stdout_url == stderr_url:
        log.debug("stdout and stderr share stream %s", stdout_url)
        relays.start("output", relay(stdout_url, out))
        return
    if stdout_url:
        relays.start("stdout", relay(stdout_url, out))
    if stderr_url:
        relays.start("stderr", relay(stderr_url, err))


async def _poll_sandbox(
    transport: Transport,
    sandbox_id: str,
    org_id: str | None,
    cancel: asyncio.Event,
    defaults: SandboxDefaults,
    log: logging.Logger,
) -> int:
    """Poll the sandbox until it terminates and map its status to an exit code."""
    attempts = defaults.run_max_poll_attempts

    for attempt in range(1, attempts + 1):
        if await _wait_cancelled(cancel, defaults.run_poll_interval_seconds):
            raise SandboxCancelledError(f"Run of sandbox {sandbox_id} was cancelled", sandbox_id=sandbox_id)

        try:
            info = await sandbox_get(transport, sandbox_id, org_id)
        except SandboxNotFoundError:
            log.debug("Sandbox %s no longer exists", sandbox_id)
            raise
        except _TRANSIENT_ERRORS as e:
            log.debug("Status check %d for sandbox %s failed: %s", attempt, sandbox_id, e)
            continue

        log.debug("Sandbox %s status: %s", sandbox_id, info.status)
        match info.status:
            case SandboxStatus.TERMINATED:
                return 0
            case SandboxStatus.FAILED:
                return 1

    raise SandboxTimeoutError(
        f"Sandbox {sandbox_id} did not finish after {attempts} status checks",
        sandbox_id=sandbox_id,
    )


async def _destroy_quietly(
    transport: Transport,
    sandbox_id: str,
    org_id: str | None,
    log: logging.Logger,
) -> None:
    """Best-effort destroy that never raises."""
    try:
        await sandbox_destroy(transport, sandbox_id, org_id)
    except SandboxNotFoundError:
        # oneshot sandboxes may already be gone
        log.debug("Sandbox %s was already destroyed", sandbox_id)
    except Exception as e:
        log.warning("Failed to destroy sandbox %s: %s", sandbox_id, e)


async def sandbox_run(
    transport: Transport,
    options: CreateOptions,
    *,
    org_id: str | None = None,
    region: str | None = None,
    stream_base_url: str | None = None,
    cancel: asyncio.Event | None = None,
    stdin: ByteSource | None = None,
    stdout: Sink | BinaryIO | None = None,
    stderr: Sink | BinaryIO | None = None,
    defaults: SandboxDefaults | None = None,
    log: logging.Logger | None = None,
) -> RunResult:
    """Create a sandbox, run its command to completion, and destroy it.

    The sandbox is created in ``oneshot`` mode. Piped ``stdin`` is uploaded
    through a freshly created input stream when a stream endpoint is
    configured (``stream_base_url``, ``region``, or the SANDKIT_STREAM_URL /
    SANDKIT_REGION env vars). Output is relayed to ``stdout``/``stderr``
    (callbacks or binary files; process stdio by default) while the sandbox
    status is polled.

    The sandbox is destroyed exactly once on every exit path. Errors raised
    by the destroy call are logged and suppressed.

    Returns:
        RunResult with exit_code 0 if the sandbox terminated, 1 if it failed

    Raises:
        ValueError: If ``options`` has no command
        StreamError: If the input stream could not be created
        SandboxResponseError: If the sandbox could not be created
        SandboxNotFoundError: If the sandbox disappeared while polling
        SandboxCancelledError: If ``cancel`` was set before the sandbox finished
        SandboxTimeoutError: If the poll budget ran out

    Example:
        result = await sandbox_run(
            transport,
            CreateOptions(command=SandboxCommand(argv=["echo", "hello"])),
        )
        print(result.exit_code)
    """
    if options.command is None:
        raise ValueError("A command is required to run a sandbox")

    log = log or logger
    defaults = defaults or getattr(transport, "defaults", None) or SandboxDefaults()
    cancel = cancel or asyncio.Event()
    out = as_sink(stdout, _default_stdout_callback)
    err = as_sink(stderr, _default_stderr_callback)
    started = time.monotonic()

    input_stream = None
    if stdin is not None:
        base_url = resolve_stream_base_url(stream_base_url, region)
        if base_url is None:
            log.debug("No stream endpoint configured, stdin will not be forwarded")
        else:
            input_stream = await create_input_stream(transport, base_url)
            log.debug("Created stdin stream %s", input_stream.id)

    stream = options.stream
    if input_stream is not None:
        stream = replace(stream or StreamConfig(), stdin=input_stream.id)
    create_options = options.with_overrides(
        command=replace(options.command, mode="oneshot"),
        stream=stream,
    )

    created = await sandbox_create(transport, create_options, org_id)
    sandbox_id = created.sandbox_id
    log.info("Sandbox %s created, running %s", sandbox_id, " ".join(options.command.argv))

    relays = _RelayGroup(log)
    relays.follow(cancel)
    try:
        if input_stream is not None:
            relays.start(
                "stdin",
                pipe_to_stream(
                    transport,
                    input_stream.url,
                    stdin,  # type: ignore[arg-type]
                    relays.cancel,
                    chunk_size=defaults.stream_chunk_size,
                    log=log,
                ),
            )
        _start_output_relays(
            relays,
            transport,
            created.stdout_stream_url,
            created.stderr_stream_url,
            out,
            err,
            defaults,
            log,
        )

        exit_code = await _poll_sandbox(transport, sandbox_id, org_id, cancel, defaults, log)
    finally:
        await _destroy_quietly(transport, sandbox_id, org_id, log)
        await relays.aclose(defaults.stream_flush_seconds, defaults.relay_grace_seconds)

    duration_ms = math.ceil((time.monotonic() - started) * 1000)
    log.info("Sandbox %s finished with exit code %d in %dms", sandbox_id, exit_code, duration_ms)
    return RunResult(sandbox_id=sandbox_id, exit_code=exit_code, duration_ms=duration_ms)


async def _poll_execution(
    transport: Transport,
    execution: ExecutionInfo,
    org_id: str | None,
    cancel: asyncio.Event,
    defaults: SandboxDefaults,
    log: logging.Logger,
) -> ExecutionInfo:
    execution_id = execution.execution_id
    attempts = defaults.run_max_poll_attempts

    for attempt in range(1, attempts + 1):
        if await _wait_cancelled(cancel, defaults.run_poll_interval_seconds):
            raise SandboxCancelledError(
                f"Execution {execution_id} was cancelled",
                sandbox_id=execution.sandbox_id,
            )

        try:
            info = await execution_get(transport, execution_id, org_id)
        except SandboxNotFoundError:
            log.debug("Execution %s no longer exists", execution_id)
            raise
        except _TRANSIENT_ERRORS as e:
            log.debug("Status check %d for execution %s failed: %s", attempt, execution_id, e)
            continue

        if info.status.is_terminal:
            return info

    raise SandboxTimeoutError(
        f"Execution {execution_id} did not finish after {attempts} status checks",
        sandbox_id=execution.sandbox_id,
        execution_id=execution_id,
    )


async def sandbox_exec(
    transport: Transport,
    sandbox_id: str,
    options: ExecuteOptions,
    *,
    org_id: str | None = None,
    cancel: asyncio.Event | None = None,
    stdout: Sink | BinaryIO | None = None,
    stderr: Sink | BinaryIO | None = None,
    defaults: SandboxDefaults | None = None,
    log: logging.Logger | None = None,
) -> ExecutionInfo:
    """Run a command in an existing sandbox and wait for it to finish.

    Output of the execution's streams is relayed while the execution is
    polled. If no stdout bytes reached the sink while the execution ran,
    the stdout stream is fetched once more after completion. The sandbox
    itself is left running.

    Raises:
        SandboxResponseError: If the command could not be submitted
        SandboxNotFoundError: If the execution disappeared while polling
        SandboxCancelledError: If ``cancel`` was set before the execution finished
        SandboxTimeoutError: If the poll budget ran out
    """
    log = log or logger
    defaults = defaults or getattr(transport, "defaults", None) or SandboxDefaults()
    cancel = cancel or asyncio.Event()
    out = _CountingSink(as_sink(stdout, _default_stdout_callback))
    err = as_sink(stderr, _default_stderr_callback)

    execution = await sandbox_execute(transport, sandbox_id, options, org_id)
    log.debug("Execution %s started in sandbox %s", execution.execution_id, sandbox_id)

    relays = _RelayGroup(log)
    relays.follow(cancel)
    try:
        _start_output_relays(
            relays,
            transport,
            execution.stdout_stream_url,
            execution.stderr_stream_url,
            out,
            err,
            defaults,
            log,
        )
        final = await _poll_execution(transport, execution, org_id, cancel, defaults, log)
    finally:
        await relays.aclose(defaults.stream_flush_seconds, defaults.relay_grace_seconds)

    if execution.stdout_stream_url and out.count == 0:
        log.debug("Fetching final stream content from %s", execution.stdout_stream_url)
        await relay_from_stream(
            transport,
            execution.stdout_stream_url,
            out,
            asyncio.Event(),
            attempts=1,
            log=log,
        )

    return final
