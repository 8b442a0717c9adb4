"""Unit tests for sandkit._sandbox lifecycle operations."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from sandkit._sandbox import (
    execution_get,
    execution_list,
    sandbox_create,
    sandbox_destroy,
    sandbox_execute,
    sandbox_get,
    sandbox_list,
    wait_for_execution,
)
from sandkit._types import (
    CreateOptions,
    ExecuteOptions,
    ExecutionStatus,
    SandboxCommand,
    SandboxStatus,
)
from sandkit.exceptions import (
    SandboxNotFoundError,
    SandboxResponseError,
    SandboxTimeoutError,
)
from tests.unit.sandkit.conftest import envelope, json_response, make_transport


class _Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]

    def body(self, index: int = 0) -> Any:
        return json.loads(self.requests[index].content)


def _execution(status: str, **extra: Any) -> dict[str, Any]:
    return {"executionId": "ex-1", "sandboxId": "sb-1", "status": status, **extra}


class TestSandboxCreate:
    """Tests for sandbox_create."""

    @pytest.mark.asyncio
    async def test_create_posts_options(self) -> None:
        recorder = _Recorder(
            json_response(
                200,
                envelope(
                    {
                        "sandboxId": "sb-1",
                        "status": "creating",
                        "stdoutStreamUrl": "https://s/out",
                        "stderrStreamUrl": "https://s/err",
                    }
                ),
            )
        )
        options = CreateOptions(command=SandboxCommand(argv=["echo", "hi"]), env={"A": "1"})

        async with make_transport(recorder) as transport:
            result = await sandbox_create(transport, options, org_id="org-1")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/sandbox/v1"
        assert request.url.params["orgId"] == "org-1"
        assert recorder.body() == {"env": {"A": "1"}, "command": {"exec": ["echo", "hi"]}}
        assert result.sandbox_id == "sb-1"
        assert result.status == SandboxStatus.CREATING
        assert result.stdout_stream_url == "https://s/out"

    @pytest.mark.asyncio
    async def test_create_without_options_sends_empty_body(self) -> None:
        recorder = _Recorder(json_response(200, envelope({"sandboxId": "sb-1", "status": "idle"})))

        async with make_transport(recorder) as transport:
            await sandbox_create(transport)

        assert recorder.body() == {}
        assert "orgId" not in recorder.requests[0].url.params

    @pytest.mark.asyncio
    async def test_create_failure_uses_server_message(self) -> None:
        recorder = _Recorder(json_response(200, envelope(success=False, message="quota exceeded")))

        async with make_transport(recorder) as transport:
            with pytest.raises(SandboxResponseError, match="quota exceeded"):
                await sandbox_create(transport, CreateOptions())

    @pytest.mark.asyncio
    async def test_create_failure_default_message(self) -> None:
        recorder = _Recorder(json_response(200, envelope(success=False)))

        async with make_transport(recorder) as transport:
            with pytest.raises(SandboxResponseError, match="Failed to create sandbox"):
                await sandbox_create(transport)

    @pytest.mark.asyncio
    async def test_malformed_data_raises_response_error(self) -> None:
        recorder = _Recorder(json_response(200, envelope({"status": "creating"})))

        async with make_transport(recorder) as transport:
            with pytest.raises(SandboxResponseError, match="Unexpected response"):
                await sandbox_create(transport)


class TestSandboxGetListDestroy:
    """Tests for sandbox_get, sandbox_list and sandbox_destroy."""

    @pytest.mark.asyncio
    async def test_get(self) -> None:
        recorder = _Recorder(
            json_response(200, envelope({"sandboxId": "sb-1", "status": "running", "executions": 2}))
        )

        async with make_transport(recorder) as transport:
            info = await sandbox_get(transport, "sb-1")

        assert recorder.requests[0].url.path == "/sandbox/v1/sb-1"
        assert info.status == SandboxStatus.RUNNING
        assert info.executions == 2

    @pytest.mark.asyncio
    async def test_get_not_found(self) -> None:
        recorder = _Recorder(json_response(404, envelope(success=False, message="sandbox not found")))

        async with make_transport(recorder) as transport:
            with pytest.raises(SandboxNotFoundError) as exc_info:
                await sandbox_get(transport, "sb-missing")

        assert exc_info.value.sandbox_id == "sb-missing"
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_list_with_filters(self) -> None:
        recorder = _Recorder(
            json_response(
                200,
                envelope(
                    {
                        "sandboxes": [
                            {"sandboxId": "sb-1", "status": "running"},
                            {"sandboxId": "sb-2", "status": "idle"},
                        ],
                        "total": 2,
                    }
                ),
            )
        )

        async with make_transport(recorder) as transport:
            result = await sandbox_list(transport, org_id="org-1", status="running", limit=10, offset=5)

        params = recorder.requests[0].url.params
        assert params["orgId"] == "org-1"
        assert params["status"] == "running"
        assert params["limit"] == "10"
        assert params["offset"] == "5"
        assert [sb.sandbox_id for sb in result.sandboxes] == ["sb-1", "sb-2"]
        assert result.total == 2

    @pytest.mark.asyncio
    async def test_list_rejects_unknown_status(self) -> None:
        recorder = _Recorder(json_response(200, envelope({"sandboxes": []})))

        async with make_transport(recorder) as transport:
            with pytest.raises(ValueError):
                await sandbox_list(transport, status="exploded")

    @pytest.mark.asyncio
    async def test_destroy(self) -> None:
        recorder = _Recorder(json_response(200, envelope()))

        async with make_transport(recorder) as transport:
            await sandbox_destroy(transport, "sb-1", org_id="org-1")

        request = recorder.requests[0]
        assert request.method == "DELETE"
        assert request.url.path == "/sandbox/v1/sb-1"
        assert request.url.params["orgId"] == "org-1"

    @pytest.mark.asyncio
    async def test_destroy_failure(self) -> None:
        recorder = _Recorder(json_response(500, {"error": "boom"}))

        async with make_transport(recorder) as transport:
            with pytest.raises(SandboxResponseError) as exc_info:
                await sandbox_destroy(transport, "sb-1")

        assert exc_info.value.status_code == 500


class TestExecutions:
    """Tests for execute and execution lookups."""

    @pytest.mark.asyncio
    async def test_execute(self) -> None:
        recorder = _Recorder(
            json_response(200, envelope(_execution("queued", stdoutStreamUrl="https://s/ex-out")))
        )

        async with make_transport(recorder) as transport:
            execution = await sandbox_execute(transport, "sb-1", ExecuteOptions(command=["ls", "-la"]))

        assert recorder.requests[0].url.path == "/sandbox/v1/sb-1/execute"
        assert recorder.body() == {"command": ["ls", "-la"]}
        assert execution.status == ExecutionStatus.QUEUED
        assert execution.stdout_stream_url == "https://s/ex-out"

    @pytest.mark.asyncio
    async def test_execution_get(self) -> None:
        recorder = _Recorder(json_response(200, envelope(_execution("completed", exitCode=0))))

        async with make_transport(recorder) as transport:
            execution = await execution_get(transport, "ex-1")

        assert recorder.requests[0].url.path == "/sandbox/v1/executions/ex-1"
        assert execution.exit_code == 0

    @pytest.mark.asyncio
    async def test_execution_get_not_found_names_execution(self) -> None:
        recorder = _Recorder(json_response(404, envelope(success=False)))

        async with make_transport(recorder) as transport:
            with pytest.raises(SandboxNotFoundError) as exc_info:
                await execution_get(transport, "ex-missing")

        assert exc_info.value.execution_id == "ex-missing"

    @pytest.mark.asyncio
    async def test_execution_list(self) -> None:
        recorder = _Recorder(
            json_response(
                200,
                envelope({"executions": [_execution("completed"), _execution("running")]}),
            )
        )

        async with make_transport(recorder) as transport:
            executions = await execution_list(transport, "sb-1", limit=2)

        assert recorder.requests[0].url.path == "/sandbox/v1/sb-1/executions"
        assert recorder.requests[0].url.params["limit"] == "2"
        assert [e.status for e in executions] == [ExecutionStatus.COMPLETED, ExecutionStatus.RUNNING]


class TestWaitForExecution:
    """Tests for wait_for_execution."""

    @pytest.mark.asyncio
    async def test_returns_first_terminal_status(self) -> None:
        recorder = _Recorder(
            json_response(200, envelope(_execution("queued"))),
            json_response(200, envelope(_execution("running"))),
            json_response(200, envelope(_execution("failed", exitCode=2))),
        )

        async with make_transport(recorder) as transport:
            execution = await wait_for_execution(transport, "ex-1", poll_interval=0)

        assert execution.status == ExecutionStatus.FAILED
        assert execution.exit_code == 2
        assert len(recorder.requests) == 3

    @pytest.mark.asyncio
    async def test_terminal_on_first_poll(self) -> None:
        recorder = _Recorder(json_response(200, envelope(_execution("cancelled"))))

        async with make_transport(recorder) as transport:
            execution = await wait_for_execution(transport, "ex-1", poll_interval=0)

        assert execution.status == ExecutionStatus.CANCELLED
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        recorder = _Recorder(json_response(200, envelope(_execution("running"))))

        async with make_transport(recorder) as transport:
            with pytest.raises(SandboxTimeoutError) as exc_info:
                await wait_for_execution(transport, "ex-1", poll_interval=0, timeout=0)

        assert exc_info.value.execution_id == "ex-1"
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_lookup_error_propagates(self) -> None:
        recorder = _Recorder(json_response(404, envelope(success=False, message="gone")))

        async with make_transport(recorder) as transport:
            with pytest.raises(SandboxNotFoundError, match="gone"):
                await wait_for_execution(transport, "ex-1", poll_interval=0)
