"""Unit tests for sandkit._types module."""

from __future__ import annotations

import base64

import pytest
from pydantic import ValidationError

from sandkit._types import (
    CreateOptions,
    ExecuteOptions,
    ExecutionInfo,
    ExecutionStatus,
    FileToWrite,
    SandboxCommand,
    SandboxCreateResult,
    SandboxInfo,
    SandboxResources,
    SandboxStatus,
    StreamConfig,
    TimeoutConfig,
)


class TestStatuses:
    """Tests for the status enums."""

    @pytest.mark.parametrize(
        ("status", "terminal"),
        [
            (SandboxStatus.CREATING, False),
            (SandboxStatus.IDLE, False),
            (SandboxStatus.RUNNING, False),
            (SandboxStatus.TERMINATED, True),
            (SandboxStatus.FAILED, True),
        ],
    )
    def test_sandbox_status_terminal(self, status: SandboxStatus, terminal: bool) -> None:
        assert status.is_terminal is terminal

    @pytest.mark.parametrize(
        ("status", "terminal"),
        [
            (ExecutionStatus.QUEUED, False),
            (ExecutionStatus.RUNNING, False),
            (ExecutionStatus.COMPLETED, True),
            (ExecutionStatus.FAILED, True),
            (ExecutionStatus.TIMEOUT, True),
            (ExecutionStatus.CANCELLED, True),
        ],
    )
    def test_execution_status_terminal(self, status: ExecutionStatus, terminal: bool) -> None:
        assert status.is_terminal is terminal

    def test_status_compares_to_string(self) -> None:
        """StrEnum values compare equal to their wire strings."""
        assert SandboxStatus.TERMINATED == "terminated"


class TestResponseModels:
    """Tests for parsing camelCase API payloads."""

    def test_create_result_from_camel_case(self) -> None:
        result = SandboxCreateResult.model_validate(
            {
                "sandboxId": "sb-1",
                "status": "creating",
                "stdoutStreamUrl": "https://s/out",
                "stderrStreamUrl": "https://s/err",
            }
        )
        assert result.sandbox_id == "sb-1"
        assert result.status == SandboxStatus.CREATING
        assert result.stdout_stream_url == "https://s/out"
        assert result.stdout_stream_id is None

    def test_sandbox_info_ignores_unknown_fields(self) -> None:
        info = SandboxInfo.model_validate(
            {"sandboxId": "sb-1", "status": "running", "somethingNew": True}
        )
        assert info.executions == 0
        assert not hasattr(info, "somethingNew")

    def test_unknown_status_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SandboxInfo.model_validate({"sandboxId": "sb-1", "status": "exploded"})

    def test_execution_info_fields(self) -> None:
        info = ExecutionInfo.model_validate(
            {
                "executionId": "ex-1",
                "sandboxId": "sb-1",
                "status": "completed",
                "exitCode": 3,
                "durationMs": 42,
            }
        )
        assert info.exit_code == 3
        assert info.duration_ms == 42
        assert info.status.is_terminal

    def test_models_are_frozen(self) -> None:
        info = SandboxInfo(sandbox_id="sb-1", status=SandboxStatus.RUNNING)
        with pytest.raises(ValidationError):
            info.sandbox_id = "other"  # type: ignore[misc]


class TestFileToWrite:
    """Tests for FileToWrite."""

    def test_content_is_base64_encoded(self) -> None:
        payload = FileToWrite(path="main.py", content=b"print('hi')\n").to_payload()
        assert payload["path"] == "main.py"
        assert base64.b64decode(payload["content"]) == b"print('hi')\n"

    @pytest.mark.parametrize("path", ["", "   "])
    def test_blank_path_rejected(self, path: str) -> None:
        with pytest.raises(ValueError, match="path"):
            FileToWrite(path=path, content=b"")


class TestSandboxCommand:
    """Tests for SandboxCommand."""

    def test_argv_is_sent_as_exec(self) -> None:
        payload = SandboxCommand(argv=["echo", "hi"], mode="oneshot").to_payload()
        assert payload == {"exec": ["echo", "hi"], "mode": "oneshot"}

    def test_empty_argv_rejected(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            SandboxCommand(argv=[])

    def test_invalid_mode_rejected(self) -> None:
        with pytest.raises(ValueError, match="mode"):
            SandboxCommand(argv=["ls"], mode="daemon")  # type: ignore[arg-type]

    def test_files_included(self) -> None:
        payload = SandboxCommand(argv=["ls"], files=[FileToWrite("a.txt", b"a")]).to_payload()
        assert payload["files"] == [{"path": "a.txt", "content": "YQ=="}]


class TestCreateOptions:
    """Tests for CreateOptions serialization."""

    def test_empty_options_payload(self) -> None:
        assert CreateOptions().to_payload() == {}

    def test_full_payload(self) -> None:
        options = CreateOptions(
            command=SandboxCommand(argv=["python", "main.py"]),
            resources=SandboxResources(memory="1Gi", cpu="500m"),
            env={"A": "1"},
            network_enabled=True,
            stream=StreamConfig(stdin="st-1", timestamps=True),
            timeout=TimeoutConfig(execution="5m"),
            snapshot="snap-1",
            dependencies=["curl"],
            metadata={"owner": "ci"},
        )

        assert options.to_payload() == {
            "resources": {"memory": "1Gi", "cpu": "500m"},
            "env": {"A": "1"},
            "network": {"enabled": True},
            "stream": {"stdin": "st-1", "timestamps": True},
            "timeout": {"execution": "5m"},
            "command": {"exec": ["python", "main.py"]},
            "snapshot": "snap-1",
            "dependencies": ["curl"],
            "metadata": {"owner": "ci"},
        }

    def test_network_disabled_is_sent(self) -> None:
        assert CreateOptions(network_enabled=False).to_payload() == {"network": {"enabled": False}}

    def test_with_overrides_returns_copy(self) -> None:
        original = CreateOptions(snapshot="a")
        updated = original.with_overrides(snapshot="b")
        assert original.snapshot == "a"
        assert updated.snapshot == "b"


class TestExecuteOptions:
    """Tests for ExecuteOptions."""

    def test_empty_command_rejected(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            ExecuteOptions(command=[])

    def test_stdin_not_sent(self) -> None:
        options = ExecuteOptions(
            command=["ls"],
            timeout="1m",
            stream=StreamConfig(stdout="out", stdin="in"),
        )
        assert options.to_payload() == {
            "command": ["ls"],
            "timeout": "1m",
            "stream": {"stdout": "out"},
        }
