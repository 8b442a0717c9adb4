from __future__ import annotations

import base64
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

CommandMode = Literal["oneshot", "interactive"]
_COMMAND_MODES: tuple[str, ...] = ("oneshot", "interactive")


class SandboxStatus(StrEnum):
    """Sandbox status values."""

    CREATING = "creating"
    IDLE = "idle"
    RUNNING = "running"
    TERMINATED = "terminated"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SandboxStatus.TERMINATED, SandboxStatus.FAILED)


class ExecutionStatus(StrEnum):
    """Execution status values."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self not in (ExecutionStatus.QUEUED, ExecutionStatus.RUNNING)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    """Base for API payloads: camelCase on the wire, unknown fields ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class APIResponse(_WireModel):
    """The uniform ``{success, data?, message?}`` envelope."""

    success: bool
    data: Any = None
    message: str | None = None
    status_code: int | None = None


class SandboxCreateResult(_WireModel):
    sandbox_id: str
    status: SandboxStatus
    stdout_stream_id: str | None = None
    stdout_stream_url: str | None = None
    stderr_stream_id: str | None = None
    stderr_stream_url: str | None = None


class SandboxInfo(_WireModel):
    """Snapshot of a sandbox as last reported by the platform."""

    sandbox_id: str
    status: SandboxStatus
    created_at: str | None = None
    region: str | None = None
    snapshot_id: str | None = None
    executions: int = 0
    stdout_stream_url: str | None = None
    stderr_stream_url: str | None = None
    dependencies: list[str] | None = None
    metadata: dict[str, Any] | None = None


class SandboxList(_WireModel):
    sandboxes: list[SandboxInfo]
    total: int = 0


class ExecutionInfo(_WireModel):
    """One command run inside a sandbox."""

    execution_id: str
    sandbox_id: str | None = None
    status: ExecutionStatus
    command: list[str] | None = None
    exit_code: int | None = None
    duration_ms: float | None = None
    started_at: str | None = None
    completed_at: str | None = None
    error: str | None = None
    stdout_stream_url: str | None = None
    stderr_stream_url: str | None = None


class FileInfo(_WireModel):
    """An entry of a sandbox workspace directory listing."""

    path: str
    size: int = 0
    is_dir: bool = False
    mode: str | None = None
    mod_time: str | None = None


# ---------------------------------------------------------------------------
# Request options
# ---------------------------------------------------------------------------


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class FileToWrite:
    """A file to materialize in the sandbox workspace before execution."""

    path: str
    content: bytes

    def __post_init__(self) -> None:
        if not self.path or not self.path.strip():
            raise ValueError("File path cannot be empty")

    def to_payload(self) -> dict[str, str]:
        return {"path": self.path, "content": base64.b64encode(self.content).decode("ascii")}


def _files_payload(files: list[FileToWrite] | None) -> list[dict[str, str]] | None:
    if not files:
        return None
    return [f.to_payload() for f in files]


@dataclass(frozen=True)
class SandboxCommand:
    """The command a sandbox runs at creation.

    ``argv`` is sent as ``exec`` on the wire.
    """

    argv: list[str]
    files: list[FileToWrite] | None = None
    mode: CommandMode | None = None

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("Command cannot be empty")
        if self.mode is not None and self.mode not in _COMMAND_MODES:
            raise ValueError(f"Invalid command mode {self.mode!r}, expected one of {_COMMAND_MODES}")

    def to_payload(self) -> dict[str, Any]:
        return _compact(
            {
                "exec": list(self.argv),
                "files": _files_payload(self.files),
                "mode": self.mode,
            }
        )


@dataclass(frozen=True)
class SandboxResources:
    """Resource limits using Kubernetes-style units (e.g. "512Mi", "500m")."""

    memory: str | None = None
    cpu: str | None = None
    disk: str | None = None

    def to_payload(self) -> dict[str, str]:
        return _compact({"memory": self.memory, "cpu": self.cpu, "disk": self.disk})


@dataclass(frozen=True)
class StreamConfig:
    """Stream ids for I/O redirection."""

    stdout: str | None = None
    stderr: str | None = None
    stdin: str | None = None
    timestamps: bool | None = None

    def to_payload(self) -> dict[str, Any]:
        return _compact(
            {
                "stdout": self.stdout,
                "stderr": self.stderr,
                "stdin": self.stdin,
                "timestamps": self.timestamps,
            }
        )


@dataclass(frozen=True)
class TimeoutConfig:
    """Duration strings such as "5m" or "1h"."""

    idle: str | None = None
    execution: str | None = None

    def to_payload(self) -> dict[str, str]:
        return _compact({"idle": self.idle, "execution": self.execution})


@dataclass(frozen=True)
class CreateOptions:
    """Options for creating a sandbox.

    Example:
        ```python
        options = CreateOptions(
            command=SandboxCommand(argv=["python", "-c", "print(1)"]),
            resources=SandboxResources(memory="1Gi"),
            network_enabled=True,
        )
        ```
    """

    command: SandboxCommand | None = None
    resources: SandboxResources | None = None
    env: dict[str, str] = field(default_factory=dict)
    network_enabled: bool | None = None
    stream: StreamConfig | None = None
    timeout: TimeoutConfig | None = None
    snapshot: str | None = None
    dependencies: list[str] | None = None
    metadata: dict[str, Any] | None = None

    def with_overrides(self, **kwargs: Any) -> CreateOptions:
        """Create new options with some values overridden."""
        return replace(self, **kwargs)

    def to_payload(self) -> dict[str, Any]:
        resources = self.resources.to_payload() if self.resources else None
        return _compact(
            {
                "resources": resources or None,
                "env": dict(self.env) or None,
                "network": (
                    {"enabled": self.network_enabled} if self.network_enabled is not None else None
                ),
                "stream": self.stream.to_payload() if self.stream else None,
                "timeout": self.timeout.to_payload() if self.timeout else None,
                "command": self.command.to_payload() if self.command else None,
                "snapshot": self.snapshot,
                "dependencies": list(self.dependencies) if self.dependencies else None,
                "metadata": self.metadata,
            }
        )


@dataclass(frozen=True)
class ExecuteOptions:
    """Options for running a command in an existing sandbox."""

    command: list[str]
    files: list[FileToWrite] | None = None
    timeout: str | None = None
    stream: StreamConfig | None = None

    def __post_init__(self) -> None:
        if not self.command:
            raise ValueError("Command cannot be empty")

    def to_payload(self) -> dict[str, Any]:
        stream = None
        if self.stream is not None:
            # stdin cannot be rewired per execution
            stream = _compact(
                {
                    "stdout": self.stream.stdout,
                    "stderr": self.stream.stderr,
                    "timestamps": self.stream.timestamps,
                }
            )
        return _compact(
            {
                "command": list(self.command),
                "files": _files_payload(self.files),
                "timeout": self.timeout,
                "stream": stream or None,
            }
        )


@dataclass(frozen=True)
class RunResult:
    """Outcome of a one-shot sandbox run.

    Attributes:
        sandbox_id: The sandbox that ran the command (already destroyed)
        exit_code: 0 if the sandbox terminated, 1 if it failed
        duration_ms: Client-observed wall time from create to completion
    """

    sandbox_id: str
    exit_code: int
    duration_ms: int
