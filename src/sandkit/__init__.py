"""A Python client library for running commands in remote sandboxes."""

from sandkit._auth import AuthHeaders, resolve_auth
from sandkit._copy import CopyResult, copy_from_sandbox, copy_to_sandbox, parse_copy_path
from sandkit._defaults import SandboxDefaults
from sandkit._env import load_dotenv, parse_env_pairs
from sandkit._files import (
    sandbox_list_files,
    sandbox_mkdir,
    sandbox_read_file,
    sandbox_rm_dir,
    sandbox_rm_file,
    sandbox_write_files,
)
from sandkit._interceptor import RequestInterceptor
from sandkit._run import sandbox_exec, sandbox_run
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
from sandkit._signals import cancel_on_signals
from sandkit._stream import InputStream, create_input_stream, pipe_to_stream, relay_from_stream
from sandkit._transport import HttpTransport, Transport
from sandkit._types import (
    APIResponse,
    CreateOptions,
    ExecuteOptions,
    ExecutionInfo,
    ExecutionStatus,
    FileInfo,
    FileToWrite,
    RunResult,
    SandboxCommand,
    SandboxCreateResult,
    SandboxInfo,
    SandboxList,
    SandboxResources,
    SandboxStatus,
    StreamConfig,
    TimeoutConfig,
)
from sandkit.exceptions import (
    SandboxCancelledError,
    SandboxError,
    SandboxFileError,
    SandboxNotFoundError,
    SandboxResponseError,
    SandboxTimeoutError,
    SandkitAuthenticationError,
    SandkitError,
    StreamError,
)

__all__ = [
    "APIResponse",
    "AuthHeaders",
    "CopyResult",
    "CreateOptions",
    "ExecuteOptions",
    "ExecutionInfo",
    "ExecutionStatus",
    "FileInfo",
    "FileToWrite",
    "HttpTransport",
    "InputStream",
    "RequestInterceptor",
    "RunResult",
    "SandboxCancelledError",
    "SandboxCommand",
    "SandboxCreateResult",
    "SandboxDefaults",
    "SandboxError",
    "SandboxFileError",
    "SandboxInfo",
    "SandboxList",
    "SandboxNotFoundError",
    "SandboxResources",
    "SandboxResponseError",
    "SandboxStatus",
    "SandboxTimeoutError",
    "SandkitAuthenticationError",
    "SandkitError",
    "StreamConfig",
    "StreamError",
    "TimeoutConfig",
    "Transport",
    "cancel_on_signals",
    "copy_from_sandbox",
    "copy_to_sandbox",
    "create_input_stream",
    "execution_get",
    "execution_list",
    "load_dotenv",
    "parse_copy_path",
    "parse_env_pairs",
    "pipe_to_stream",
    "relay_from_stream",
    "resolve_auth",
    "sandbox_create",
    "sandbox_destroy",
    "sandbox_exec",
    "sandbox_execute",
    "sandbox_get",
    "sandbox_list",
    "sandbox_list_files",
    "sandbox_mkdir",
    "sandbox_read_file",
    "sandbox_rm_dir",
    "sandbox_rm_file",
    "sandbox_run",
    "sandbox_write_files",
    "wait_for_execution",
]
