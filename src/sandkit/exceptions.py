"""Exception hierarchy for sandbox operations."""

from __future__ import annotations


class SandkitError(Exception):
    """Base exception for all sandkit errors."""


class SandkitAuthenticationError(SandkitError):
    """Raised when configured credentials cannot be used."""


class SandboxError(SandkitError):
    """Base exception for sandbox operations."""


class SandboxResponseError(SandboxError):
    """Raised when the platform rejects a sandbox request.

    Covers both ``success: false`` envelopes and non-2xx responses. The
    server-provided message is the exception message.
    """

    def __init__(
        self,
        message: str,
        *,
        sandbox_id: str | None = None,
        execution_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.sandbox_id = sandbox_id
        self.execution_id = execution_id
        self.status_code = status_code


class SandboxNotFoundError(SandboxResponseError):
    """Raised when a sandbox or execution does not exist."""


class SandboxTimeoutError(SandboxError):
    """Raised when polling exceeds its budget without a terminal status."""

    def __init__(
        self,
        message: str,
        *,
        sandbox_id: str | None = None,
        execution_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.sandbox_id = sandbox_id
        self.execution_id = execution_id


class SandboxCancelledError(SandboxError):
    """Raised when the cancel signal fires before a terminal status.

    This is an expected outcome (Ctrl+C, caller shutdown), not a failure.
    """

    def __init__(self, message: str, *, sandbox_id: str | None = None) -> None:
        super().__init__(message)
        self.sandbox_id = sandbox_id


class SandboxFileError(SandboxError):
    """Raised when a file cannot be copied to or from a sandbox.

    Covers the helper command inside the sandbox failing (missing file,
    permission denied) as well as output that cannot be decoded.
    """

    def __init__(
        self,
        message: str,
        *,
        sandbox_id: str | None = None,
        filepath: str | None = None,
    ) -> None:
        super().__init__(message)
        self.sandbox_id = sandbox_id
        self.filepath = filepath


class StreamError(SandkitError):
    """Raised when an input stream cannot be created."""
