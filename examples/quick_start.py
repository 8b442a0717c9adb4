"""Quick start example - one-shot command that runs to completion.

This example demonstrates:
- Using sandbox_run() to create, run and destroy a sandbox in one call
- Streaming the command's output to the local terminal
- Checking the exit code of the run

Usage:
    SANDKIT_API_KEY=... python examples/quick_start.py
"""

import asyncio

from sandkit import CreateOptions, HttpTransport, SandboxCommand, SandboxResources, sandbox_run


async def main() -> None:
    options = CreateOptions(
        command=SandboxCommand(argv=["python3", "-c", "print('Hello from sandbox!')"]),
        resources=SandboxResources(memory="512Mi", cpu="500m"),
    )

    async with HttpTransport() as transport:
        # Output is written to this process's stdout/stderr by default
        result = await sandbox_run(transport, options)

    print(f"Sandbox ID: {result.sandbox_id}")
    print(f"Job completed with exit code {result.exit_code} in {result.duration_ms}ms")


if __name__ == "__main__":
    asyncio.run(main())
