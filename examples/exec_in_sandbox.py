"""Run several commands in one long-lived sandbox.

This example demonstrates:
- Creating an interactive sandbox with sandbox_create()
- Running commands in it with sandbox_exec()
- Listing the sandbox's executions
- Destroying the sandbox when done

Usage:
    SANDKIT_API_KEY=... python examples/exec_in_sandbox.py
"""

import asyncio

from sandkit import (
    CreateOptions,
    ExecuteOptions,
    FileToWrite,
    HttpTransport,
    SandboxCommand,
    execution_list,
    sandbox_create,
    sandbox_destroy,
    sandbox_exec,
)

SCRIPT = b"""\
import sys
print("argv:", sys.argv[1:])
"""


async def main() -> None:
    async with HttpTransport() as transport:
        created = await sandbox_create(
            transport,
            CreateOptions(
                command=SandboxCommand(
                    argv=["sleep", "infinity"],
                    files=[FileToWrite(path="script.py", content=SCRIPT)],
                    mode="interactive",
                ),
                dependencies=["curl"],
            ),
        )
        sandbox_id = created.sandbox_id
        print(f"Sandbox ID: {sandbox_id}")

        try:
            for command in (["python3", "script.py", "a", "b"], ["curl", "--version"]):
                execution = await sandbox_exec(
                    transport,
                    sandbox_id,
                    ExecuteOptions(command=command, timeout="1m"),
                )
                print(f"{' '.join(command)} -> {execution.status} (exit code {execution.exit_code})")

            for execution in await execution_list(transport, sandbox_id):
                print(f"  {execution.execution_id}: {execution.status} {execution.duration_ms}ms")
        finally:
            await sandbox_destroy(transport, sandbox_id)


if __name__ == "__main__":
    asyncio.run(main())
