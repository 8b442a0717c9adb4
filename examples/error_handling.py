"""Error handling patterns for the sandkit client.

Demonstrates:
- SandboxResponseError when the platform rejects a request
- SandboxNotFoundError for a sandbox that does not exist
- SandboxTimeoutError when a run exceeds its poll budget
- SandboxCancelledError when the cancel event fires

Usage:
    SANDKIT_API_KEY=... python examples/error_handling.py
"""

import asyncio

from sandkit import (
    CreateOptions,
    HttpTransport,
    SandboxCancelledError,
    SandboxCommand,
    SandboxDefaults,
    SandboxNotFoundError,
    SandboxResponseError,
    SandboxTimeoutError,
    sandbox_get,
    sandbox_run,
)


async def main() -> None:
    sleeper = CreateOptions(command=SandboxCommand(argv=["sleep", "30"]))

    async with HttpTransport() as transport:
        # --- SandboxNotFoundError ---
        print("1. SandboxNotFoundError")
        print("-" * 50)
        try:
            await sandbox_get(transport, "sb-does-not-exist")
        except SandboxNotFoundError as e:
            print(f"   Caught SandboxNotFoundError (status {e.status_code}): {e}")
        except SandboxResponseError as e:
            print(f"   Caught SandboxResponseError: {e}")
        print()

        # --- SandboxTimeoutError ---
        print("2. SandboxTimeoutError from a small poll budget")
        print("-" * 50)
        defaults = SandboxDefaults(run_poll_interval_seconds=0.5, run_max_poll_attempts=4)
        try:
            await sandbox_run(transport, sleeper, defaults=defaults)
        except SandboxTimeoutError as e:
            print(f"   Caught SandboxTimeoutError for {e.sandbox_id} (sandbox was destroyed)")
        print()

        # --- SandboxCancelledError ---
        print("3. SandboxCancelledError from the cancel event")
        print("-" * 50)
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(2, cancel.set)
        try:
            await sandbox_run(transport, sleeper, cancel=cancel)
        except SandboxCancelledError as e:
            print(f"   Caught SandboxCancelledError for {e.sandbox_id} (sandbox was destroyed)")


if __name__ == "__main__":
    asyncio.run(main())
