"""Stdin streaming with sandbox_run(stdin=...).

This example demonstrates forwarding local input to a one-shot command
through an input stream, both from an async generator and from a file.
Forwarding stdin needs a stream endpoint: pass region (or set
SANDKIT_REGION / SANDKIT_STREAM_URL).

Usage:
    SANDKIT_API_KEY=... python examples/stdin_streaming.py
"""

import asyncio
import io
from collections.abc import AsyncIterator

from sandkit import CreateOptions, HttpTransport, SandboxCommand, sandbox_run


async def lines() -> AsyncIterator[bytes]:
    for fruit in ("banana", "apple", "cherry"):
        yield f"{fruit}\n".encode()
        await asyncio.sleep(0.1)


async def main() -> None:
    async with HttpTransport() as transport:
        # --- 1. Async generator source (sort needs EOF) ---
        print("=== Sort from an async generator ===")
        result = await sandbox_run(
            transport,
            CreateOptions(command=SandboxCommand(argv=["sort"])),
            region="usc",
            stdin=lines(),
        )
        print(f"Exit code: {result.exit_code}")

        # --- 2. Binary file source, output captured locally ---
        print("\n=== Word count from a file ===")
        captured = io.BytesIO()
        result = await sandbox_run(
            transport,
            CreateOptions(command=SandboxCommand(argv=["wc", "-w"])),
            region="usc",
            stdin=io.BytesIO(b"the quick brown fox jumps over the lazy dog\n"),
            stdout=captured,
        )
        print(f"Words: {captured.getvalue().decode().strip()} (exit code {result.exit_code})")


if __name__ == "__main__":
    asyncio.run(main())
