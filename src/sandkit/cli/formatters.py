"""Output formatters for CLI commands."""

from __future__ import annotations

import json
from datetime import UTC, datetime

from sandkit._types import SandboxInfo


def format_sandbox_table(sandboxes: list[SandboxInfo]) -> str:
    """Format sandboxes as a human-readable table.

    Args:
        sandboxes: Sandboxes to format.

    Returns:
        Formatted table string.
    """
    if not sandboxes:
        return "No sandboxes found."

    headers = ["ID", "STATUS", "REGION", "EXECUTIONS", "AGE"]
    rows: list[list[str]] = []
    for sb in sandboxes:
        rows.append(
            [
                sb.sandbox_id,
                str(sb.status),
                sb.region or "-",
                str(sb.executions),
                _format_age(sb.created_at) if sb.created_at else "-",
            ]
        )

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    lines = ["  ".join(h.ljust(widths[i]) for i, h in enumerate(headers))]
    for row in rows:
        lines.append("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)))
    return "\n".join(line.rstrip() for line in lines)


def format_sandbox_detail(sandbox: SandboxInfo) -> str:
    """Format a single sandbox as aligned ``key: value`` lines."""
    fields = [
        ("ID", sandbox.sandbox_id),
        ("Status", str(sandbox.status)),
        ("Region", sandbox.region),
        ("Created", sandbox.created_at),
        ("Snapshot", sandbox.snapshot_id),
        ("Executions", str(sandbox.executions)),
        ("Dependencies", ", ".join(sandbox.dependencies) if sandbox.dependencies else None),
        ("Stdout", sandbox.stdout_stream_url),
        ("Stderr", sandbox.stderr_stream_url),
    ]
    width = max(len(label) for label, _ in fields) + 1
    return "\n".join(f"{label + ':':<{width}} {value}" for label, value in fields if value)


def format_sandbox_json(sandboxes: list[SandboxInfo], *, single: bool = False) -> str:
    """Format sandboxes as JSON using the wire (camelCase) field names."""
    data = [sb.model_dump(mode="json", by_alias=True, exclude_none=True) for sb in sandboxes]
    if single:
        return json.dumps(data[0], indent=2)
    return json.dumps(data, indent=2)


def _format_age(created_at: str) -> str:
    """Format an ISO-8601 timestamp as an age such as "2h", "5m" or "3d"."""
    try:
        started = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    except ValueError:
        return "-"
    if started.tzinfo is None:
        started = started.replace(tzinfo=UTC)

    total_seconds = int((datetime.now(UTC) - started).total_seconds())
    if total_seconds < 0:
        return "0s"
    if total_seconds < 60:
        return f"{total_seconds}s"
    elif total_seconds < 3600:
        return f"{total_seconds // 60}m"
    elif total_seconds < 86400:
        return f"{total_seconds // 3600}h"
    return f"{total_seconds // 86400}d"
