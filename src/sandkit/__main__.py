# SPDX-FileCopyrightText: 2025 CoreWeave, Inc.
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: sandkit-client

"""Entry point for `python -m sandkit` and `sandkit` console script."""

from __future__ import annotations

import sys


def main() -> None:
    """Run the sandkit CLI."""
    try:
        from sandkit.cli import cli
    except ImportError as e:
        if getattr(e, "name", None) in ("sandkit.cli", "click"):
            print(
                "sandkit CLI requires the 'cli' extra.\n"
                "Install it with:  pip install sandkit-client[cli]",
                file=sys.stderr,
            )
            sys.exit(1)
        raise
    cli()


if __name__ == "__main__":
    main()
