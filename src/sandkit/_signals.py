"""Signal handling for graceful cancellation of a run.

SIGINT and SIGTERM set the run's cancel event instead of interrupting the
event loop, so the orchestrator can destroy the sandbox before exiting. A
second signal while cancellation is already underway forces an immediate
exit.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)

_DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


@contextlib.contextmanager
def cancel_on_signals(
    cancel: asyncio.Event,
    signals: Sequence[signal.Signals] = _DEFAULT_SIGNALS,
) -> Iterator[asyncio.Event]:
    """Set ``cancel`` when one of ``signals`` is received.

    Must be entered from a running event loop. Handlers are removed on exit.
    On platforms without ``loop.add_signal_handler`` this is a no-op.
    """
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []

    def _handler(signum: signal.Signals) -> None:
        if cancel.is_set():
            # Second signal during cleanup - force exit
            sys.exit(128 + signum)
        logger.info("Received %s, cancelling", signum.name)
        cancel.set()

    for sig in signals:
        try:
            loop.add_signal_handler(sig, _handler, sig)
        except (NotImplementedError, RuntimeError) as e:
            logger.debug("Cannot install handler for %s: %s", sig.name, e)
            continue
        installed.append(sig)

    try:
        yield cancel
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
