"""Stream relays between local byte sources/sinks and remote stream URLs.

Relays never raise: a broken stream is logged at debug level and the relay
returns, because run and exec completion is decided by status polling, not
by stream health. Cancellation is cooperative through a shared
``asyncio.Event``: uploads end their body when it fires and downloads stop
waiting for the next chunk.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import threading
import uuid
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Literal

import httpx

from sandkit._defaults import (
    DEFAULT_STREAM_ATTEMPTS,
    DEFAULT_STREAM_CHUNK_SIZE,
    DEFAULT_STREAM_RETRY_SECONDS,
)
from sandkit.exceptions import StreamError

if TYPE_CHECKING:
    from sandkit._transport import Transport

logger = logging.getLogger(__name__)

Sink = Callable[[bytes], None]
ByteSource = AsyncIterable[bytes] | BinaryIO


def _default_stdout_callback(data: bytes) -> None:
    """Default callback that writes to stdout."""
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def _default_stderr_callback(data: bytes) -> None:
    """Default callback that writes to stderr."""
    sys.stderr.buffer.write(data)
    sys.stderr.buffer.flush()


def as_sink(target: Sink | BinaryIO | None, default: Sink) -> Sink:
    """Normalize a callback or binary writable into a Sink."""
    if target is None:
        return default
    write = getattr(target, "write", None)
    if write is None:
        return target  # type: ignore[return-value]

    def _write(data: bytes) -> None:
        write(data)
        flush = getattr(target, "flush", None)
        if flush is not None:
            flush()

    return _write


@dataclass(frozen=True)
class InputStream:
    """A client-created stream the sandbox reads as stdin."""

    id: str
    url: str


async def create_input_stream(
    transport: Transport,
    stream_base_url: str,
    *,
    name: str | None = None,
) -> InputStream:
    """Create a named stream and return its id and write URL.

    Raises:
        StreamError: If the stream service rejects the request
    """
    base = stream_base_url.rstrip("/")
    name = name or f"stdin-{uuid.uuid4().hex[:12]}"
    resp = await transport.post(base, {"name": name})
    data = resp.data if isinstance(resp.data, dict) else {}
    stream_id = data.get("id")
    if not resp.success or not stream_id:
        raise StreamError(f"Failed to create input stream: {resp.message or 'no stream id returned'}")
    return InputStream(id=str(stream_id), url=f"{base}/{stream_id}")


async def _iter_file(source: BinaryIO, chunk_size: int) -> AsyncIterator[bytes]:
    """Read a blocking binary file from a daemon thread.

    A daemon thread is used rather than the loop's executor so a read that
    never returns (an idle terminal) cannot block interpreter shutdown.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[bytes | Exception | None] = asyncio.Queue()

    def _post(item: bytes | Exception | None) -> None:
        # The loop may already be closed if the run finished first
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(queue.put_nowait, item)

    def _reader() -> None:
        read = getattr(source, "read1", None) or source.read
        try:
            while True:
                chunk = read(chunk_size)
                if not chunk:
                    break
                _post(chunk)
        except Exception as e:
            _post(e)
        finally:
            _post(None)

    threading.Thread(target=_reader, name="sandkit-stdin-reader", daemon=True).start()

    while True:
        item = await queue.get()
        if item is None:
            return
        if isinstance(item, Exception):
            raise item
        yield item


def _iter_source(source: ByteSource, chunk_size: int) -> AsyncIterator[bytes]:
    if hasattr(source, "__aiter__"):
        return aiter(source)  # type: ignore[arg-type]
    return _iter_file(source, chunk_size)  # type: ignore[arg-type]


class _UploadBody:
    """Incrementally fed request body for a stream upload.

    The body ends on the first of three terminal events: the source ends,
    the source errors, or the cancel signal fires. ``close()`` is latched so
    only the first event takes effect.
    """

    def __init__(self, source: ByteSource, cancel: asyncio.Event, chunk_size: int) -> None:
        self._source = source
        self._cancel = cancel
        self._chunk_size = chunk_size
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._closed = False
        self.reason: Literal["end", "error", "cancelled"] | None = None
        self.error: Exception | None = None
        self.bytes_sent = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def close(
        self,
        reason: Literal["end", "error", "cancelled"],
        error: Exception | None = None,
    ) -> bool:
        """End the body. Returns False if it was already ended."""
        if self._closed:
            return False
        self._closed = True
        self.reason = reason
        self.error = error
        self._queue.put_nowait(None)
        return True

    async def pump(self) -> None:
        """Copy the local source into the body until it ends or fails."""
        try:
            async for chunk in _iter_source(self._source, self._chunk_size):
                if self._closed:
                    return
                if chunk:
                    self._queue.put_nowait(bytes(chunk))
        except Exception as e:
            self.close("error", e)
            return
        self.close("end")

    async def watch_cancel(self) -> None:
        await self._cancel.wait()
        self.close("cancelled")

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._queue.get()
            if chunk is None or self.reason == "cancelled":
                return
            self.bytes_sent += len(chunk)
            yield chunk


async def pipe_to_stream(
    transport: Transport,
    stream_url: str,
    source: ByteSource,
    cancel: asyncio.Event,
    *,
    chunk_size: int = DEFAULT_STREAM_CHUNK_SIZE,
    log: logging.Logger | None = None,
) -> int:
    """Upload a local byte source to a remote stream as one long-lived PUT.

    Returns:
        The number of bytes handed to the request body.
    """
    log = log or logger
    body = _UploadBody(source, cancel, chunk_size)
    helpers = [
        asyncio.create_task(body.pump()),
        asyncio.create_task(body.watch_cancel()),
    ]
    try:
        async with transport.stream("PUT", stream_url, content=body) as response:
            if response.is_success:
                log.debug("stdin upload to %s finished (%s)", stream_url, body.reason)
            else:
                log.debug("stdin upload to %s responded %d", stream_url, response.status_code)
    except httpx.HTTPError as e:
        log.debug("stdin upload to %s failed: %s", stream_url, e)
    finally:
        # Unblocks the body if the request ended before the source did
        body.close("cancelled")
        for task in helpers:
            task.cancel()
        await asyncio.gather(*helpers, return_exceptions=True)

    if body.error is not None:
        log.debug("stdin source failed: %s", body.error)
    return body.bytes_sent


async def _wait_cancelled(cancel: asyncio.Event, timeout: float) -> bool:
    """Sleep for ``timeout`` seconds, returning early (True) if cancelled."""
    if cancel.is_set():
        return True
    try:
        await asyncio.wait_for(cancel.wait(), timeout)
    except TimeoutError:
        return False
    return True


async def relay_from_stream(
    transport: Transport,
    stream_url: str,
    sink: Sink,
    cancel: asyncio.Event,
    *,
    attempts: int = DEFAULT_STREAM_ATTEMPTS,
    retry_delay: float = DEFAULT_STREAM_RETRY_SECONDS,
    log: logging.Logger | None = None,
) -> int:
    """Copy a remote stream to a local sink until it ends or is cancelled.

    A stream the command has not written to yet may answer with an empty
    body, so a body that ends (or breaks) before any data arrived is fetched
    again, up to ``attempts`` requests ``retry_delay`` seconds apart. A
    non-OK response ends the relay at once. The relay returns as soon as
    ``cancel`` is set, even while waiting for the next chunk.

    Returns:
        The number of bytes delivered to the sink.
    """
    log = log or logger
    delivered = 0
    if cancel.is_set():
        return delivered

    async def _copy() -> None:
        nonlocal delivered
        for attempt in range(1, attempts + 1):
            if attempt > 1:
                log.debug("stream %s retry attempt %d", stream_url, attempt)
                if await _wait_cancelled(cancel, retry_delay):
                    return
            try:
                async with transport.stream("GET", stream_url) as response:
                    if not response.is_success:
                        log.debug("stream %s responded %d, not relaying", stream_url, response.status_code)
                        return
                    async for chunk in response.aiter_bytes():
                        if cancel.is_set():
                            return
                        if chunk:
                            sink(chunk)
                            delivered += len(chunk)
            except httpx.HTTPError as e:
                log.debug("relay from %s failed: %s", stream_url, e)
            if delivered:
                return
            log.debug("stream %s ended before any data", stream_url)

    copier = asyncio.create_task(_copy())
    watcher = asyncio.create_task(cancel.wait())
    try:
        await asyncio.wait({copier, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        copier.cancel()
        watcher.cancel()
        await asyncio.gather(copier, watcher, return_exceptions=True)

    if copier.cancelled():
        log.debug("relay from %s cancelled", stream_url)
    else:
        try:
            copier.result()
        except OSError as e:
            # Local sink closed (e.g. piped to head)
            log.debug("relay sink for %s failed: %s", stream_url, e)

    log.debug("relay from %s delivered %d bytes", stream_url, delivered)
    return delivered
