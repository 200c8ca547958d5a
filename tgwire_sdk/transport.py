"""Default HTTP transport built on :mod:`requests`.

``requests`` is blocking, so every call runs in a worker thread via
:func:`asyncio.to_thread` to keep the event loop free.  Streaming multipart
bodies are async iterators owned by the event loop; the worker thread pulls
them chunk by chunk with :func:`asyncio.run_coroutine_threadsafe` and stops
the upload once the call's abort signal fires.

Any object with the same call signature can replace this transport::

    async def transport(url, *, method, headers, body, signal, timeout, **config):
        ...  # return an object with a .json() method (sync or async)
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Dict, Iterator, Optional, Union

import requests

from tgwire_sdk.abort import AbortSignal

_SENTINEL = object()


async def _next_chunk(iterator: AsyncIterator[bytes]) -> Any:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return _SENTINEL


def _pull_chunks(
    chunks: AsyncIterator[bytes],
    loop: asyncio.AbstractEventLoop,
    signal: AbortSignal,
    timeout: Optional[float],
) -> Iterator[bytes]:
    """Expose an event-loop async iterator as a blocking generator."""
    iterator = chunks.__aiter__()
    while True:
        if signal.aborted:
            raise ConnectionAbortedError("Upload aborted")
        chunk = asyncio.run_coroutine_threadsafe(_next_chunk(iterator), loop).result(timeout)
        # A stream error aborts the signal and then ends the body normally.
        if signal.aborted:
            raise ConnectionAbortedError("Upload aborted")
        if chunk is _SENTINEL:
            return
        yield chunk


class RequestsTransport:
    """POST requests through ``requests`` (or a given :class:`requests.Session`)."""

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self._session = session

    async def __call__(
        self,
        url: str,
        *,
        method: str,
        headers: Dict[str, str],
        body: Union[str, AsyncIterator[bytes]],
        signal: AbortSignal,
        timeout: Optional[float] = None,
        **config: Any,
    ) -> requests.Response:
        if isinstance(body, str):
            data: Any = body.encode("utf-8")
        else:
            data = _pull_chunks(body, asyncio.get_running_loop(), signal, timeout)
        sender = self._session.request if self._session is not None else requests.request
        return await asyncio.to_thread(
            sender, method, url, headers=headers, data=data, timeout=timeout, **config
        )
