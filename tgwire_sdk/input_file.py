"""InputFile — a single-use handle on bytes to upload to the Bot API.

An :class:`InputFile` wraps one of several data sources:

- ``bytes`` / ``bytearray`` / ``memoryview``
- a local path, given as ``{"path": "..."}`` or any :class:`os.PathLike`
- a binary file object (anything with ``read(size)``)
- a sync or async iterable of ``bytes`` chunks
- a zero-argument callable, sync or async, returning one of the above

The payload encoder reads the data exactly once via :meth:`InputFile.to_raw`.
A second read raises :class:`~tgwire_sdk.exceptions.InputFileConsumedError`
instead of silently re-sending empty or stale data.
"""

from __future__ import annotations

import asyncio
import inspect
import os
from typing import Any, AsyncIterator, Mapping, Optional, Union

from tgwire_sdk.exceptions import InputFileConsumedError

RawData = Union[bytes, AsyncIterator[bytes]]

_CHUNK_SIZE: int = 64 * 1024


class InputFile:
    """Bytes to upload, plus an optional filename.

    Args:
        data: The data source (see module docstring).
        filename: Name sent in the multipart ``filename=`` field.  Guessed
            from the basename when *data* is a path.
    """

    def __init__(self, data: Any, filename: Optional[str] = None) -> None:
        self._data = data
        self._consumed = False
        self.filename = filename if filename is not None else self._guess_filename(data)

    def __repr__(self) -> str:
        return f"InputFile(filename={self.filename!r})"

    @property
    def consumed(self) -> bool:
        return self._consumed

    @staticmethod
    def _guess_filename(data: Any) -> Optional[str]:
        path = _as_path(data)
        if path is not None:
            return os.path.basename(path) or None
        name = getattr(data, "name", None)
        if isinstance(name, str) and name:
            return os.path.basename(name) or None
        return None

    async def to_raw(self) -> RawData:
        """Return the file's bytes, or an async iterator over its chunks.

        Raises:
            InputFileConsumedError: If the data source was already read.
        """
        if self._consumed:
            raise InputFileConsumedError(
                f"Cannot reuse InputFile data source! {self!r} was already consumed."
            )
        self._consumed = True

        data = self._data
        if callable(data) and not hasattr(data, "read"):
            data = data()
            if inspect.isawaitable(data):
                data = await data

        if isinstance(data, (bytes, bytearray, memoryview)):
            return bytes(data)
        path = _as_path(data)
        if path is not None:
            return _read_path(path)
        if hasattr(data, "read"):
            return _read_file_object(data)
        if hasattr(data, "__aiter__"):
            return _forward_async(data)
        if isinstance(data, str):
            raise TypeError(
                "InputFile does not accept plain strings; use {'path': ...} for local files "
                "or pass the string directly in the payload to reference a file_id or URL"
            )
        if hasattr(data, "__iter__"):
            return _forward_sync(iter(data))
        raise TypeError(f"Unsupported InputFile data source: {type(data).__name__}")


def _as_path(data: Any) -> Optional[str]:
    if isinstance(data, Mapping) and isinstance(data.get("path"), (str, os.PathLike)):
        return os.fspath(data["path"])
    if isinstance(data, os.PathLike):
        return os.fspath(data)
    return None


async def _forward_async(chunks: Any) -> AsyncIterator[bytes]:
    async for chunk in chunks:
        yield bytes(chunk)


async def _forward_sync(chunks: Any) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield bytes(chunk)
        await asyncio.sleep(0)


async def _read_file_object(fileobj: Any) -> AsyncIterator[bytes]:
    while True:
        chunk = await asyncio.to_thread(fileobj.read, _CHUNK_SIZE)
        if not chunk:
            return
        yield bytes(chunk)


async def _read_path(path: str) -> AsyncIterator[bytes]:
    fileobj = await asyncio.to_thread(open, path, "rb")
    try:
        async for chunk in _read_file_object(fileobj):
            yield chunk
    finally:
        fileobj.close()
