"""Payload encoder — turns a method payload into a request body.

Payloads without files are sent as compact JSON.  As soon as an
:class:`~tgwire_sdk.input_file.InputFile` appears anywhere in the payload
(nested in dicts or lists at any depth) the payload is sent as
``multipart/form-data`` instead: every file is swapped for an
``attach://<id>`` placeholder and its bytes are streamed lazily as a separate
part after the regular fields.
"""

from __future__ import annotations

import dataclasses
import json
import secrets
import string
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Union

from pydantic import BaseModel

from tgwire_sdk.exceptions import FilenameInjectionError
from tgwire_sdk.input_file import InputFile

StreamErrorHandler = Callable[[BaseException], None]

_ID_ALPHABET: str = string.ascii_lowercase + string.digits

# Default file extensions by payload key (or InputMedia ``type``).
_EXTENSIONS: Dict[str, str] = {
    "certificate": "pem",
    "photo": "jpg",
    "thumbnail": "jpg",
    "thumb": "jpg",
    "voice": "ogg",
    "audio": "mp3",
    "animation": "mp4",
    "video": "mp4",
    "video_note": "mp4",
    "sticker": "webp",
}


@dataclasses.dataclass(frozen=True, slots=True)
class RequestSpec:
    """Transport-ready request: HTTP method, headers, and body.

    ``body`` is a JSON string for JSON payloads and an async iterator of
    ``bytes`` chunks for multipart payloads.
    """

    headers: Dict[str, str]
    body: Union[str, AsyncIterator[bytes]]
    method: str = "POST"


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractedFile:
    """A file pulled out of the payload, waiting to be streamed."""

    attachment_id: str
    origin_key: str
    file: InputFile


# ── File detection ───────────────────────────────────────────────────────────


def requires_form_data_upload(value: Any) -> bool:
    """Return ``True`` if *value* is, or contains, an :class:`InputFile`.

    Dicts and lists/tuples are searched recursively; everything else
    (including pydantic models) counts as file-free.
    """
    if isinstance(value, InputFile):
        return True
    if isinstance(value, Mapping):
        return any(requires_form_data_upload(item) for item in value.values())
    if isinstance(value, (list, tuple)):
        return any(requires_form_data_upload(item) for item in value)
    return False


# ── JSON ─────────────────────────────────────────────────────────────────────


def _drop_none(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _drop_none(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [_drop_none(item) for item in value]
    return value


def _encode_model(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def stringify(value: Any) -> str:
    """Serialize *value* to compact JSON, omitting ``None``-valued keys."""
    return json.dumps(_drop_none(value), default=_encode_model, separators=(",", ":"))


def create_json_payload(payload: Mapping[str, Any]) -> RequestSpec:
    """Build a JSON request.  Only valid for file-free payloads."""
    return RequestSpec(
        headers={
            "content-type": "application/json",
            "connection": "keep-alive",
        },
        body=stringify(payload),
    )


# ── Multipart ────────────────────────────────────────────────────────────────


def random_id(length: int = 16) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def create_boundary() -> str:
    return "----------" + random_id(32)


def create_form_data_payload(
    payload: Mapping[str, Any],
    on_stream_error: StreamErrorHandler,
) -> RequestSpec:
    """Build a streaming ``multipart/form-data`` request.

    The returned body is consumed by the transport after this function has
    returned, so errors raised while producing file bytes cannot propagate to
    the caller.  They are passed to *on_stream_error* and end the stream.
    """
    boundary = create_boundary()
    files: List[ExtractedFile] = []
    fields = _extract_files(payload, files, None)
    return RequestSpec(
        headers={
            "content-type": f"multipart/form-data; boundary={boundary}",
            "connection": "keep-alive",
        },
        body=_report_errors(_multipart_chunks(fields, files, boundary), on_stream_error),
    )


def _extract_files(value: Any, files: List[ExtractedFile], key: str | None) -> Any:
    """Copy *value*, swapping every InputFile for an ``attach://`` placeholder."""
    if isinstance(value, Mapping):
        copy: Dict[str, Any] = {}
        for item_key, item in value.items():
            if isinstance(item, InputFile):
                copy[item_key] = _attach(item, _origin_key(value, item_key), files)
            else:
                copy[item_key] = _extract_files(item, files, item_key)
        return copy
    if isinstance(value, (list, tuple)):
        return [
            _attach(item, key or "file", files)
            if isinstance(item, InputFile)
            else _extract_files(item, files, key)
            for item in value
        ]
    return value


def _origin_key(container: Mapping[str, Any], key: str) -> str:
    # InputMedia objects name their kind in ``type``; use it to guess extensions.
    media_type = container.get("type")
    if key == "media" and isinstance(media_type, str):
        return media_type
    return key


def _attach(file: InputFile, origin_key: str, files: List[ExtractedFile]) -> str:
    attachment_id = random_id()
    files.append(ExtractedFile(attachment_id=attachment_id, origin_key=origin_key, file=file))
    return f"attach://{attachment_id}"


async def _multipart_chunks(
    fields: Mapping[str, Any],
    files: List[ExtractedFile],
    boundary: str,
) -> AsyncIterator[bytes]:
    yield f"--{boundary}\r\n".encode()
    separator = f"\r\n--{boundary}\r\n".encode()
    first = True
    for key, value in fields.items():
        if value is None:
            continue
        if not first:
            yield separator
        yield _value_part(key, value)
        first = False
    for extracted in files:
        if not first:
            yield separator
        async for chunk in _file_part(extracted):
            yield chunk
        first = False
    yield f"\r\n--{boundary}--\r\n".encode()


def _value_part(key: str, value: Any) -> bytes:
    text = value if isinstance(value, str) else stringify(value)
    return f'content-disposition: form-data; name="{key}"\r\n\r\n{text}'.encode()


def default_filename(origin_key: str) -> str:
    return f"{origin_key}.{_EXTENSIONS.get(origin_key, 'dat')}"


async def _file_part(extracted: ExtractedFile) -> AsyncIterator[bytes]:
    filename = extracted.file.filename or default_filename(extracted.origin_key)
    if "\r" in filename or "\n" in filename:
        raise FilenameInjectionError(
            "File paths cannot contain carriage-return (\\r) or newline (\\n) characters! "
            f"Filename for property '{extracted.origin_key}' was: {filename!r}"
        )
    yield (
        f'content-disposition: form-data; name="{extracted.attachment_id}"; filename={filename}\r\n'
        "content-type: application/octet-stream\r\n\r\n"
    ).encode()
    data = await extracted.file.to_raw()
    if isinstance(data, bytes):
        yield data
        return
    async for chunk in data:
        yield chunk


async def _report_errors(
    chunks: AsyncIterator[bytes],
    on_stream_error: StreamErrorHandler,
) -> AsyncIterator[bytes]:
    async with aclosing(chunks):
        try:
            async for chunk in chunks:
                yield chunk
        except Exception as exc:
            on_stream_error(exc)
