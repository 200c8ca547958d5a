"""Bot API client SDK — call engine, payload encoder, transformers, and errors.

The :class:`Api` class wraps common endpoints with typed async methods;
:func:`create_raw_api` exposes every endpoint by name through a read-only
``raw`` object.  Both share the same engine: JSON or multipart encoding,
per-call timeouts, abort signals, transformers, and the optional webhook
reply.

Usage::

    from tgwire_sdk import Api, InputFile, ApiError

    api = Api(token)
    await api.send_document(chat_id, InputFile({"path": "report.pdf"}))
"""

from tgwire_sdk.abort import AbortController, AbortSignal
from tgwire_sdk.api import Api
from tgwire_sdk.client import (
    ApiClient,
    RawApi,
    TransformableApi,
    WebhookReplyEnvelope,
    create_raw_api,
)
from tgwire_sdk.exceptions import (
    ApiError,
    FilenameInjectionError,
    HttpError,
    InputFileConsumedError,
    InvalidSignalError,
    RequestTimeoutError,
    TgwireError,
    WebhookTimeoutError,
)
from tgwire_sdk.input_file import InputFile
from tgwire_sdk.options import ApiClientOptions

__all__ = [
    "AbortController",
    "AbortSignal",
    "Api",
    "ApiClient",
    "ApiClientOptions",
    "RawApi",
    "TransformableApi",
    "WebhookReplyEnvelope",
    "create_raw_api",
    "InputFile",
    "TgwireError",
    "ApiError",
    "HttpError",
    "RequestTimeoutError",
    "InvalidSignalError",
    "InputFileConsumedError",
    "FilenameInjectionError",
    "WebhookTimeoutError",
]
