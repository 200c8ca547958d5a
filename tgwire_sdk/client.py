"""ApiClient — the call engine behind every Bot API method.

One call travels through the installed transformers into :meth:`ApiClient._call`,
which either answers it inline through the webhook reply envelope or performs
the HTTP request.  The HTTP request races three outcomes:

1. the transport returns a response body (or fails),
2. the per-call timeout elapses,
3. streaming a multipart file body fails.

Whichever settles first decides the result; the others still abort the
request but can no longer change what the caller sees.

:func:`create_raw_api` exposes the engine through :class:`RawApi`, a
read-only object that turns attribute access into API calls::

    api = create_raw_api(token)
    me = await api.raw.getMe()
    await api.raw.sendMessage({"chat_id": 42, "text": "hi"})
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
from functools import partial
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from tgwire_core.logger import TgwireLogger
from tgwire_sdk.abort import AbortController, AbortSignal, is_abort_signal, link_signal
from tgwire_sdk.exceptions import (
    InvalidSignalError,
    RequestTimeoutError,
    TgwireError,
    to_api_error,
    to_http_error,
)
from tgwire_sdk.options import ApiClientOptions
from tgwire_sdk.payload import (
    RequestSpec,
    create_form_data_payload,
    create_json_payload,
    requires_form_data_upload,
    stringify,
)
from tgwire_sdk.transformers import Transformer, TransformerChain

logger = TgwireLogger.get_logger("core")

_PREVIEW_LENGTH: int = 16


@dataclasses.dataclass
class WebhookReplyEnvelope:
    """Sends one API call as the JSON body of the webhook response.

    ``send`` receives the serialized payload (including its ``method``) and
    may return an awaitable.
    """

    send: Optional[Callable[[str], Any]] = None


def _preview(value: Any) -> str:
    try:
        text = stringify(value)
    except (TypeError, ValueError):
        text = repr(value)
    if len(text) <= _PREVIEW_LENGTH:
        return text
    return text[:_PREVIEW_LENGTH] + "…"


def _check_signal(method: str, payload: Any, signal: Any) -> None:
    if is_abort_signal(signal):
        return
    raise InvalidSignalError(
        f"Incorrect abort signal instance found! You passed two payloads to '{method}' "
        f"(payload: {_preview(payload)}, signal: {_preview(signal)}). "
        "Did you mean to merge both objects into one payload? "
        "The second argument of an API call must be an AbortSignal."
    )


def _consume_outcome(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


def _abort_error(reason: Any) -> BaseException:
    if isinstance(reason, BaseException):
        return reason
    return ConnectionAbortedError("The request was aborted")


class ApiClient:
    """Performs Bot API calls for one bot token.

    Args:
        token: The bot token.
        options: :class:`ApiClientOptions` or a mapping of its fields.
        webhook_reply_envelope: Lets at most one call of this instance be
            answered inline in a webhook response.
    """

    def __init__(
        self,
        token: str,
        options: Union[ApiClientOptions, Mapping[str, Any], None] = None,
        webhook_reply_envelope: Optional[WebhookReplyEnvelope] = None,
    ) -> None:
        if options is None:
            options = ApiClientOptions()
        elif not isinstance(options, ApiClientOptions):
            options = ApiClientOptions.model_validate(options)
        self.options: ApiClientOptions = options
        self._token = token
        self._envelope = webhook_reply_envelope or WebhookReplyEnvelope()
        self._has_used_webhook_reply = False
        self._chain = TransformerChain(self._call)

    # ------------------------------------------------------------------
    #  Transformers
    # ------------------------------------------------------------------

    @property
    def installed_transformers(self) -> Tuple[Transformer, ...]:
        return self._chain.installed

    def use(self, *transformers: Transformer) -> "ApiClient":
        self._chain.use(*transformers)
        return self

    # ------------------------------------------------------------------
    #  Calls
    # ------------------------------------------------------------------

    async def call_api(
        self,
        method: str,
        payload: Optional[Dict[str, Any]] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Any:
        """Call *method* and return its ``result``.

        Raises:
            ApiError: The Bot API answered ``ok: false``.
            HttpError: The request failed or a transformer raised.
            RequestTimeoutError: No response within ``timeout_seconds``.
        """
        payload = payload if payload is not None else {}
        try:
            data = await self._chain(method, payload, signal)
        except TgwireError:
            raise
        except Exception as exc:
            raise to_http_error(method, self.options.sensitive_logs, exc) from exc
        if not isinstance(data, dict):
            error = TypeError(f"Expected a response dict, got {type(data).__name__}")
            raise to_http_error(method, self.options.sensitive_logs, error) from error
        if data.get("ok"):
            return data.get("result")
        raise to_api_error(data, method, payload)

    def _claim_webhook_reply(self, method: str, form_data_required: bool) -> bool:
        # Check and set happen without an await in between.
        if (
            self._envelope.send is None
            or self._has_used_webhook_reply
            or form_data_required
            or not self.options.can_use_webhook_reply(method)
        ):
            return False
        self._has_used_webhook_reply = True
        return True

    async def _call(
        self,
        method: str,
        payload: Optional[Dict[str, Any]],
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        payload = payload if payload is not None else {}
        if signal is not None:
            _check_signal(method, payload, signal)
        logger.debug("Calling", extra={"api_method": method})

        form_data_required = requires_form_data_upload(payload)
        if self._claim_webhook_reply(method, form_data_required):
            body = create_json_payload({**payload, "method": method}).body
            sent = self._envelope.send(body)
            if inspect.isawaitable(sent):
                await sent
            logger.debug("Answered via webhook reply", extra={"api_method": method})
            return {"ok": True, "result": True}

        return await self._request(method, payload, form_data_required, signal)

    async def _request(
        self,
        method: str,
        payload: Dict[str, Any],
        form_data_required: bool,
        signal: Optional[AbortSignal],
    ) -> Dict[str, Any]:
        options = self.options
        url = options.build_url(options.api_root, self._token, method, options.environment)
        loop = asyncio.get_running_loop()
        controller = AbortController()
        timed_out: asyncio.Future = loop.create_future()
        stream_failed: asyncio.Future = loop.create_future()

        def on_stream_error(err: BaseException) -> None:
            if not stream_failed.done():
                stream_failed.set_exception(err)
            controller.abort(err)

        def on_timeout() -> None:
            error = RequestTimeoutError(method, options.timeout_seconds)
            if not timed_out.done():
                timed_out.set_exception(error)
            controller.abort(error)

        spec = (
            create_form_data_payload(payload, on_stream_error)
            if form_data_required
            else create_json_payload(payload)
        )
        fetch = asyncio.ensure_future(self._fetch(method, url, spec, controller.signal))
        fetch.add_done_callback(_consume_outcome)
        controller.signal.add_listener(lambda _reason: fetch.cancel())
        unlink = link_signal(controller, signal)
        handle = loop.call_later(options.timeout_seconds, on_timeout)
        try:
            await asyncio.wait((fetch, timed_out, stream_failed), return_when=asyncio.FIRST_COMPLETED)
            for outcome in (stream_failed, timed_out):
                if outcome.done():
                    outcome.result()
            if fetch.cancelled():
                raise to_http_error(method, options.sensitive_logs, _abort_error(controller.signal.reason))
            return fetch.result()
        finally:
            handle.cancel()
            unlink()
            if not fetch.done():
                controller.abort(None)
            for outcome in (timed_out, stream_failed):
                if outcome.done():
                    _consume_outcome(outcome)
                else:
                    outcome.cancel()

    async def _fetch(self, method: str, url: Any, spec: RequestSpec, signal: AbortSignal) -> Dict[str, Any]:
        options = self.options
        config = {"timeout": options.timeout_seconds, **options.base_request_config}
        try:
            response = await options.transport(
                url,
                method=spec.method,
                headers=spec.headers,
                body=spec.body,
                signal=signal,
                **config,
            )
            data = response.json()
            if inspect.isawaitable(data):
                data = await data
            if not isinstance(data, dict) or "ok" not in data:
                raise ValueError("Response body is not a Bot API response object")
        except Exception as exc:
            raise to_http_error(method, options.sensitive_logs, exc) from exc
        return data


class RawApi:
    """Read-only dispatch surface: ``raw.<method>(payload, signal)``.

    Every public attribute name resolves to a call of that Bot API method.
    The object cannot be modified and lists no attributes.
    """

    __slots__ = ("_client",)

    def __init__(self, client: ApiClient) -> None:
        object.__setattr__(self, "_client", client)

    def __getattr__(self, method: str) -> Callable[..., Any]:
        if method.startswith("_"):
            raise AttributeError(method)
        return partial(self._client.call_api, method)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("RawApi is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("RawApi is read-only")

    def __dir__(self) -> list:
        return []

    def __repr__(self) -> str:
        return "RawApi()"


class TransformableApi:
    """``raw`` calls plus transformer installation for one :class:`ApiClient`."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self.raw = RawApi(client)

    @property
    def installed_transformers(self) -> Tuple[Transformer, ...]:
        return self._client.installed_transformers

    def use(self, *transformers: Transformer) -> "TransformableApi":
        self._client.use(*transformers)
        return self


def create_raw_api(
    token: str,
    options: Union[ApiClientOptions, Mapping[str, Any], None] = None,
    webhook_reply_envelope: Optional[WebhookReplyEnvelope] = None,
) -> TransformableApi:
    """Create a new :class:`ApiClient` and wrap it in a :class:`TransformableApi`."""
    return TransformableApi(ApiClient(token, options, webhook_reply_envelope))
