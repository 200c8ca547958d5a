"""Webhook callback — drives one inbound webhook request through a dispatcher.

:func:`webhook_callback` returns an async request handler for a web
framework.  For every request it:

1. checks the secret token header, if one is configured,
2. initializes the dispatcher once (concurrent first requests share the same
   initialization),
3. hands the update to ``dispatcher.handle_update`` together with a
   :class:`~tgwire_sdk.client.WebhookReplyEnvelope` so one API call can be
   answered inline in the HTTP response,
4. enforces its own timeout with the ``"throw"``, ``"return"`` or callback
   policy,
5. ends the request with an empty response unless a webhook reply already
   answered it.

Updates that cannot be read or whose dispatch fails are logged and dropped so
they never break the host framework's request cycle.
"""

from __future__ import annotations

import asyncio
import inspect
import math
from typing import Any, Callable, Dict, Optional, Protocol, Union, runtime_checkable

from tgwire_core.logger import TgwireLogger
from tgwire_sdk.client import WebhookReplyEnvelope
from tgwire_sdk.exceptions import WebhookTimeoutError
from tgwire_bot.frameworks import FRAMEWORK_ADAPTERS, FrameworkAdapter, RequestHandle

logger = TgwireLogger.get_logger("error")

TimeoutPolicy = Union[str, Callable[..., Any]]


@runtime_checkable
class UpdateDispatcher(Protocol):
    """What the webhook adapter needs from a bot."""

    async def init(self) -> None: ...  # noqa: E704

    async def handle_update(self, update: Dict[str, Any], webhook_reply_envelope: WebhookReplyEnvelope) -> None: ...  # noqa: E704


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class WebhookHandler:
    """Async request handler returned by :func:`webhook_callback`."""

    def __init__(
        self,
        dispatcher: UpdateDispatcher,
        adapter: FrameworkAdapter,
        on_timeout: TimeoutPolicy,
        timeout_seconds: float,
        secret_token: Optional[str],
    ) -> None:
        self._dispatcher = dispatcher
        self._adapter = adapter
        self._on_timeout = on_timeout
        self._timeout_seconds = timeout_seconds
        self._secret_token = secret_token
        self._init_task: Optional[asyncio.Future] = None

    async def _ensure_initialized(self) -> None:
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._dispatcher.init())
        task = self._init_task
        try:
            await asyncio.shield(task)
        except Exception:
            # Let the next request try again.
            if self._init_task is task:
                self._init_task = None
            raise

    async def __call__(self, *args: Any) -> Any:
        try:
            request: RequestHandle = self._adapter(*args)
        except Exception:
            logger.error("Could not read webhook request", exc_info=True)
            return None

        if self._secret_token is not None and request.header != self._secret_token:
            logger.warning("Rejected webhook request with wrong secret token")
            if request.unauthorized is not None:
                await _resolve(request.unauthorized())
            return request.handler_return

        await self._ensure_initialized()

        used_webhook_reply = False

        async def send(json_body: str) -> None:
            nonlocal used_webhook_reply
            used_webhook_reply = True
            await _resolve(request.respond(json_body))

        envelope = WebhookReplyEnvelope(send=send)
        try:
            update = await _resolve(request.update)
            await self._run_with_timeout(self._dispatcher.handle_update(update, envelope), args)
        except WebhookTimeoutError:
            raise
        except Exception:
            logger.error("Dropped webhook update", exc_info=True)
            return request.handler_return

        if request.end is not None and not used_webhook_reply:
            await _resolve(request.end())
        return request.handler_return

    async def _run_with_timeout(self, dispatch: Any, args: tuple) -> None:
        task = asyncio.ensure_future(dispatch)
        if math.isinf(self._timeout_seconds):
            await task
            return
        try:
            done, _ = await asyncio.wait((task,), timeout=self._timeout_seconds)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if done:
            task.result()
            return

        loop = asyncio.get_running_loop()
        timed_out_at = loop.time()

        def report_late(finished: asyncio.Future) -> None:
            if not finished.cancelled():
                finished.exception()
            late_ms = round((loop.time() - timed_out_at) * 1000)
            logger.debug(f"Request completed {late_ms} ms after timeout!", extra={"late_ms": late_ms})

        task.add_done_callback(report_late)
        if self._on_timeout == "throw":
            raise WebhookTimeoutError(self._timeout_seconds)
        if callable(self._on_timeout):
            await _resolve(self._on_timeout(*args))


def webhook_callback(
    dispatcher: UpdateDispatcher,
    framework: Union[str, FrameworkAdapter] = "callback",
    on_timeout: TimeoutPolicy = "throw",
    timeout_seconds: float = 10.0,
    secret_token: Optional[str] = None,
) -> WebhookHandler:
    """Create a request handler that feeds webhook updates to *dispatcher*.

    Args:
        dispatcher: Object with ``init()`` and ``handle_update(update, envelope)``.
        framework: Name of a shim in ``FRAMEWORK_ADAPTERS`` or a shim callable.
        on_timeout: ``"throw"`` raises :class:`WebhookTimeoutError`,
            ``"return"`` returns normally, a callable is invoked with the
            framework arguments before returning normally.
        timeout_seconds: How long one update may take; ``math.inf`` disables it.
        secret_token: Expected value of the secret token header.

    Raises:
        ValueError: On an unknown framework name or timeout policy.
    """
    if callable(framework):
        adapter = framework
    else:
        try:
            adapter = FRAMEWORK_ADAPTERS[framework]
        except KeyError:
            raise ValueError(f"Unknown framework '{framework}'; expected one of {sorted(FRAMEWORK_ADAPTERS)}") from None
    if not callable(on_timeout) and on_timeout not in ("throw", "return"):
        raise ValueError(f"on_timeout must be 'throw', 'return' or a callable, got {on_timeout!r}")
    return WebhookHandler(dispatcher, adapter, on_timeout, timeout_seconds, secret_token)
