"""Framework shims — turn one web-framework request into a RequestHandle.

A shim receives whatever arguments the host framework passes to a request
handler and returns a :class:`RequestHandle` describing how to read the
update and how to answer.  Pass a shim's name or the shim itself to
:func:`~tgwire_bot.webhook.webhook_callback`.
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

SECRET_HEADER: str = "X-Telegram-Bot-Api-Secret-Token"
WRONG_TOKEN_ERROR: str = "secret token is wrong"


@dataclasses.dataclass
class RequestHandle:
    """One inbound webhook request, as seen by the webhook adapter.

    Attributes:
        update: The update dict, or an awaitable resolving to it.
        respond: Sends a JSON string as the response body (webhook reply).
        end: Finishes the request with an empty 200 response; skipped when a
            webhook reply was sent.
        handler_return: Returned from the adapter's handler, for frameworks
            that expect a specific return value.
        header: Value of the secret token header, if present.
        unauthorized: Rejects the request when the secret token is wrong.
    """

    update: Union[Dict[str, Any], Awaitable[Dict[str, Any]]]
    respond: Callable[[str], Any]
    end: Optional[Callable[[], Any]] = None
    handler_return: Any = None
    header: Optional[str] = None
    unauthorized: Optional[Callable[[], Any]] = None


FrameworkAdapter = Callable[..., RequestHandle]


def callback(update: Any, respond: Callable[[str], Any], header: Optional[str] = None) -> RequestHandle:
    """Plain callback style: ``handler(update, respond)``."""
    return RequestHandle(update=update, respond=respond, header=header)


def _find_header(headers: Mapping[str, Any]) -> Optional[str]:
    wanted = SECRET_HEADER.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def aws_lambda(event: Mapping[str, Any], _context: Any, result: Callable[[Any, Dict[str, Any]], Any]) -> RequestHandle:
    """AWS Lambda proxy integration with a ``(error, response)`` result callback."""
    return RequestHandle(
        update=json.loads(event.get("body") or "null"),
        header=_find_header(event.get("headers") or {}),
        end=lambda: result(None, {"statusCode": 200}),
        respond=lambda payload: result(None, {
            "statusCode": 200,
            "headers": {"Content-Type": "application/json"},
            "body": payload,
        }),
        unauthorized=lambda: result(None, {"statusCode": 401, "body": WRONG_TOKEN_ERROR}),
    )


FRAMEWORK_ADAPTERS: Dict[str, FrameworkAdapter] = {
    "callback": callback,
    "aws-lambda": aws_lambda,
}
