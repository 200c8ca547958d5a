"""Exception hierarchy and error mapping for the tgwire Bot API client.

Two functions translate failures into typed errors:

- :func:`to_api_error` for responses where the Bot API answered ``ok: false``.
- :func:`to_http_error` for everything that went wrong before a response
  could be read (network failures, undecodable bodies, throwing transformers).
"""

from typing import Any, Dict, Optional

from tgwire_core.logger import TgwireLogger
from tgwire_sdk.models import ResponseParameters

_warn_logger = TgwireLogger.get_logger("warn")

_CODE_HINTS: Dict[int, str] = {
    401: "Error 401 means that your bot token is wrong, talk to https://t.me/BotFather to check it.",
    409: "Error 409 means that you are running your bot several times on long polling. Consider revoking the bot token if you believe that no other instance is running.",
}


class TgwireError(Exception):
    """Base class of every error raised by this library."""


class ApiError(TgwireError):
    """The Bot API understood the request and answered with ``ok: false``.

    Attributes:
        ok: Always ``False``.
        error_code: Numeric error code reported by the server.
        description: Human-readable description reported by the server.
        parameters: Optional hints such as ``retry_after`` or
            ``migrate_to_chat_id`` (empty dict when absent).
        method: The called method that failed.
        payload: The payload that was passed to the method.
    """

    ok: bool = False

    def __init__(
        self,
        message: str,
        error_code: int,
        description: str,
        method: str,
        payload: Dict[str, Any],
        parameters: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(f"{message} ({error_code}: {description})")
        self.error_code = error_code
        self.description = description
        self.parameters = parameters or {}
        self.method = method
        self.payload = payload

    @property
    def response_parameters(self) -> ResponseParameters:
        """The ``parameters`` hints as a :class:`ResponseParameters` model."""
        return ResponseParameters.model_validate(self.parameters)


class HttpError(TgwireError):
    """The HTTP call to the Bot API failed, or a transformer raised.

    Attributes:
        error: The original exception.
    """

    def __init__(self, message: str, error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.error = error


class RequestTimeoutError(HttpError):
    """No response arrived within the configured per-call timeout."""

    def __init__(self, method: str, timeout_seconds: float) -> None:
        super().__init__(f"Request to '{method}' timed out after {timeout_seconds} seconds")
        self.method = method
        self.timeout_seconds = timeout_seconds


class InvalidSignalError(TgwireError, TypeError):
    """A value that is not an abort signal was passed as the call's signal."""


class InputFileConsumedError(TgwireError, RuntimeError):
    """An :class:`~tgwire_sdk.input_file.InputFile` was read a second time."""


class FilenameInjectionError(TgwireError, ValueError):
    """A multipart filename contains a carriage return or newline."""


class WebhookTimeoutError(TgwireError, TimeoutError):
    """Handling a webhook update took longer than the adapter allows."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Request timed out after {timeout_seconds} seconds")
        self.timeout_seconds = timeout_seconds


# ── Mapping helpers ──────────────────────────────────────────────────────────


def to_api_error(err: Dict[str, Any], method: str, payload: Dict[str, Any]) -> ApiError:
    """Wrap an ``ok: false`` response body into an :class:`ApiError`."""
    error_code = err.get("error_code")
    hint = _CODE_HINTS.get(error_code) if isinstance(error_code, int) else None
    if hint is not None:
        _warn_logger.warning(hint, extra={"api_method": method, "error_code": error_code})
    return ApiError(
        f"Call to '{method}' failed!",
        error_code=error_code,
        description=err.get("description", ""),
        method=method,
        payload=payload,
        parameters=err.get("parameters"),
    )


def _status_fragment(err: BaseException) -> Optional[str]:
    """Return ``"<status>: <text>"`` when *err* carries HTTP status details."""
    for source in (err, getattr(err, "response", None)):
        if source is None:
            continue
        for code_attr, text_attr in (("status", "status_text"), ("status_code", "reason")):
            code = getattr(source, code_attr, None)
            text = getattr(source, text_attr, None)
            if code is not None and text is not None:
                return f"{code}: {text}"
    return None


def to_http_error(method: str, sensitive_logs: bool, err: BaseException) -> HttpError:
    """Wrap a transport-level failure into an :class:`HttpError`.

    The original message is only appended when *sensitive_logs* is enabled
    because it may contain the request URL, and with it the bot token.
    """
    msg = f"Network request for '{method}' failed!"
    fragment = _status_fragment(err)
    if fragment is not None:
        msg += f" ({fragment})"
    if sensitive_logs and str(err):
        msg += f" {err}"
    return HttpError(msg, err)
