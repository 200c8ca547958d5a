"""ApiClientOptions — immutable client configuration, validated by pydantic."""

from __future__ import annotations

from typing import Any, Callable, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tgwire_core.config import DEFAULT_API_ROOT, DEFAULT_TIMEOUT_SECONDS, load_settings
from tgwire_sdk.transport import RequestsTransport

Environment = Literal["prod", "test"]


def default_build_url(root: str, token: str, method: str, environment: str) -> str:
    """``<root>/bot<token>/[test/]<method>``."""
    prefix = "test/" if environment == "test" else ""
    return f"{root}/bot{token}/{prefix}{method}"


def default_build_file_url(root: str, token: str, path: str) -> str:
    """``<root>/file/bot<token>/<path>``."""
    return f"{root}/file/bot{token}/{path}"


def _never(method: str) -> bool:
    return False


class ApiClientOptions(BaseModel):
    """Options resolved once when an API client is constructed.

    Attributes:
        api_root: Root URL of the Bot API server, without trailing slash.
        environment: ``"test"`` targets the Bot API test environment.
        build_url: ``(root, token, method, environment) -> url``.
        build_file_url: ``(root, token, file_path) -> url`` for downloads.
        timeout_seconds: Per-call timeout.
        base_request_config: Extra keyword arguments for the transport
            (e.g. ``proxies`` or ``verify`` for ``requests``).
        can_use_webhook_reply: Decides per method whether the call may be
            answered inline in the webhook response.  Only consulted for
            JSON payloads, and never again once it returned ``True``.
        sensitive_logs: Include the underlying error message (which may
            contain the bot token) in network error messages.
        transport: Async callable that performs the HTTP request.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    api_root: str = DEFAULT_API_ROOT
    environment: Environment = "prod"
    build_url: Callable[[str, str, str, str], Any] = default_build_url
    build_file_url: Callable[[str, str, str], str] = default_build_file_url
    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)
    base_request_config: Dict[str, Any] = Field(default_factory=dict)
    can_use_webhook_reply: Callable[[str], bool] = _never
    sensitive_logs: bool = False
    transport: Any = Field(default_factory=RequestsTransport)

    @field_validator("api_root")
    @classmethod
    def _reject_trailing_slash(cls, value: str) -> str:
        if value.endswith("/"):
            raise ValueError(
                f"Remove the trailing '/' from the 'api_root' option "
                f"(use '{value[:-1]}' instead of '{value}')"
            )
        return value

    @classmethod
    def from_env(cls, dotenv_path: str | None = None, **overrides: Any) -> "ApiClientOptions":
        """Build options from ``TGWIRE_*`` environment variables.

        Keyword arguments override the values read from the environment.
        """
        settings = load_settings(dotenv_path)
        values: Dict[str, Any] = {
            "api_root": settings.api_root,
            "environment": settings.environment,
            "timeout_seconds": settings.timeout_seconds,
            "sensitive_logs": settings.sensitive_logs,
        }
        values.update(overrides)
        return cls(**values)
