"""Tests for the exception hierarchy and the error mapping helpers."""

import logging
import sys
import os

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tgwire_sdk.exceptions import (
    ApiError,
    FilenameInjectionError,
    HttpError,
    InputFileConsumedError,
    InvalidSignalError,
    RequestTimeoutError,
    TgwireError,
    WebhookTimeoutError,
    to_api_error,
    to_http_error,
)


# ── ApiError ─────────────────────────────────────────────────────────────────


class TestToApiError:
    """Validate mapping of ok: false responses."""

    def test_message_and_attributes(self) -> None:
        err = to_api_error({"ok": False, "error_code": 42, "description": "evil"}, "getMe", {})
        assert str(err) == "Call to 'getMe' failed! (42: evil)"
        assert err.ok is False
        assert err.error_code == 42
        assert err.description == "evil"
        assert err.parameters == {}
        assert err.method == "getMe"
        assert err.payload == {}

    def test_parameters(self) -> None:
        err = to_api_error(
            {"ok": False, "error_code": 400, "description": "Bad Request: group chat was upgraded", "parameters": {"migrate_to_chat_id": -1001}},
            "sendMessage",
            {"chat_id": -1},
        )
        assert err.response_parameters.migrate_to_chat_id == -1001
        assert err.payload == {"chat_id": -1}

    @pytest.mark.parametrize("code, fragment", [(401, "bot token is wrong"), (409, "running your bot several times")])
    def test_hint_logged(self, caplog, code: int, fragment: str) -> None:
        with caplog.at_level(logging.WARNING, logger="tgwire.warn"):
            to_api_error({"ok": False, "error_code": code, "description": "x"}, "getUpdates", {})
        assert any(fragment in record.getMessage() for record in caplog.records)

    def test_no_hint_for_other_codes(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="tgwire.warn"):
            to_api_error({"ok": False, "error_code": 400, "description": "x"}, "getMe", {})
        assert caplog.records == []


# ── HttpError ────────────────────────────────────────────────────────────────


class TestToHttpError:
    """Validate mapping of transport failures."""

    def test_plain_error(self) -> None:
        cause = ConnectionError("https://api.telegram.org/bot123:abc/getMe unreachable")
        err = to_http_error("getMe", False, cause)
        assert str(err) == "Network request for 'getMe' failed!"
        assert err.error is cause

    def test_sensitive_logs_appends_message(self) -> None:
        err = to_http_error("getMe", True, ConnectionError("unreachable"))
        assert str(err) == "Network request for 'getMe' failed! unreachable"

    def test_status_from_response(self) -> None:
        response = requests.Response()
        response.status_code = 502
        response.reason = "Bad Gateway"
        err = to_http_error("sendMessage", False, requests.HTTPError(response=response))
        assert str(err) == "Network request for 'sendMessage' failed! (502: Bad Gateway)"

    def test_status_attributes_on_error(self) -> None:
        class FetchError(Exception):
            status = 503
            status_text = "Service Unavailable"

        err = to_http_error("getMe", False, FetchError())
        assert str(err) == "Network request for 'getMe' failed! (503: Service Unavailable)"


# ── Hierarchy ────────────────────────────────────────────────────────────────


class TestHierarchy:
    """Every library error derives from TgwireError."""

    @pytest.mark.parametrize(
        "cls",
        [ApiError, HttpError, RequestTimeoutError, InvalidSignalError, InputFileConsumedError, FilenameInjectionError, WebhookTimeoutError],
    )
    def test_base_class(self, cls: type) -> None:
        assert issubclass(cls, TgwireError)

    def test_builtin_bases(self) -> None:
        assert issubclass(InvalidSignalError, TypeError)
        assert issubclass(FilenameInjectionError, ValueError)
        assert issubclass(InputFileConsumedError, RuntimeError)
        assert issubclass(WebhookTimeoutError, TimeoutError)
        assert issubclass(RequestTimeoutError, HttpError)

    def test_timeout_messages(self) -> None:
        assert str(RequestTimeoutError("getMe", 5)) == "Request to 'getMe' timed out after 5 seconds"
        assert str(WebhookTimeoutError(10)) == "Request timed out after 10 seconds"
