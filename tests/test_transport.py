"""Tests for the requests-backed default transport."""

import sys
import os
from unittest.mock import patch, MagicMock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tgwire_sdk.abort import AbortController
from tgwire_sdk.transport import RequestsTransport


class TestRequestsTransport:
    """Validate how requests.request is invoked."""

    @pytest.mark.asyncio
    @patch("tgwire_sdk.transport.requests.request")
    async def test_json_body(self, mock_request: MagicMock) -> None:
        mock_request.return_value = MagicMock()
        response = await RequestsTransport()(
            "https://api.example.com/bot1:a/getMe",
            method="POST",
            headers={"content-type": "application/json"},
            body='{"a":"ü"}',
            signal=AbortController().signal,
            timeout=5,
            verify=False,
        )
        assert response is mock_request.return_value
        mock_request.assert_called_once_with(
            "POST",
            "https://api.example.com/bot1:a/getMe",
            headers={"content-type": "application/json"},
            data='{"a":"ü"}'.encode("utf-8"),
            timeout=5,
            verify=False,
        )

    @pytest.mark.asyncio
    async def test_session_used(self) -> None:
        session = MagicMock()
        await RequestsTransport(session)("u", method="POST", headers={}, body="{}", signal=AbortController().signal)
        session.request.assert_called_once()

    @pytest.mark.asyncio
    @patch("tgwire_sdk.transport.requests.request")
    async def test_streaming_body(self, mock_request: MagicMock) -> None:
        received = []

        def fake_request(method, url, *, data, **kwargs):
            received.extend(data)
            return MagicMock()

        mock_request.side_effect = fake_request

        async def chunks():
            yield b"--b\r\n"
            yield b"payload"

        await RequestsTransport()("u", method="POST", headers={}, body=chunks(), signal=AbortController().signal, timeout=5)
        assert received == [b"--b\r\n", b"payload"]

    @pytest.mark.asyncio
    @patch("tgwire_sdk.transport.requests.request")
    async def test_streaming_stops_when_aborted(self, mock_request: MagicMock) -> None:
        def fake_request(method, url, *, data, **kwargs):
            list(data)

        mock_request.side_effect = fake_request
        controller = AbortController()
        controller.abort()

        async def chunks():
            yield b"never"

        with pytest.raises(ConnectionAbortedError):
            await RequestsTransport()("u", method="POST", headers={}, body=chunks(), signal=controller.signal, timeout=5)

    @pytest.mark.asyncio
    @patch("tgwire_sdk.transport.requests.request")
    async def test_abort_during_last_pull_drops_upload(self, mock_request: MagicMock) -> None:
        """An abort while the final chunk is pulled must not end the body cleanly."""
        received = []

        def fake_request(method, url, *, data, **kwargs):
            for chunk in data:
                received.append(chunk)
            return MagicMock()

        mock_request.side_effect = fake_request
        controller = AbortController()

        async def chunks():
            yield b"--b\r\n"
            yield b'content-disposition: form-data; name="chat_id"\r\n\r\n1'
            controller.abort(ValueError("bad filename"))

        with pytest.raises(ConnectionAbortedError):
            await RequestsTransport()("u", method="POST", headers={}, body=chunks(), signal=controller.signal, timeout=5)
        assert received == [b"--b\r\n", b'content-disposition: form-data; name="chat_id"\r\n\r\n1']
