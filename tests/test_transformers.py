"""Tests for transformer composition order and behaviour."""

import sys
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tgwire_sdk.client import ApiClient
from tgwire_sdk.exceptions import ApiError, HttpError
from tgwire_sdk.options import ApiClientOptions
from tgwire_sdk.transformers import TransformerChain


def _recording(name: str, log: list):
    async def transformer(prev, method, payload, signal):
        log.append(f"{name}-pre")
        result = await prev(method, payload, signal)
        log.append(f"{name}-post")
        return result

    return transformer


class TestTransformerChain:
    """Validate ordering and recomposition of the chain."""

    @pytest.mark.asyncio
    async def test_first_installed_is_outermost(self) -> None:
        log = []

        async def terminal(method, payload, signal=None):
            log.append("base")
            return {"ok": True, "result": method}

        chain = TransformerChain(terminal)
        chain.use(_recording("A", log))
        chain.use(_recording("B", log))

        assert await chain("getMe", {}) == {"ok": True, "result": "getMe"}
        assert log == ["A-pre", "B-pre", "base", "B-post", "A-post"]

    @pytest.mark.asyncio
    async def test_use_many_at_once(self) -> None:
        log = []
        terminal = AsyncMock(return_value={"ok": True, "result": True})
        a, b = _recording("A", log), _recording("B", log)

        chain = TransformerChain(terminal)
        chain.use(a, b)
        await chain("getMe", {})

        assert chain.installed == (a, b)
        assert log == ["A-pre", "B-pre", "B-post", "A-post"]

    @pytest.mark.asyncio
    async def test_empty_chain_calls_terminal(self) -> None:
        terminal = AsyncMock(return_value={"ok": True, "result": 1})
        chain = TransformerChain(terminal)
        assert await chain("getMe", {"a": 1}) == {"ok": True, "result": 1}
        terminal.assert_awaited_once_with("getMe", {"a": 1}, None)
        assert chain.installed == ()

    def test_non_callable_rejected(self) -> None:
        chain = TransformerChain(AsyncMock())
        with pytest.raises(TypeError):
            chain.use("not a function")
        assert chain.installed == ()


class TestTransformersOnClient:
    """Transformers can rewrite, short-circuit, and fail calls."""

    def _client(self) -> tuple:
        response = MagicMock()
        response.json.return_value = {"ok": True, "result": True}
        transport = AsyncMock(return_value=response)
        return ApiClient("123:abc", ApiClientOptions(transport=transport)), transport

    @pytest.mark.asyncio
    async def test_rewrite_payload(self) -> None:
        client, transport = self._client()

        async def add_parse_mode(prev, method, payload, signal):
            return await prev(method, {**payload, "parse_mode": "HTML"}, signal)

        client.use(add_parse_mode)
        await client.call_api("sendMessage", {"chat_id": 1, "text": "<b>x</b>"})
        assert '"parse_mode":"HTML"' in transport.call_args.kwargs["body"]

    @pytest.mark.asyncio
    async def test_short_circuit(self) -> None:
        client, transport = self._client()

        async def cached(prev, method, payload, signal):
            return {"ok": True, "result": {"id": 1, "is_bot": True, "first_name": "Cached"}}

        client.use(cached)
        assert (await client.call_api("getMe"))["first_name"] == "Cached"
        transport.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_synthesized_failure_becomes_api_error(self) -> None:
        client, _ = self._client()

        async def deny(prev, method, payload, signal):
            return {"ok": False, "error_code": 403, "description": "Forbidden: blocked"}

        client.use(deny)
        with pytest.raises(ApiError) as exc_info:
            await client.call_api("sendMessage", {"chat_id": 1, "text": "x"})
        assert exc_info.value.error_code == 403

    @pytest.mark.asyncio
    async def test_throwing_transformer_wrapped(self) -> None:
        client, _ = self._client()
        boom = RuntimeError("boom")

        async def broken(prev, method, payload, signal):
            raise boom

        client.use(broken)
        with pytest.raises(HttpError) as exc_info:
            await client.call_api("getMe")
        assert exc_info.value.error is boom
        assert str(exc_info.value) == "Network request for 'getMe' failed!"

    @pytest.mark.asyncio
    async def test_retry_calls_prev_twice(self) -> None:
        client, transport = self._client()

        async def twice(prev, method, payload, signal):
            await prev(method, payload, signal)
            return await prev(method, payload, signal)

        client.use(twice)
        await client.call_api("getMe")
        assert transport.await_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("returned", [None, "ok", [1, 2]])
    async def test_non_dict_result_wrapped(self, returned) -> None:
        client, _ = self._client()

        async def bad(prev, method, payload, signal):
            return returned

        client.use(bad)
        with pytest.raises(HttpError) as exc_info:
            await client.call_api("getMe")
        assert isinstance(exc_info.value.error, TypeError)
        assert str(exc_info.value) == "Network request for 'getMe' failed!"
