"""Transformer chain — interceptors around the raw API call function.

A transformer is an async function::

    async def transformer(prev, method, payload, signal) -> dict: ...

It may rewrite *method*, *payload* or *signal* before calling ``prev``, call
``prev`` several times (e.g. to retry), or not at all and return a
synthesized response dict.  The transformer installed first is the
outermost one: it runs before, and finishes after, every transformer
installed later.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from tgwire_sdk.abort import AbortSignal

ApiCallFn = Callable[[str, Dict[str, Any], Optional[AbortSignal]], Awaitable[Dict[str, Any]]]
Transformer = Callable[[ApiCallFn, str, Dict[str, Any], Optional[AbortSignal]], Awaitable[Dict[str, Any]]]


def _wrap(prev: ApiCallFn, transformer: Transformer) -> ApiCallFn:
    async def call(method: str, payload: Dict[str, Any], signal: Optional[AbortSignal] = None) -> Dict[str, Any]:
        return await transformer(prev, method, payload, signal)

    return call


class TransformerChain:
    """Ordered transformers composed around a fixed terminal call function."""

    def __init__(self, terminal: ApiCallFn) -> None:
        self._terminal = terminal
        self._transformers: List[Transformer] = []
        self._call: ApiCallFn = terminal

    @property
    def installed(self) -> Tuple[Transformer, ...]:
        """Installed transformers, in installation order."""
        return tuple(self._transformers)

    def use(self, *transformers: Transformer) -> None:
        """Append *transformers* and rebuild the composed call function."""
        for transformer in transformers:
            if not callable(transformer):
                raise TypeError(f"Transformers must be callable, got {type(transformer).__name__}")
        self._transformers.extend(transformers)
        call = self._terminal
        for transformer in reversed(self._transformers):
            call = _wrap(call, transformer)
        self._call = call

    async def __call__(
        self,
        method: str,
        payload: Dict[str, Any],
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        return await self._call(method, payload, signal)
