"""Cancellation primitives for API calls.

An :class:`AbortController` owns an :class:`AbortSignal`.  Callers pass the
signal to an API call; aborting the controller cancels the in-flight HTTP
request.  Listeners run synchronously inside :meth:`AbortController.abort`.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional

AbortListener = Callable[[Any], None]


class AbortSignal:
    """Read-only view on the aborted state of an :class:`AbortController`."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: Any = None
        self._listeners: List[AbortListener] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Any:
        return self._reason

    def add_listener(self, listener: AbortListener) -> None:
        """Register *listener*; it runs immediately if already aborted."""
        if self._aborted:
            listener(self._reason)
            return
        self._listeners.append(listener)

    def remove_listener(self, listener: AbortListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _fire(self, reason: Any) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(reason)


class AbortController:
    """Owner of an :class:`AbortSignal`.  Aborting is idempotent."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        self.signal._fire(reason)


def is_abort_signal(value: Any) -> bool:
    """Duck-type check for the listener-registration capability."""
    return callable(getattr(value, "add_listener", None)) and callable(
        getattr(value, "remove_listener", None)
    )


def link_signal(controller: AbortController, signal: Optional[AbortSignal]) -> Callable[[], None]:
    """Propagate aborts from *signal* into *controller*.

    Returns a function that deregisters the link; the listener also removes
    itself once it fired.
    """
    if signal is None:
        return lambda: None

    def forward(reason: Any) -> None:
        signal.remove_listener(forward)
        controller.abort(reason)

    signal.add_listener(forward)
    return lambda: signal.remove_listener(forward)
