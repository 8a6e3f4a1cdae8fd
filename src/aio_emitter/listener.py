"""Listener entries wrapped around registered callbacks."""

import inspect
from enum import Enum
from typing import Any, Callable


class ListenerMode(Enum):
    """How often a listener runs."""

    ALWAYS = "always"
    ONCE = "once"

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<ListenerMode.{self.name}>"


class Listener:
    """A registered callback together with its execution mode."""

    def __init__(self, callback: Callable[..., Any], mode: ListenerMode = ListenerMode.ALWAYS) -> None:
        """
        Wrap a callback.

        Args:
            callback: Any callable. Awaitable results are awaited on invoke.
            mode: ListenerMode.ALWAYS to run on every dispatch, ListenerMode.ONCE to run only the first time.
        """
        self.callback = callback
        self._mode = mode
        self.executed = False

    @property
    def mode(self) -> ListenerMode:
        return self._mode

    @property
    def once(self) -> bool:
        """Whether this listener fires only once."""
        return self._mode is ListenerMode.ONCE

    async def invoke(self, *args, **kwargs) -> Any:
        """
        Call the wrapped callback with the given arguments and await its result.

        A fire-once listener that already ran returns True without calling anything.
        The executed flag is set before the call, so a failing fire-once listener is not retried.
        """
        if self._mode is ListenerMode.ONCE and self.executed:
            return True
        self.executed = True
        result = self.callback(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def matches(self, callback: Callable[..., Any]) -> bool:
        """Check whether this entry wraps the given callback."""
        if self.callback is callback:
            return True
        # Bound methods are recreated on every attribute access
        if inspect.ismethod(self.callback) and inspect.ismethod(callback):
            return (
                self.callback.__self__ is callback.__self__
                and self.callback.__func__ is callback.__func__
            )
        return False

    def __repr__(self) -> str:
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        return f"<Listener {name} mode={self._mode} executed={self.executed}>"
