"""Decorators for declaring listener methods and binding them to an emitter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Hashable

from .errors import EmitterError, ListenerBindError
from .listener import ListenerMode
from .logging import get_emitter_logger

if TYPE_CHECKING:
    from .emitter import EventEmitter

LISTENER_MARKER = "__emitter_listeners__"

logger = get_emitter_logger("decorators")


class ListensTo:
    """Decorator marking a function or method as a listener for an event.

    Marks can be stacked to listen to several events. Nothing is registered
    until `bind_listeners` is called with an emitter.
    """

    def __init__(self, event: Hashable | None = None, *, once: bool = False, prepend: bool = False) -> None:
        """
        Args:
            event: The event key. Defaults to the decorated function's name.
            once: Register as a fire-once listener.
            prepend: Insert at the front of the event's sequence instead of appending.
        """
        self.event = event
        self.once = once
        self.prepend = prepend

    def __call__(self, func: Callable[..., Any]) -> Callable[..., Any]:
        if self.event is None:
            self.event = func.__name__
        marks: list[ListensTo] | None = getattr(func, LISTENER_MARKER, None)
        if marks is None:
            marks = []
            setattr(func, LISTENER_MARKER, marks)
        # Decorators apply bottom-up; keep the order they were written in
        marks.insert(0, self)
        return func

    def apply(self, emitter: EventEmitter, func: Callable[..., Any]) -> bool:
        """
        Register `func` on the emitter according to this mark.

        Returns:
            bool: False if the emitter's warn policy refused the registration.
        """
        mode = ListenerMode.ONCE if self.once else ListenerMode.ALWAYS
        # Warnings point at the caller of bind_listeners
        return emitter._try_register(self.event, func, mode, prepend=self.prepend, stacklevel=4)

    def __repr__(self) -> str:
        return f"<ListensTo event={self.event!r} once={self.once} prepend={self.prepend}>"


listens_to = ListensTo


def bind_listeners(instance: Any, emitter: EventEmitter) -> list[tuple[Hashable, Callable[..., Any]]]:
    """
    Register every marked callable found on `instance` with `emitter`.

    Attributes are visited in `dir()` order. `instance` may be an object or a module.

    Returns:
        The (event, callback) pairs that were registered.

    Raises:
        ListenerBindError: If a registration fails, e.g. because the listener cap was reached.
    """
    bound: list[tuple[Hashable, Callable[..., Any]]] = []
    owner = type(instance).__name__
    for attr_name in dir(instance):
        if attr_name.startswith("__"):
            continue
        attr = getattr(instance, attr_name)
        if not callable(attr):
            continue
        marks: list[ListensTo] | None = getattr(attr, LISTENER_MARKER, None)
        if not marks:
            continue
        for mark in marks:
            try:
                added = mark.apply(emitter, attr)
            except (EmitterError, TypeError) as e:
                logger.error(
                    f"Failed to register listener '{attr_name}' for event {mark.event!r} on '{owner}': {e}"
                )
                raise ListenerBindError(
                    f"Failed to bind listener {attr_name} for event {mark.event!r}: {e}"
                ) from e
            if not added:
                logger.warning(
                    f"Listener '{attr_name}' for event {mark.event!r} on '{owner}' was not registered"
                )
                continue
            logger.debug(f"Registered listener '{attr_name}' for event {mark.event!r} on '{owner}'")
            bound.append((mark.event, attr))
    return bound
