"""Exceptions and warnings raised by the event emitter."""

from typing import Any


class EmitterError(Exception):
    """Base exception class for emitter-related errors."""
    pass


class MaxListenersExceededError(EmitterError):
    """Exception raised when a registration would exceed the per-event listener cap."""

    def __init__(self, event: Any, max_listeners: int, count: int) -> None:
        self.event = event
        self.max_listeners = max_listeners
        self.count = count
        super().__init__(
            f"Maximum number of listeners ({max_listeners}) exceeded for event {event!r} "
            f"({count} already registered)."
        )


class InvalidMaxListenersError(EmitterError, ValueError):
    """Exception raised when a listener cap is not a usable number."""
    pass


class InvalidCapacityPolicyError(EmitterError, ValueError):
    """Exception raised when a capacity policy name is not recognised."""
    pass


class ListenerBindError(EmitterError):
    """Exception raised when binding decorated listeners to an emitter fails."""
    pass


class MaxListenersExceededWarning(RuntimeWarning):
    """Warning issued instead of an error when the capacity policy is set to warn."""
    pass
