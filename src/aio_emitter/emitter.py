"""Event emitter that dispatches to listeners one at a time, awaiting each."""

import asyncio
import math
import numbers
import warnings
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Hashable

from .config import ConfigManager
from .config_types import ConfigTypeEnforcementError
from .errors import (
    InvalidCapacityPolicyError,
    InvalidMaxListenersError,
    MaxListenersExceededError,
    MaxListenersExceededWarning,
)
from .listener import Listener, ListenerMode
from .logging import LoggerManager, get_emitter_logger
from .settings import EmitterSettings


class CapacityPolicy(Enum):
    """What happens when a registration would exceed the listener cap."""

    RAISE = "raise"
    WARN = "warn"

    @classmethod
    def parse(cls, value: "str | CapacityPolicy") -> "CapacityPolicy":
        """Resolve a policy from its name or value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise InvalidCapacityPolicyError(
                f"Unknown capacity policy {value!r}. Expected one of: "
                + ", ".join(policy.value for policy in cls)
            ) from e


def coerce_max_listeners(value: Any) -> int:
    """
    Convert a listener cap to an int.

    Accepts ints, finite real numbers (truncated toward zero) and numeric strings.
    Booleans, NaN, infinities and anything non-numeric are rejected.

    Raises:
        InvalidMaxListenersError: If the value is not a usable number.
    """
    if value is None or isinstance(value, bool):
        raise InvalidMaxListenersError(f"Max listeners must be a number, got {value!r}.")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as e:
            raise InvalidMaxListenersError(
                f"Max listeners must be a number, got {value!r}."
            ) from e
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        value = float(value)
        if math.isnan(value) or math.isinf(value):
            raise InvalidMaxListenersError(f"Max listeners must be finite, got {value!r}.")
        return int(value)
    raise InvalidMaxListenersError(
        f"Max listeners must be a number, got {type(value).__name__}."
    )


class EventEmitter:
    """
    An ordered registry of listeners per event, with sequential async dispatch.

    Event keys can be any hashable value (strings, enum members, sentinel objects).
    Registration methods return the emitter itself so calls can be chained.
    """

    default_max_listeners: int = 10

    def __init__(
        self,
        max_listeners: int | None = None,
        capacity_policy: CapacityPolicy | str = CapacityPolicy.RAISE,
    ) -> None:
        """
        Initialize the emitter.

        Args:
            max_listeners: Per-event listener cap. Defaults to `EventEmitter.default_max_listeners`.
            capacity_policy: Whether refused registrations raise or only warn.
        """
        self._events: dict[Hashable, list[Listener]] = {}
        self._max_listeners: int = (
            type(self).default_max_listeners
            if max_listeners is None
            else coerce_max_listeners(max_listeners)
        )
        self.capacity_policy: CapacityPolicy = CapacityPolicy.parse(capacity_policy)
        self.logger_manager: LoggerManager | None = None
        self.logger = get_emitter_logger("emitter")

    # Factories
    @classmethod
    def from_settings(cls, settings: EmitterSettings) -> "EventEmitter":
        """Create an emitter from resolved settings."""
        try:
            capacity_policy = CapacityPolicy.parse(settings.capacity_policy)
        except InvalidCapacityPolicyError as e:
            raise ConfigTypeEnforcementError(
                f"Invalid setting emitter.capacity_policy: {e}"
            ) from e
        return cls(max_listeners=settings.max_listeners, capacity_policy=capacity_policy)

    @classmethod
    async def create_async(
        cls, manifest: Path = Path("emitter.toml"), env_file: Path | None = None
    ) -> "EventEmitter":
        """Asynchronous factory: resolve settings, configure logging and build an emitter."""
        config = ConfigManager(manifest=manifest, env_file=env_file)
        settings: EmitterSettings = await EmitterSettings.resolve(config)

        emitter = cls.from_settings(settings)
        emitter.logger_manager = LoggerManager.from_settings(settings)
        emitter.logger.info(
            f"Emitter created (max_listeners={emitter.get_max_listeners()}, "
            f"capacity_policy={emitter.capacity_policy.value})"
        )
        return emitter

    @classmethod
    def create(
        cls, manifest: Path = Path("emitter.toml"), env_file: Path | None = None
    ) -> "EventEmitter":
        """
        Synchronous factory method. Uses asyncio.run internally, so it must not be
        called from a running event loop. Use `create_async` there instead.
        """
        return asyncio.run(cls.create_async(manifest=manifest, env_file=env_file))

    def close(self) -> None:
        """Release the logging handlers installed by `create` or `create_async`, if any."""
        if self.logger_manager is not None:
            self.logger_manager.close()
            self.logger_manager = None

    # Registration
    def add_listener(self, event: Hashable, callback: Callable[..., Any]) -> "EventEmitter":
        """Append a listener that runs on every dispatch of `event`."""
        self._try_register(event, callback, ListenerMode.ALWAYS, prepend=False)
        return self

    on = add_listener

    def once(self, event: Hashable, callback: Callable[..., Any]) -> "EventEmitter":
        """Append a listener that runs only on the first dispatch it sees."""
        self._try_register(event, callback, ListenerMode.ONCE, prepend=False)
        return self

    def prepend_listener(self, event: Hashable, callback: Callable[..., Any]) -> "EventEmitter":
        """Insert a listener at the front of the sequence for `event`."""
        self._try_register(event, callback, ListenerMode.ALWAYS, prepend=True)
        return self

    def prepend_once_listener(
        self, event: Hashable, callback: Callable[..., Any]
    ) -> "EventEmitter":
        """Insert a fire-once listener at the front of the sequence for `event`."""
        self._try_register(event, callback, ListenerMode.ONCE, prepend=True)
        return self

    def _try_register(
        self,
        event: Hashable,
        callback: Callable[..., Any],
        mode: ListenerMode,
        prepend: bool,
        stacklevel: int = 3,
    ) -> bool:
        """
        Add a listener entry unless the cap refuses it.

        Args:
            stacklevel: Passed to `warnings.warn` under the warn policy. Counted from this
                frame; the default points at the caller of a public registration method.

        Returns:
            bool: True if the entry was added, False if the warn policy refused it.
        """
        if not callable(callback):
            raise TypeError(f"Listener must be callable, got {type(callback).__name__}.")

        count = len(self._events.get(event, ()))
        if count + 1 > self._max_listeners:
            self._refuse(event, count, stacklevel=stacklevel + 1)
            return False

        stack = self._events.setdefault(event, [])
        entry = Listener(callback, mode)
        if prepend:
            stack.insert(0, entry)
        else:
            stack.append(entry)
        self.logger.debug(
            f"Registered {entry!r} for event {event!r} ({'prepend' if prepend else 'append'})"
        )
        return True

    def _refuse(self, event: Hashable, count: int, stacklevel: int) -> None:
        """Signal a registration refused by the listener cap."""
        error = MaxListenersExceededError(event, self._max_listeners, count)
        self.logger.warning(f"Listener registration refused: {error}")
        if self.capacity_policy is CapacityPolicy.RAISE:
            raise error
        warnings.warn(MaxListenersExceededWarning(str(error)), stacklevel=stacklevel)

    # Removal
    def remove_listener(self, event: Hashable, callback: Callable[..., Any]) -> "EventEmitter":
        """Remove every entry for `event` wrapping `callback`. Unknown events and callbacks are ignored."""
        stack = self._events.get(event)
        if stack is None:
            return self

        removed = 0
        index = self._index_of(stack, callback)
        while index >= 0:
            del stack[index]
            removed += 1
            index = self._index_of(stack, callback)
        if removed:
            self.logger.debug(f"Removed {removed} listener(s) from event {event!r}")
        return self

    off = remove_listener

    def remove_all_listeners(self, event: Hashable) -> "EventEmitter":
        """Forget `event` entirely, dropping all of its listeners."""
        if self._events.pop(event, None) is not None:
            self.logger.debug(f"Removed all listeners for event {event!r}")
        return self

    @staticmethod
    def _index_of(stack: list[Listener], callback: Callable[..., Any]) -> int:
        for index, entry in enumerate(stack):
            if entry.matches(callback):
                return index
        return -1

    # Dispatch
    async def emit(self, event: Hashable, *args, **kwargs) -> bool:
        """
        Invoke every listener registered for `event`, in order, awaiting each one.

        The sequence is read live at every step: listeners added during dispatch
        may run in this same call, and removals shift later entries.
        A listener that raises stops the dispatch and the exception propagates.

        Returns:
            bool: Always True once every listener has been processed.
        """
        stack = self._events.get(event)
        if not stack:
            return True

        self.logger.debug(f"Dispatching event {event!r} to {len(stack)} listener(s)")
        index = 0
        while index < len(stack):
            await stack[index].invoke(*args, **kwargs)
            index += 1
        self.logger.debug(f"Finished dispatching event {event!r}")
        return True

    # Introspection
    def event_names(self) -> list[Hashable]:
        """List registered event keys in first-registration order."""
        return list(self._events.keys())

    def listener_count(self, event: Hashable) -> int:
        return len(self._events.get(event, ()))

    def listeners(self, event: Hashable) -> list[Listener]:
        """Listener entries registered for `event`, in dispatch order."""
        return list(self._events.get(event, ()))

    def raw_listeners(self, event: Hashable) -> list[Callable[..., Any]]:
        """Callbacks registered for `event`, in dispatch order."""
        return [entry.callback for entry in self._events.get(event, ())]

    # Capacity
    def get_max_listeners(self) -> int:
        return self._max_listeners

    def set_max_listeners(self, n: Any) -> "EventEmitter":
        """
        Change the per-event listener cap for this emitter.

        Negative values are accepted and block every further registration.
        Existing listeners are never evicted.

        Raises:
            InvalidMaxListenersError: If `n` is not a usable number. The cap is left unchanged.
        """
        self._max_listeners = coerce_max_listeners(n)
        self.logger.debug(f"Max listeners set to {self._max_listeners}")
        return self

    @classmethod
    def set_default_max_listeners(cls, n: Any) -> None:
        """
        Change the cap that new emitters start with.

        Raises:
            InvalidMaxListenersError: If `n` is not a number or is negative.
        """
        value = coerce_max_listeners(n)
        if value < 0:
            raise InvalidMaxListenersError(
                f"Default max listeners must be a non-negative number, got {n!r}."
            )
        cls.default_max_listeners = value

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} events={len(self._events)} "
            f"max_listeners={self._max_listeners}>"
        )
