"""Listener, pause and queue records shared by the emitter components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from bufferbus.bus.control import EventController

Listener = Callable[[Any], None]

DEFAULT_IS_BUFFERED = False
DEFAULT_BUFFER_CAPACITY = 5
DEFAULT_BUFFER_INACTIVITY_TIMEOUT = 0  # ms; 0 disables the inactivity flush
DEFAULT_QUEUE_EMISSION = True
DEFAULT_EMISSION_INTERVAL = 0  # ms between replayed emissions on resume
DEFAULT_IS_CACHE = False
DEFAULT_CACHE_CAPACITY = 20

ALL_EVENTS = "__all__"


class EmitStatus(Enum):
    EMITTING = auto()
    PAUSED = auto()


@dataclass(frozen=True)
class ListenerOptions:
    """Per-listener configuration.

    Fields left as ``None`` fall back to the emitter defaults.  Two option
    sets are equal only when every field is equal; the control handle
    compares by identity.
    """

    buffered: bool | None = None
    buffer_capacity: int | None = None
    buffer_inactivity_timeout: int | None = None  # ms
    control: EventController | None = None

    def __post_init__(self) -> None:
        if self.buffer_capacity is not None and self.buffer_capacity < 1:
            raise ValueError(f"buffer_capacity must be at least 1, got {self.buffer_capacity}")
        if self.buffer_inactivity_timeout is not None and self.buffer_inactivity_timeout < 0:
            raise ValueError(
                f"buffer_inactivity_timeout must be >= 0, got {self.buffer_inactivity_timeout}"
            )


@dataclass(eq=False)
class ListenerRegistration:
    """One entry in the listener registry.

    ``bucket`` is ``None`` for unbuffered registrations.  ``timer`` holds the
    pending inactivity flush handle, if any.  ``spent`` marks a one-shot
    registration that has delivered; ``removed`` one that has left the
    registry.
    """

    event_name: str
    fn: Listener
    once: bool
    options: ListenerOptions | None
    bucket: list[Any] | None = None
    timer: Any = None
    spent: bool = False
    removed: bool = False

    def matches(self, fn: Listener, options: ListenerOptions | None) -> bool:
        return self.fn == fn and self.options == options

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


@dataclass(frozen=True)
class PauseConfig:
    scope: str  # ALL_EVENTS or an event name
    should_queue: bool = DEFAULT_QUEUE_EMISSION
    interval: int = DEFAULT_EMISSION_INTERVAL  # ms


@dataclass(frozen=True)
class QueueEntry:
    event_name: str
    data: Any
