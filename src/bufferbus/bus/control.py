"""Control-group handle for bulk operations on tagged listeners."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bufferbus.bus.emitter import BufferedEventEmitter
    from bufferbus.events.types import Listener, ListenerOptions


class EventController:
    """Pass as ``ListenerOptions(control=...)`` when registering listeners,
    then remove or flush all of them with one call.

    Each binding remembers the emitter it was made on, so one controller
    can safely tag listeners on several emitters.

    Usage::

        control = EventController()
        opts = ListenerOptions(buffered=True, control=control)
        emitter.on("points", draw, opts)
        emitter.on("state", update, opts)
        control.flush()   # deliver whatever is buffered right now
        control.off()     # detach both listeners
    """

    def __init__(self) -> None:
        self._bindings: list[tuple[BufferedEventEmitter, str, Listener, ListenerOptions]] = []

    def attach(
        self,
        emitter: BufferedEventEmitter,
        event_name: str,
        fn: Listener,
        options: ListenerOptions,
    ) -> None:
        self._bindings.append((emitter, event_name, fn, options))

    def detach(
        self,
        emitter: BufferedEventEmitter,
        event_name: str,
        fn: Listener,
        options: ListenerOptions,
    ) -> None:
        """Forget a binding whose registration has left *emitter*."""
        for i, (e, name, f, opts) in enumerate(self._bindings):
            if e is emitter and name == event_name and f == fn and opts == options:
                del self._bindings[i]
                return

    def off(self) -> bool:
        """Remove every tagged registration.  Returns ``True`` if any was removed."""
        bindings, self._bindings = self._bindings, []
        removed = False
        for emitter, event_name, fn, options in bindings:
            removed = emitter.off(event_name, fn, options) or removed
        return removed

    def flush(self) -> bool:
        """Force-deliver every tagged buffered registration.  Returns ``True`` if any fired."""
        flushed = False
        for emitter, event_name, fn, options in list(self._bindings):
            flushed = emitter.flush(event_name, fn, options) or flushed
        return flushed

    def __len__(self) -> int:
        return len(self._bindings)
