"""Buffered in-process event emitter."""

from __future__ import annotations

import asyncio
from typing import Any, ClassVar

from bufferbus.bus.cache import EventCache
from bufferbus.config.options import EmitterOptions
from bufferbus.events.types import (
    ALL_EVENTS,
    DEFAULT_EMISSION_INTERVAL,
    DEFAULT_QUEUE_EMISSION,
    EmitStatus,
    Listener,
    ListenerOptions,
    ListenerRegistration,
    PauseConfig,
    QueueEntry,
)
from bufferbus.logger.handler import DebugStatus, EventLogger
from bufferbus.timing.scheduler import LoopScheduler, Scheduler


class BufferedEventEmitter:
    """Pub/sub hub with per-listener batching, pause/resume and a bounded
    delivery cache.

    Usage::

        emitter = BufferedEventEmitter()
        emitter.on("points", draw, ListenerOptions(buffered=True, buffer_capacity=10))
        emitter.emit("points", (3, 4))

    Listeners run synchronously inside :meth:`emit`, in registration order.
    The registration list is copied before each dispatch pass, so listeners
    may call ``on``/``off``/``emit`` on the same emitter; registry changes
    apply from the next pass.  A listener that raises aborts the rest of the
    pass and the exception propagates to the caller.

    Args:
        options:   Instance defaults; see :class:`~bufferbus.config.options.EmitterOptions`.
        scheduler: Timer facility for inactivity flushes (default: the running
                   asyncio loop).
        debug:     Debug flags for the built-in logger.  ``None`` shares the
                   class-wide :attr:`debug_status`.
    """

    debug_status: ClassVar[DebugStatus] = DebugStatus()

    def __init__(
        self,
        options: EmitterOptions | None = None,
        *,
        scheduler: Scheduler | None = None,
        debug: DebugStatus | None = None,
    ) -> None:
        self._opts = options or EmitterOptions()
        self._debug = debug if debug is not None else type(self).debug_status
        self._log = self._opts.logger or EventLogger(self._debug)
        self._scheduler = scheduler or LoopScheduler()
        self._events: dict[str, list[ListenerRegistration]] = {}
        self._paused: dict[str, PauseConfig] = {}
        self._global_pause: PauseConfig | None = None
        self._queue: list[QueueEntry] = []
        self._cache = EventCache(self._opts.cache, self._opts.cache_capacity)
        self._replays: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def on(self, event_name: str, fn: Listener, options: ListenerOptions | None = None) -> bool:
        """Register *fn* for *event_name*.

        Returns ``False`` without side effects when the same
        (event name, listener, options) combination is already registered.
        """
        return self._add(event_name, fn, False, options)

    def once(self, event_name: str, fn: Listener, options: ListenerOptions | None = None) -> bool:
        """Like :meth:`on`, but the listener is removed after its first delivery."""
        return self._add(event_name, fn, True, options)

    def off(self, event_name: str, fn: Listener, options: ListenerOptions | None = None) -> bool:
        """Remove the first registration of *fn* matching *options*.

        Without *options* the first registration of *fn* is removed whatever
        its options.  A pending inactivity flush for it is canceled.
        """
        regs = self._events.get(event_name)
        if not regs:
            return False
        for reg in regs:
            if reg.fn == fn and (options is None or reg.options == options):
                break
        else:
            return False
        regs.remove(reg)
        if not regs:
            del self._events[event_name]
        self._retire(reg)
        self._log("off", event_name, fn)
        return True

    add_listener = on
    remove_listener = off

    def off_all(self, event_name: str) -> bool:
        """Drop every listener for *event_name* along with its queued
        emissions, pause config and cache."""
        regs = self._events.pop(event_name, None)
        if not regs:
            return False
        for reg in regs:
            self._retire(reg)
        self._queue = [e for e in self._queue if e.event_name != event_name]
        self._paused.pop(event_name, None)
        self._cache.discard(event_name)
        return True

    def listeners(self, event_name: str | None = None) -> Any:
        """Callbacks registered for *event_name*, or a name → callbacks
        mapping for the whole registry."""
        if event_name is None:
            return {name: [r.fn for r in regs] for name, regs in self._events.items()}
        return [r.fn for r in self._events.get(event_name, [])]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def emit(self, event_name: str, data: Any = None) -> bool:
        """Deliver *data* to every listener of *event_name*.

        Returns ``True`` if at least one listener was called.  A buffered
        listener whose batch is still below capacity does not count.  While
        the event is paused the emission is queued or dropped and ``False``
        is returned.
        """
        regs = self._events.get(event_name)
        if not regs:
            return False

        config = self._pause_config(event_name)
        if config is not None:
            if config.should_queue:
                self._queue.append(QueueEntry(event_name, data))
            return False

        snapshot = list(regs)
        # no listener runs unless every timer in the pass can be armed
        if any(self._is_timed(reg) for reg in snapshot):
            self._scheduler.check()

        delivered = False
        spent: list[ListenerRegistration] = []
        try:
            for reg in snapshot:
                if reg.spent:
                    continue
                if reg.bucket is not None:
                    reg.bucket.append(data)
                    if len(reg.bucket) < self._capacity(reg):
                        self._arm_timer(reg)
                        continue
                if reg.once:
                    reg.spent = True
                    spent.append(reg)
                delivered = True
                if reg.bucket is None:
                    self._invoke(reg, data)
                else:
                    self._flush_bucket(reg)
        finally:
            self._drop(event_name, spent)
        return delivered

    def flush(
        self,
        event_name: str,
        fn: Listener | None = None,
        options: ListenerOptions | None = None,
    ) -> bool:
        """Deliver pending buffered batches now, ignoring capacity and timeout.

        With only *event_name* every buffered listener of the event is
        flushed; *fn* and *options* narrow the match.  Returns ``True`` if any
        listener was called.
        """
        regs = self._events.get(event_name)
        if not regs:
            return False

        flushed = False
        spent: list[ListenerRegistration] = []
        try:
            for reg in list(regs):
                if reg.spent or not reg.bucket:
                    continue
                if fn is not None and reg.fn != fn:
                    continue
                if options is not None and reg.options != options:
                    continue
                if reg.once:
                    reg.spent = True
                    spent.append(reg)
                flushed = True
                self._flush_bucket(reg)
        finally:
            self._drop(event_name, spent)
        return flushed

    # ------------------------------------------------------------------
    # Pause / resume
    # ------------------------------------------------------------------

    def pause(
        self,
        event_name: str | None = None,
        queue_emissions: bool = DEFAULT_QUEUE_EMISSION,
        emission_interval: int = DEFAULT_EMISSION_INTERVAL,
    ) -> None:
        """Suspend delivery for *event_name*, or for every event.

        Args:
            event_name:        Event to pause.  ``None`` pauses everything and
                               discards any per-event pauses.
            queue_emissions:   Queue emissions made while paused instead of
                               dropping them.
            emission_interval: Delay (ms) between replayed emissions on
                               :meth:`resume`; ``0`` replays synchronously.
        """
        if emission_interval < 0:
            raise ValueError(f"emission_interval must be >= 0, got {emission_interval}")
        if event_name is not None:
            self._paused[event_name] = PauseConfig(event_name, queue_emissions, emission_interval)
            return
        self._paused.clear()
        self._global_pause = PauseConfig(ALL_EVENTS, queue_emissions, emission_interval)

    def resume(self, event_name: str | None = None) -> asyncio.Task[None] | None:
        """Lift a pause and replay its queued emissions in emission order.

        With no *event_name* every pause is lifted and the whole queue is
        replayed.  When the pause was set with an emission interval the
        replay runs as a task on the running loop, which is returned so the
        caller can await it; otherwise replay is synchronous and ``None`` is
        returned.
        """
        if event_name is not None:
            config = self._paused.get(event_name)
            if config is None:
                return None
        else:
            config = self._global_pause
        interval = config.interval if config is not None else DEFAULT_EMISSION_INTERVAL
        # nothing is mutated unless a loop is available for a timed replay
        loop = asyncio.get_running_loop() if interval > 0 else None

        if event_name is not None:
            del self._paused[event_name]
            entries: list[QueueEntry] = []
            if config.should_queue:
                entries = [e for e in self._queue if e.event_name == event_name]
                self._queue = [e for e in self._queue if e.event_name != event_name]
        else:
            self._global_pause = None
            self._paused.clear()
            entries, self._queue = self._queue, []

        if loop is not None:
            task = loop.create_task(self._replay(entries, interval))
            self._replays.add(task)
            task.add_done_callback(self._replays.discard)
            return task

        for entry in entries:
            self.emit(entry.event_name, entry.data)
        return None

    def status(self, event_name: str | None = None) -> EmitStatus:
        if event_name is None:
            paused = self._global_pause is not None
        else:
            paused = self._pause_config(event_name) is not None
        return EmitStatus.PAUSED if paused else EmitStatus.EMITTING

    # ------------------------------------------------------------------
    # Cache / teardown
    # ------------------------------------------------------------------

    def get_cache(self, event_name: str) -> list[Any]:
        """Most recent deliveries for *event_name*, oldest first."""
        return self._cache.get(event_name)

    def cleanup(self) -> None:
        """Cancel all timers and replays; clear listeners, queue and cache."""
        for regs in self._events.values():
            for reg in regs:
                self._retire(reg)
        self._events.clear()
        self._paused.clear()
        self._global_pause = None
        self._queue.clear()
        self._cache.clear()
        for task in list(self._replays):
            task.cancel()
        self._replays.clear()

    # ------------------------------------------------------------------
    # Debug flags
    # ------------------------------------------------------------------

    @classmethod
    def enable_debug(
        cls, emit: bool | None = None, on: bool | None = None, off: bool | None = None
    ) -> None:
        """Switch logging on or off for every emitter sharing :attr:`debug_status`."""
        cls.debug_status.update(emit=emit, on=on, off=off)

    @classmethod
    def reset_debug(cls) -> None:
        cls.debug_status.update(emit=False, on=False, off=False)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _add(
        self, event_name: str, fn: Listener, once: bool, options: ListenerOptions | None
    ) -> bool:
        regs = self._events.get(event_name, [])
        if any(r.matches(fn, options) for r in regs):
            return False
        reg = ListenerRegistration(
            event_name, fn, once, options,
            bucket=[] if self._is_buffered(options) else None,
        )
        if self._is_timed(reg):
            self._scheduler.check()
        if options is not None and options.control is not None:
            options.control.attach(self, event_name, fn, options)
        self._events.setdefault(event_name, []).append(reg)
        self._log("on", event_name, fn)
        return True

    def _is_buffered(self, options: ListenerOptions | None) -> bool:
        if options is not None and options.buffered is not None:
            return options.buffered
        return self._opts.buffered

    def _capacity(self, reg: ListenerRegistration) -> int:
        if reg.options is not None and reg.options.buffer_capacity is not None:
            return reg.options.buffer_capacity
        return self._opts.buffer_capacity

    def _timeout(self, reg: ListenerRegistration) -> int:
        if reg.options is not None and reg.options.buffer_inactivity_timeout is not None:
            return reg.options.buffer_inactivity_timeout
        return self._opts.buffer_inactivity_timeout

    def _is_timed(self, reg: ListenerRegistration) -> bool:
        return reg.bucket is not None and self._timeout(reg) > 0

    def _pause_config(self, event_name: str) -> PauseConfig | None:
        return self._paused.get(event_name) or self._global_pause

    def _invoke(self, reg: ListenerRegistration, payload: Any) -> None:
        reg.fn(payload)
        self._cache.add(reg.event_name, payload)
        self._log("emit", reg.event_name, payload)

    def _flush_bucket(self, reg: ListenerRegistration) -> None:
        reg.cancel_timer()
        batch, reg.bucket = reg.bucket, []
        self._invoke(reg, batch)

    def _arm_timer(self, reg: ListenerRegistration) -> None:
        # every accumulated item restarts the quiet period
        reg.cancel_timer()
        timeout = self._timeout(reg)
        if timeout > 0 and not reg.removed:
            reg.timer = self._scheduler.call_later(timeout, lambda: self._on_inactive(reg))

    def _on_inactive(self, reg: ListenerRegistration) -> None:
        reg.timer = None
        if reg.removed or reg.spent or not reg.bucket:
            return
        if reg.once:
            reg.spent = True
            self._drop(reg.event_name, [reg])
        self._flush_bucket(reg)

    def _retire(self, reg: ListenerRegistration) -> None:
        reg.cancel_timer()
        reg.removed = True
        if reg.options is not None and reg.options.control is not None:
            reg.options.control.detach(self, reg.event_name, reg.fn, reg.options)

    def _drop(self, event_name: str, spent: list[ListenerRegistration]) -> None:
        if not spent:
            return
        for reg in spent:
            self._retire(reg)
        regs = self._events.get(event_name)
        if regs is None:
            return
        kept = [r for r in regs if r not in spent]
        if kept:
            self._events[event_name] = kept
        else:
            del self._events[event_name]

    async def _replay(self, entries: list[QueueEntry], interval: int) -> None:
        for entry in entries:
            await asyncio.sleep(interval / 1000)
            self.emit(entry.event_name, entry.data)
