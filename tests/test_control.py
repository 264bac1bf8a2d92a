"""Tests for EventController control groups."""

from __future__ import annotations

from bufferbus.bus.control import EventController
from bufferbus.bus.emitter import BufferedEventEmitter
from bufferbus.events.types import ListenerOptions
from bufferbus.timing.scheduler import ManualClock


def test_off_removes_every_tagged_listener() -> None:
    emitter = BufferedEventEmitter()
    control = EventController()
    tagged = ListenerOptions(control=control)
    calls: list[str] = []

    def points(_: object) -> None:
        calls.append("points")

    def state(_: object) -> None:
        calls.append("state")

    def untagged(_: object) -> None:
        calls.append("untagged")

    emitter.on("points", points, tagged)
    emitter.on("state", state, tagged)
    emitter.on("state", untagged)
    assert len(control) == 2

    assert control.off() is True
    emitter.emit("points")
    emitter.emit("state")

    assert calls == ["untagged"]
    assert control.off() is False


def test_flush_delivers_tagged_buckets_only() -> None:
    emitter = BufferedEventEmitter()
    control = EventController()
    tagged: list[list[int]] = []
    other: list[list[int]] = []
    emitter.on("a", tagged.append, ListenerOptions(buffered=True, control=control))
    emitter.on("b", tagged.append, ListenerOptions(buffered=True, control=control))
    emitter.on("a", other.append, ListenerOptions(buffered=True))
    emitter.emit("a", 1)
    emitter.emit("b", 2)

    assert control.flush() is True

    assert tagged == [[1], [2]]
    assert other == []
    assert control.flush() is False


def test_controller_reused_across_emitters() -> None:
    first = BufferedEventEmitter()
    second = BufferedEventEmitter()
    control = EventController()
    opts = ListenerOptions(control=control)
    received: list[int] = []
    first.on("bar", received.append, opts)
    second.on("bar", received.append, opts)

    control.off()

    assert first.listeners("bar") == []
    assert second.listeners("bar") == []


def test_off_cancels_tagged_inactivity_timers() -> None:
    clock = ManualClock()
    emitter = BufferedEventEmitter(scheduler=clock)
    control = EventController()
    calls: list[list[int]] = []
    opts = ListenerOptions(buffered=True, buffer_inactivity_timeout=100, control=control)
    emitter.on("bar", calls.append, opts)
    emitter.emit("bar", 1)

    control.off()
    clock.advance(500)

    assert calls == []


def test_control_is_part_of_listener_identity() -> None:
    emitter = BufferedEventEmitter()
    received: list[int] = []
    assert emitter.on("bar", received.append, ListenerOptions(control=EventController())) is True
    assert emitter.on("bar", received.append, ListenerOptions(control=EventController())) is True
    assert len(emitter.listeners("bar")) == 2


def test_bindings_follow_registrations_removed_elsewhere() -> None:
    emitter = BufferedEventEmitter()
    control = EventController()
    opts = ListenerOptions(control=control)
    received: list[int] = []

    emitter.on("a", received.append, opts)
    emitter.off("a", received.append)
    assert len(control) == 0

    emitter.on("a", received.append, opts)
    emitter.on("b", received.append, opts)
    emitter.off_all("a")
    assert len(control) == 1

    emitter.once("c", received.append, opts)
    emitter.emit("c", 3)
    assert len(control) == 1

    emitter.cleanup()
    assert len(control) == 0
    assert control.off() is False


def test_reregistering_does_not_grow_bindings() -> None:
    emitter = BufferedEventEmitter()
    control = EventController()
    opts = ListenerOptions(control=control)
    received: list[int] = []

    for _ in range(5):
        emitter.on("bar", received.append, opts)
        emitter.off("bar", received.append, opts)

    assert len(control) == 0
