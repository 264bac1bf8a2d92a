"""Tests for BufferedEventEmitter registration and dispatch."""

from __future__ import annotations

import pytest

from bufferbus.bus.emitter import BufferedEventEmitter
from bufferbus.events.types import ListenerOptions


def _noop(data: object) -> None:
    pass


def test_emit_returns_false_when_no_listeners() -> None:
    emitter = BufferedEventEmitter()
    emitter.on("bar", _noop)
    assert emitter.emit("foo") is False
    assert emitter.emit("bar") is True


def test_emit_passes_data_to_listener() -> None:
    emitter = BufferedEventEmitter()
    colors = ["red", "green", "blue"]
    received: list[object] = []
    emitter.on("get-colors", received.append)

    emitter.emit("get-colors", colors)

    assert received == [colors]
    assert received[0] is colors


def test_listeners_fire_in_registration_order() -> None:
    emitter = BufferedEventEmitter()
    calls: list[int] = []
    emitter.on("bar", lambda _: calls.append(0))
    emitter.on("bar", lambda _: calls.append(1))
    emitter.on("bar", lambda _: calls.append(2))

    emitter.emit("bar")

    assert calls == [0, 1, 2]


def test_on_only_receives_its_own_event() -> None:
    emitter = BufferedEventEmitter()
    count = 0

    def listener(_: object) -> None:
        nonlocal count
        count += 1

    assert emitter.on("bar", listener) is True
    emitter.emit("bar")
    emitter.emit("bar")
    emitter.emit("foo")

    assert count == 2


def test_duplicate_registration_is_rejected() -> None:
    emitter = BufferedEventEmitter()
    received: list[object] = []
    opts = ListenerOptions(buffered=True, buffer_capacity=3)

    assert emitter.on("bar", received.append) is True
    assert emitter.on("bar", received.append) is False
    assert emitter.on("foo", received.append, opts) is True
    assert emitter.on("foo", received.append, ListenerOptions(buffered=True, buffer_capacity=3)) is False

    emitter.emit("bar", 1)
    emitter.emit("foo", 2)

    assert received == [1]
    assert len(emitter.listeners("bar")) == 1
    assert len(emitter.listeners("foo")) == 1


def test_same_listener_with_different_options_is_added() -> None:
    emitter = BufferedEventEmitter()
    assert emitter.on("bar", _noop) is True
    assert emitter.on("bar", _noop, ListenerOptions(buffered=True)) is True
    assert emitter.on("bar", _noop, ListenerOptions(buffered=True, buffer_capacity=5)) is True
    assert len(emitter.listeners("bar")) == 3


def test_once_fires_exactly_one_time() -> None:
    emitter = BufferedEventEmitter()
    total = 0

    def listener(value: int) -> None:
        nonlocal total
        total += value

    assert emitter.once("ping", listener) is True
    assert emitter.emit("ping", 5) is True
    assert emitter.emit("ping", 5) is False

    assert total == 5
    assert emitter.listeners("ping") == []


def test_once_dedupes_against_on() -> None:
    emitter = BufferedEventEmitter()
    received: list[int] = []
    assert emitter.once("bar", received.append) is True
    assert emitter.on("bar", received.append) is False
    assert emitter.once("bar", received.append) is False

    emitter.emit("bar", 10)

    assert emitter.listeners("bar") == []
    assert emitter.emit("bar", 10) is False
    assert received == [10]


def test_once_reentrant_emit_does_not_fire_twice() -> None:
    emitter = BufferedEventEmitter()
    calls: list[int] = []

    def listener(value: int) -> None:
        calls.append(value)
        emitter.emit("ping", value + 1)

    emitter.once("ping", listener)
    emitter.emit("ping", 1)

    assert calls == [1]


def test_off_without_options_removes_first_match() -> None:
    emitter = BufferedEventEmitter()
    received: list[int] = []
    opts = ListenerOptions(buffered=True)
    assert emitter.on("bar", received.append) is True
    emitter.on("bar", received.append, opts)

    assert emitter.off("bar", received.append) is True
    emitter.emit("bar", 10)
    assert received == []
    assert len(emitter.listeners("bar")) == 1

    assert emitter.off("bar", received.append, ListenerOptions(buffered=True)) is True
    assert emitter.listeners("bar") == []
    assert emitter.off("bar", received.append) is False


def test_off_without_options_matches_any_options() -> None:
    emitter = BufferedEventEmitter()
    emitter.on("bar", _noop, ListenerOptions(buffered=True, buffer_capacity=2))
    assert emitter.off("bar", _noop) is True
    assert emitter.listeners("bar") == []


def test_off_with_mismatched_options_keeps_listener() -> None:
    emitter = BufferedEventEmitter()
    emitter.on("bar", _noop, ListenerOptions(buffered=True, buffer_capacity=2))
    assert emitter.off("bar", _noop, ListenerOptions(buffered=True)) is False
    assert emitter.listeners("bar") == [_noop]


def test_off_unknown_event_returns_false() -> None:
    emitter = BufferedEventEmitter()
    assert emitter.off("nope", _noop) is False


def test_aliases_share_implementation() -> None:
    assert BufferedEventEmitter.add_listener is BufferedEventEmitter.on
    assert BufferedEventEmitter.remove_listener is BufferedEventEmitter.off

    emitter = BufferedEventEmitter()
    assert emitter.add_listener("bar", _noop) is True
    assert emitter.remove_listener("bar", _noop) is True
    assert emitter.listeners("bar") == []


def test_listeners_without_name_returns_registry() -> None:
    emitter = BufferedEventEmitter()
    emitter.on("a", _noop)
    emitter.on("b", _noop)
    emitter.once("b", print)

    assert emitter.listeners() == {"a": [_noop], "b": [_noop, print]}


def test_listeners_snapshot_is_not_a_mutation_point() -> None:
    emitter = BufferedEventEmitter()
    emitter.on("a", _noop)
    emitter.listeners("a").clear()
    assert emitter.listeners("a") == [_noop]


def test_off_all_removes_every_listener() -> None:
    emitter = BufferedEventEmitter()
    emitter.on("bar", _noop)
    emitter.on("bar", print)
    emitter.on("foo", _noop)

    assert emitter.off_all("bar") is True
    assert emitter.listeners("bar") == []
    assert emitter.listeners("foo") == [_noop]
    assert emitter.off_all("bar") is False


def test_listener_removed_mid_pass_still_runs_this_pass() -> None:
    emitter = BufferedEventEmitter()
    calls: list[str] = []

    def second(_: object) -> None:
        calls.append("second")

    def first(_: object) -> None:
        calls.append("first")
        emitter.off("bar", second)

    emitter.on("bar", first)
    emitter.on("bar", second)

    emitter.emit("bar")
    emitter.emit("bar")

    assert calls == ["first", "second", "first"]


def test_listener_added_mid_pass_runs_from_next_pass() -> None:
    emitter = BufferedEventEmitter()
    calls: list[str] = []

    def late(_: object) -> None:
        calls.append("late")

    def first(_: object) -> None:
        calls.append("first")
        emitter.on("bar", late)

    emitter.on("bar", first)

    emitter.emit("bar")
    assert calls == ["first"]
    emitter.emit("bar")
    assert calls == ["first", "first", "late"]


def test_listener_exception_aborts_remaining_listeners() -> None:
    emitter = BufferedEventEmitter()
    calls: list[str] = []

    def boom(_: object) -> None:
        raise RuntimeError("listener failed")

    emitter.once("bar", lambda _: calls.append("once"))
    emitter.on("bar", boom)
    emitter.on("bar", lambda _: calls.append("after"))

    with pytest.raises(RuntimeError, match="listener failed"):
        emitter.emit("bar", 1)

    assert calls == ["once"]
    # the one-shot that already fired is still consumed
    assert len(emitter.listeners("bar")) == 2
