"""Event logger — the default logging hook invoked on on/off/emit."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger("bufferbus")

LogHook = Callable[[str, str, Any], None]


@dataclass
class DebugStatus:
    """Which kinds of activity the default :class:`EventLogger` writes."""

    emit: bool = False
    on: bool = False
    off: bool = False

    def update(self, emit: bool | None = None, on: bool | None = None, off: bool | None = None) -> None:
        if emit is not None:
            self.emit = emit
        if on is not None:
            self.on = on
        if off is not None:
            self.off = off

    def enabled(self, kind: str) -> bool:
        return bool(getattr(self, kind, False))


def describe_payload(data: Any) -> str:
    """Serialise *data* for a log line; never raises."""
    try:
        return json.dumps(data)
    except (TypeError, ValueError):
        if isinstance(data, Mapping):
            keys = data.keys()
        elif hasattr(data, "__dict__"):
            keys = vars(data).keys()
        else:
            return f"<unserializable {type(data).__name__}>"
        return "Object with the following keys failed to serialize: " + ",".join(map(str, keys))


def describe_listener(fn: Any) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


class EventLogger:
    """Writes one INFO line per ``on``/``off``/``emit`` while the matching
    :class:`DebugStatus` flag is set.

    Each line is prefixed with the activity kind so output can be filtered
    downstream.

    Args:
        debug: Flags consulted on every call.  Pass the emitter class's shared
               ``debug_status`` to follow :meth:`BufferedEventEmitter.enable_debug`.
    """

    def __init__(self, debug: DebugStatus) -> None:
        self.debug = debug

    def __call__(self, kind: str, event_name: str, data: Any = None) -> None:
        if not self.debug.enabled(kind):
            return
        if kind == "emit":
            logger.info("[Emit]  %s  data=%s", event_name, describe_payload(data))
        else:
            logger.info(
                "[%s]  %s  listener=%s",
                kind.capitalize(),
                event_name,
                describe_listener(data),
            )
