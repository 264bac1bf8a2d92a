"""Emitter construction options and YAML config loading."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from bufferbus.events.types import (
    DEFAULT_BUFFER_CAPACITY,
    DEFAULT_BUFFER_INACTIVITY_TIMEOUT,
    DEFAULT_CACHE_CAPACITY,
    DEFAULT_IS_BUFFERED,
    DEFAULT_IS_CACHE,
)
from bufferbus.logger.handler import LogHook


@dataclass
class EmitterOptions:
    """Defaults applied by a :class:`~bufferbus.bus.emitter.BufferedEventEmitter`.

    Config keys (all optional — defaults shown):

    .. code-block:: yaml

        emitter:
          buffered: false
          buffer_capacity: 5
          buffer_inactivity_timeout: 0   # ms, 0 disables
          cache: false
          cache_capacity: 20

    Args:
        buffered:                  Buffer listeners registered without an explicit flag.
        buffer_capacity:           Batch size that triggers a capacity flush.
        buffer_inactivity_timeout: Quiet period (ms) before a partial batch is flushed.
        cache:                     Keep a per-event history of deliveries.
        cache_capacity:            Deliveries kept per event.
        logger:                    Hook called as ``logger(kind, event_name, data)``;
                                   ``None`` selects the built-in
                                   :class:`~bufferbus.logger.handler.EventLogger`.
    """

    buffered: bool = DEFAULT_IS_BUFFERED
    buffer_capacity: int = DEFAULT_BUFFER_CAPACITY
    buffer_inactivity_timeout: int = DEFAULT_BUFFER_INACTIVITY_TIMEOUT
    cache: bool = DEFAULT_IS_CACHE
    cache_capacity: int = DEFAULT_CACHE_CAPACITY
    logger: LogHook | None = None

    def __post_init__(self) -> None:
        if self.buffer_capacity < 1:
            raise ValueError(f"buffer_capacity must be at least 1, got {self.buffer_capacity}")
        if self.buffer_inactivity_timeout < 0:
            raise ValueError(
                f"buffer_inactivity_timeout must be >= 0, got {self.buffer_inactivity_timeout}"
            )
        if self.cache_capacity < 1:
            raise ValueError(f"cache_capacity must be at least 1, got {self.cache_capacity}")

    @classmethod
    def from_dict(cls, cfg: dict[str, Any]) -> EmitterOptions:
        return cls(
            buffered=bool(cfg.get("buffered", DEFAULT_IS_BUFFERED)),
            buffer_capacity=int(cfg.get("buffer_capacity", DEFAULT_BUFFER_CAPACITY)),
            buffer_inactivity_timeout=int(
                cfg.get("buffer_inactivity_timeout", DEFAULT_BUFFER_INACTIVITY_TIMEOUT)
            ),
            cache=bool(cfg.get("cache", DEFAULT_IS_CACHE)),
            cache_capacity=int(cfg.get("cache_capacity", DEFAULT_CACHE_CAPACITY)),
        )


def load_config(path: Path) -> dict:
    with path.open() as fh:
        return yaml.safe_load(fh) or {}
