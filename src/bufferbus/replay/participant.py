"""Participant canvas — rebuilds strokes from batched point deliveries."""

from __future__ import annotations

import logging

from bufferbus.bus.emitter import BufferedEventEmitter
from bufferbus.events.types import ListenerOptions
from bufferbus.replay.feed import POINTS_EVENT, STATE_EVENT, DrawPoint, StrokeState

logger = logging.getLogger("bufferbus.replay")


class ParticipantCanvas:
    """Receives ``drawPoints`` and ``drawingState`` in batches and keeps the
    reconstructed strokes.

    Args:
        points_options: Listener options for the point batches.
        state_options:  Listener options for the stroke state batches.
    """

    def __init__(self, points_options: ListenerOptions, state_options: ListenerOptions) -> None:
        self.points_options = points_options
        self.state_options = state_options
        self.strokes: dict[int, list[tuple[float, float]]] = {}
        self.batch_sizes: list[int] = []
        self.state_updates = 0
        self.active = False

    def register(self, emitter: BufferedEventEmitter) -> None:
        emitter.on(POINTS_EVENT, self._on_points, self.points_options)
        emitter.on(STATE_EVENT, self._on_state, self.state_options)

    # ------------------------------------------------------------------

    def _on_points(self, batch: list[DrawPoint]) -> None:
        self.batch_sizes.append(len(batch))
        for point in batch:
            self.strokes.setdefault(point.stroke, []).append((point.x, point.y))
        logger.debug("[Participant] batch of %d points", len(batch))

    def _on_state(self, batch: list[StrokeState]) -> None:
        for state in batch:
            self.state_updates += 1
            self.active = state.action == "start"
