"""Stroke feed — emits synthetic pen strokes onto an emitter."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from bufferbus.bus.emitter import BufferedEventEmitter
from bufferbus.timing.scheduler import ManualClock

POINTS_EVENT = "drawPoints"
STATE_EVENT = "drawingState"

_CANVAS_SIZE = 400.0


@dataclass(frozen=True)
class DrawPoint:
    stroke: int
    x: float
    y: float
    timestamp_ms: int


@dataclass(frozen=True)
class StrokeState:
    stroke: int
    action: str  # "start" or "end"
    timestamp_ms: int


class StrokeFeed:
    """Generates *n_strokes* wandering pen strokes and publishes them via
    :meth:`emit`.

    Each stroke is framed by ``start``/``end`` :class:`StrokeState` events on
    ``drawingState``; its points go to ``drawPoints``.  The clock is advanced
    between points and between strokes so inactivity timers fire as they
    would on a live canvas.

    Args:
        n_strokes:         Number of strokes to draw.
        points_per_stroke: Points emitted per stroke.
        seed:              Optional RNG seed for reproducible output.
        point_interval_ms: Virtual time between consecutive points.
        stroke_gap_ms:     Virtual time between strokes.
    """

    def __init__(
        self,
        n_strokes: int = 3,
        points_per_stroke: int = 20,
        seed: int | None = None,
        point_interval_ms: int = 16,
        stroke_gap_ms: int = 250,
    ) -> None:
        self.n_strokes = n_strokes
        self.points_per_stroke = points_per_stroke
        self.point_interval_ms = point_interval_ms
        self.stroke_gap_ms = stroke_gap_ms
        self._rng = random.Random(seed)

    # ------------------------------------------------------------------

    def strokes(self) -> list[list[DrawPoint]]:
        """Build every stroke up front; timestamps assume a clock starting at 0."""
        result: list[list[DrawPoint]] = []
        now = 0
        for s in range(self.n_strokes):
            x = self._rng.uniform(0.2, 0.8) * _CANVAS_SIZE
            y = self._rng.uniform(0.2, 0.8) * _CANVAS_SIZE
            heading = self._rng.uniform(0.0, 2 * math.pi)
            points: list[DrawPoint] = []
            for _ in range(self.points_per_stroke):
                now += self.point_interval_ms
                heading += self._rng.uniform(-0.4, 0.4)
                x = min(max(x + 6.0 * math.cos(heading), 0.0), _CANVAS_SIZE)
                y = min(max(y + 6.0 * math.sin(heading), 0.0), _CANVAS_SIZE)
                points.append(DrawPoint(stroke=s, x=round(x, 1), y=round(y, 1), timestamp_ms=now))
            result.append(points)
            now += self.stroke_gap_ms
        return result

    def emit(
        self,
        emitter: BufferedEventEmitter,
        clock: ManualClock,
        paused_strokes: frozenset[int] = frozenset(),
    ) -> int:
        """Publish all strokes to *emitter*, driving *clock* forward.

        Points of strokes listed in *paused_strokes* are emitted while
        ``drawPoints`` is paused and replayed when the stroke ends.

        Returns:
            Number of points emitted.
        """
        emitted = 0
        for points in self.strokes():
            stroke = points[0].stroke
            emitter.emit(STATE_EVENT, StrokeState(stroke, "start", clock.now))
            if stroke in paused_strokes:
                emitter.pause(POINTS_EVENT)
            for point in points:
                clock.advance(self.point_interval_ms)
                emitter.emit(POINTS_EVENT, point)
                emitted += 1
            if stroke in paused_strokes:
                emitter.resume(POINTS_EVENT)
            emitter.emit(STATE_EVENT, StrokeState(stroke, "end", clock.now))
            clock.advance(self.stroke_gap_ms)
        return emitted
