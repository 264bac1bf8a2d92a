"""Replay session — wires a buffered canvas replay from a config dict and runs it."""

from __future__ import annotations

from dataclasses import dataclass, field

from bufferbus.bus.emitter import BufferedEventEmitter
from bufferbus.config.options import EmitterOptions
from bufferbus.events.types import ListenerOptions
from bufferbus.replay.feed import POINTS_EVENT, STATE_EVENT, StrokeFeed
from bufferbus.replay.participant import ParticipantCanvas
from bufferbus.timing.scheduler import ManualClock
from bufferbus.visualization.canvas import CanvasChart


@dataclass
class ReplayReport:
    strokes: int
    points_emitted: int
    points_delivered: int
    batch_sizes: list[int] = field(default_factory=list)
    state_updates: int = 0
    cached_deliveries: int = 0

    @property
    def batches(self) -> int:
        return len(self.batch_sizes)

    @property
    def mean_batch_size(self) -> float:
        return self.points_delivered / self.batches if self.batches else 0.0

    def __str__(self) -> str:
        lines = [
            "",
            "=" * 44,
            "  REPLAY REPORT",
            "=" * 44,
            f"  Strokes           : {self.strokes}",
            f"  Points emitted    : {self.points_emitted}",
            f"  Points delivered  : {self.points_delivered}",
            f"  Batches delivered : {self.batches}",
            f"  Mean batch size   : {self.mean_batch_size:.2f}",
            f"  State updates     : {self.state_updates}",
            f"  Cached deliveries : {self.cached_deliveries}",
            "=" * 44,
            "",
        ]
        return "\n".join(lines)


class ReplaySession:
    """Builds an emitter, a stroke feed and a participant canvas from
    *config* and replays the feed on virtual time.

    Config keys (all optional — defaults shown):

    .. code-block:: yaml

        emitter:
          buffer_capacity: 5
          buffer_inactivity_timeout: 0
          cache: true
          cache_capacity: 20
        feed:
          n_strokes: 3
          points_per_stroke: 20
          seed: 42
          point_interval_ms: 16
          stroke_gap_ms: 250
          paused_strokes: []     # strokes whose points are queued then replayed
        listeners:
          points_capacity: 10
          points_timeout: 100    # ms
          state_capacity: 2
          state_timeout: 50      # ms
        visualization:
          enabled: false
          save_path: canvas.png

    Args:
        config:          Nested dict (typically loaded from YAML).
        enable_chart:    Override ``visualization.enabled``; show chart after run.
        chart_save_path: If set, save chart to this path instead of displaying.
    """

    def __init__(
        self,
        config: dict,
        enable_chart: bool | None = None,
        chart_save_path: str | None = None,
    ) -> None:
        self._config = config
        self._enable_chart = enable_chart
        self._chart_save_path = chart_save_path

    # ------------------------------------------------------------------

    def run(self) -> ReplayReport:
        cfg = self._config
        emitter_cfg = {"cache": True, **cfg.get("emitter", {})}
        feed_cfg = cfg.get("feed", {})
        lst_cfg = cfg.get("listeners", {})
        viz_cfg = cfg.get("visualization", {})

        clock = ManualClock()
        emitter = BufferedEventEmitter(EmitterOptions.from_dict(emitter_cfg), scheduler=clock)
        feed = StrokeFeed(
            n_strokes=int(feed_cfg.get("n_strokes", 3)),
            points_per_stroke=int(feed_cfg.get("points_per_stroke", 20)),
            seed=feed_cfg.get("seed"),
            point_interval_ms=int(feed_cfg.get("point_interval_ms", 16)),
            stroke_gap_ms=int(feed_cfg.get("stroke_gap_ms", 250)),
        )
        participant = ParticipantCanvas(
            points_options=ListenerOptions(
                buffered=True,
                buffer_capacity=int(lst_cfg.get("points_capacity", 10)),
                buffer_inactivity_timeout=int(lst_cfg.get("points_timeout", 100)),
            ),
            state_options=ListenerOptions(
                buffered=True,
                buffer_capacity=int(lst_cfg.get("state_capacity", 2)),
                buffer_inactivity_timeout=int(lst_cfg.get("state_timeout", 50)),
            ),
        )

        chart: CanvasChart | None = None
        chart_enabled = (
            self._enable_chart
            if self._enable_chart is not None
            else viz_cfg.get("enabled", False)
        )
        if chart_enabled:
            chart = CanvasChart()

        participant.register(emitter)
        if chart:
            chart.register(emitter)

        paused = frozenset(int(s) for s in feed_cfg.get("paused_strokes", []))
        emitted = feed.emit(emitter, clock, paused_strokes=paused)
        # anything still below capacity without a timeout is delivered here
        emitter.flush(POINTS_EVENT)
        emitter.flush(STATE_EVENT)
        cached = len(emitter.get_cache(POINTS_EVENT))
        emitter.cleanup()

        if chart:
            save = self._chart_save_path or viz_cfg.get("save_path") or None
            chart.plot(participant.strokes, save_path=save)

        return ReplayReport(
            strokes=feed.n_strokes,
            points_emitted=emitted,
            points_delivered=sum(participant.batch_sizes),
            batch_sizes=participant.batch_sizes,
            state_updates=participant.state_updates,
            cached_deliveries=cached,
        )
