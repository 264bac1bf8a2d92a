"""Canvas visualization — draws host strokes next to the replayed ones."""

from __future__ import annotations

from bufferbus.bus.emitter import BufferedEventEmitter
from bufferbus.replay.feed import POINTS_EVENT, DrawPoint


class CanvasChart:
    """Collects the raw points published on the emitter and produces a
    two-panel figure:

    - **Left panel** — host canvas, every point as it was emitted.
    - **Right panel** — participant canvas, strokes rebuilt from batches.

    Usage::

        chart = CanvasChart()
        chart.register(emitter)
        feed.emit(emitter, clock)
        chart.plot(participant.strokes, save_path="canvas.png")

    The chart must be registered **before** the feed runs so it sees every
    point.
    """

    def __init__(self) -> None:
        self._host: dict[int, list[tuple[float, float]]] = {}

    # ------------------------------------------------------------------

    def register(self, emitter: BufferedEventEmitter) -> None:
        emitter.on(POINTS_EVENT, self._on_point)

    def _on_point(self, point: DrawPoint) -> None:
        self._host.setdefault(point.stroke, []).append((point.x, point.y))

    @property
    def point_count(self) -> int:
        return sum(len(points) for points in self._host.values())

    # ------------------------------------------------------------------

    def plot(
        self,
        participant: dict[int, list[tuple[float, float]]],
        save_path: str | None = None,
    ) -> None:
        """Render host and participant canvases side by side.

        Args:
            participant: Stroke id → points, as rebuilt by the participant.
            save_path:   If provided, save the figure to this path (PNG/PDF/SVG)
                         instead of displaying an interactive window.
        """
        if not self._host:
            print("[CanvasChart] No data to plot — run the feed first.")
            return

        import matplotlib.pyplot as plt

        fig, (ax_host, ax_part) = plt.subplots(1, 2, figsize=(12, 6), sharex=True, sharey=True)
        fig.subplots_adjust(wspace=0.05)

        for ax, strokes, color, title in (
            (ax_host, self._host, "#1f77b4", "Host"),
            (ax_part, participant, "#28a745", "Participant (batched)"),
        ):
            for points in strokes.values():
                xs = [p[0] for p in points]
                ys = [p[1] for p in points]
                ax.plot(xs, ys, color=color, linewidth=2, solid_capstyle="round")
            ax.set_title(title, fontsize=13)
            ax.set_aspect("equal")
            ax.grid(True, alpha=0.3)
        # canvas origin is top-left (shared y axis, invert once)
        ax_host.invert_yaxis()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches="tight")
            print(f"[CanvasChart] Chart saved to {save_path}")
            plt.close(fig)
        else:
            plt.show()
