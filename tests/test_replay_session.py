"""Tests for ReplaySession."""

from __future__ import annotations

import matplotlib
matplotlib.use("Agg")  # must precede pyplot import

from bufferbus.replay.session import ReplayReport, ReplaySession

_BASE_CONFIG = {
    "emitter": {"cache": True, "cache_capacity": 20},
    "feed": {"n_strokes": 3, "points_per_stroke": 24, "seed": 11,
             "point_interval_ms": 16, "stroke_gap_ms": 250},
    "listeners": {"points_capacity": 10, "points_timeout": 100,
                  "state_capacity": 2, "state_timeout": 50},
}


def _run(extra: dict | None = None) -> ReplayReport:
    config = {k: dict(v) for k, v in _BASE_CONFIG.items()}
    if extra:
        for k, v in extra.items():
            config.setdefault(k, {}).update(v)
    return ReplaySession(config).run()


def test_report_is_returned() -> None:
    assert isinstance(_run(), ReplayReport)


def test_every_point_is_delivered() -> None:
    report = _run()
    assert report.points_emitted == 72
    assert report.points_delivered == 72


def test_batches_respect_capacity() -> None:
    report = _run()
    assert report.batch_sizes == [10, 10, 4] * 3


def test_inactivity_flush_closes_each_stroke() -> None:
    report = _run(extra={"listeners": {"points_capacity": 100}})
    assert report.batch_sizes == [24, 24, 24]


def test_paused_stroke_still_delivers_everything() -> None:
    report = _run(extra={"feed": {"paused_strokes": [1]}})
    assert report.points_delivered == report.points_emitted
    assert report.batch_sizes == [10, 10, 4] * 3


def test_final_flush_without_timeout() -> None:
    report = _run(extra={"listeners": {"points_capacity": 100, "points_timeout": 0}})
    assert report.batch_sizes == [72]


def test_state_updates_counted() -> None:
    report = _run()
    assert report.state_updates == 6


def test_cache_holds_batches() -> None:
    report = _run()
    assert report.cached_deliveries == 9


def test_str_representation() -> None:
    text = str(_run())
    assert "REPLAY REPORT" in text
    assert "Batches delivered : 9" in text


def test_chart_saved_when_enabled(tmp_path) -> None:
    out = tmp_path / "canvas.png"
    config = {k: dict(v) for k, v in _BASE_CONFIG.items()}
    ReplaySession(config, enable_chart=True, chart_save_path=str(out)).run()
    assert out.exists()
    assert out.stat().st_size > 0
