"""Entry point — loads config, applies CLI overrides, and runs the canvas replay."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from bufferbus.bus.emitter import BufferedEventEmitter
from bufferbus.config.options import load_config
from bufferbus.replay.session import ReplaySession

_DEFAULT_CONFIG = Path(__file__).parent / "config" / "default.yaml"


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    feed = config.setdefault("feed", {})
    listeners = config.setdefault("listeners", {})
    if args.strokes is not None:
        feed["n_strokes"] = args.strokes
    if args.seed is not None:
        feed["seed"] = args.seed
    if args.capacity is not None:
        listeners["points_capacity"] = args.capacity
    if args.timeout is not None:
        listeners["points_timeout"] = args.timeout
    if args.no_pause:
        feed["paused_strokes"] = []
    return config


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Buffered canvas replay")
    parser.add_argument("--config", type=Path, default=_DEFAULT_CONFIG,
                        help="Path to YAML config file")
    parser.add_argument("--strokes", type=int, default=None,
                        help="Override number of strokes")
    parser.add_argument("--seed", type=int, default=None,
                        help="Override random seed")
    parser.add_argument("--capacity", type=int, default=None,
                        help="Override point batch capacity")
    parser.add_argument("--timeout", type=int, default=None, metavar="MS",
                        help="Override point batch inactivity timeout")
    parser.add_argument("--no-pause", action="store_true",
                        help="Do not pause point delivery during any stroke")
    parser.add_argument("--debug", action="store_true",
                        help="Log every on/off/emit")
    parser.add_argument("--chart", action="store_true",
                        help="Show host and participant canvases after the replay")
    parser.add_argument("--save-chart", dest="save_chart", type=str, default=None,
                        metavar="PATH",
                        help="Save canvas chart to file instead of displaying")
    return parser.parse_args()


def main() -> None:
    setup_logging()
    args = parse_args()
    config = load_config(args.config)
    config = apply_overrides(config, args)
    if args.debug:
        BufferedEventEmitter.enable_debug(emit=True, on=True, off=True)

    enable_chart = args.chart or bool(args.save_chart)
    report = ReplaySession(
        config,
        enable_chart=enable_chart if enable_chart else None,
        chart_save_path=args.save_chart,
    ).run()
    print(report)


if __name__ == "__main__":
    main()
